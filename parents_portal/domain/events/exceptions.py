"""Event domain exceptions"""


class PersistenceError(Exception):
    """Raised when a read against the database fails or times out.

    Callers must be able to tell this apart from an empty result.
    """

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"Error during {operation}: {message}")


class InvalidEventError(ValueError):
    """Raised when an event row or payload lacks required fields"""

    pass
