"""Event domain schemas - Typed projections of database rows and API payloads"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .exceptions import InvalidEventError


class EventRow(BaseModel):
    """Validated projection of an events row"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    event_date: datetime

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError("title must not be blank")
        return v

    @field_validator("event_date")
    @classmethod
    def validate_event_date(cls, v):
        # Naive values come back from backends that drop the offset; they are stored as UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class TargetingRule(BaseModel):
    """Projection of an event_recipients row"""

    model_config = ConfigDict(from_attributes=True)

    event_id: int
    class_id: int


def parse_event_row(row: Any) -> EventRow:
    """Validate an ORM row or a raw record dict into an EventRow"""
    if row is None:
        raise InvalidEventError("Event record is missing")
    try:
        return EventRow.model_validate(row)
    except ValidationError as e:
        raise InvalidEventError(f"Invalid event data: {e.error_count()} validation error(s)") from e


class ReminderSummary(BaseModel):
    """Aggregate result of one reminder pass"""

    events_checked: int = 0
    emails_sent: int = 0
    email_errors: int = 0
    invalid_events: int = 0
    failed_offsets: list[int] = []

    def summary_line(self) -> str:
        return (
            f"Cron job finished. Events checked: {self.events_checked}. "
            f"Emails sent: {self.emails_sent}. Errors: {self.email_errors}."
        )


class NotificationSummary(BaseModel):
    """Result of notifying recipients about a single event"""

    event_id: int
    recipients: int = 0
    emails_sent: int = 0
    email_errors: int = 0


class ReminderPassResponse(ReminderSummary):
    message: str
    summary: str


class EventWebhookPayload(BaseModel):
    """Database webhook payload sent when an events row changes"""

    type: str
    table: str
    schema_name: Optional[str] = None
    record: Optional[dict[str, Any]] = None
    old_record: Optional[dict[str, Any]] = None


class WebhookResponse(BaseModel):
    message: str
    emails_sent: Optional[int] = None
    email_errors: Optional[int] = None
