"""Event repository - Read-only database operations used for event notifications"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Event, EventRecipient, Profile, Student
from .exceptions import PersistenceError
from .schemas import TargetingRule

logger = logging.getLogger(__name__)


@contextmanager
def guarded_read(db: Session, operation: str):
    """Translate database errors into PersistenceError and reset the session"""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"❌ Database error during {operation}: {e}")
        db.rollback()
        raise PersistenceError(operation, str(e)) from e


class EventRepository:
    """Repository for event, targeting and recipient lookups"""

    @staticmethod
    def get_event(db: Session, event_id: int) -> Optional[Event]:
        """Get a specific event by ID"""
        with guarded_read(db, f"fetch event {event_id}"):
            return db.query(Event).filter(Event.id == event_id).first()

    @staticmethod
    def get_events_between(db: Session, start: datetime, end: datetime) -> list[Event]:
        """Get events whose date falls in the half-open window [start, end)"""
        with guarded_read(db, f"fetch events between {start.isoformat()} and {end.isoformat()}"):
            return (
                db.query(Event)
                .filter(Event.event_date >= start, Event.event_date < end)
                .order_by(Event.event_date.asc(), Event.id.asc())
                .all()
            )

    @staticmethod
    def get_targeting_rules(db: Session, event_id: int) -> list[TargetingRule]:
        """Get the class targeting rules for an event (empty means broadcast)"""
        with guarded_read(db, f"fetch targeting rules for event {event_id}"):
            rows = db.query(EventRecipient).filter(EventRecipient.event_id == event_id).all()
        return [TargetingRule.model_validate(row) for row in rows]

    @staticmethod
    def get_parent_emails_for_classes(db: Session, class_ids: list[int]) -> list[Optional[str]]:
        """Get one parent email per student enrolled in any of the given classes.

        Students without a parent profile are dropped by the inner join.
        """
        if not class_ids:
            return []
        with guarded_read(db, f"fetch parents for classes {class_ids}"):
            rows = (
                db.query(Profile.email)
                .join(Student, Student.parent_id == Profile.id)
                .filter(Student.class_id.in_(class_ids))
                .all()
            )
        return [email for (email,) in rows]

    @staticmethod
    def get_emails_by_role(db: Session, role: str) -> list[Optional[str]]:
        """Get the email of every profile with the given role"""
        with guarded_read(db, f"fetch profiles with role {role}"):
            rows = db.query(Profile.email).filter(Profile.role == role).all()
        return [email for (email,) in rows]
