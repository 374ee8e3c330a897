import uuid
from datetime import timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

from .database import Base


def generate_uuid():
    return str(uuid.uuid4())


class UTCDateTime(TypeDecorator):
    """Timestamp stored and returned in UTC.

    SQLite keeps only the wall-clock part of an aware datetime, so values are
    converted to UTC before binding. Naive values are taken as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)


class Profile(Base):
    """Account profile. Only profiles with role 'parent' receive broadcast events."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)  # Matches the auth account id
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    role = Column(String(50), nullable=False, default="parent", index=True)  # parent, admin
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    students = relationship("Student", back_populates="parent")


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=True)
    parent_id = Column(String(36), ForeignKey("profiles.id"), nullable=True, index=True)
    # No foreign key: class identifiers are not validated at this layer
    class_id = Column(Integer, nullable=True, index=True)

    parent = relationship("Profile", back_populates="students")


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    event_date = Column(UTCDateTime, nullable=False, index=True)
    created_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    recipients = relationship(
        "EventRecipient", back_populates="event", cascade="all, delete-orphan"
    )


class EventRecipient(Base):
    """Targeting rule: restricts an event to the parents of one class.

    An event without any rows here is broadcast to every parent.
    """

    __tablename__ = "event_recipients"
    __table_args__ = (UniqueConstraint("event_id", "class_id", name="uq_event_recipient_class"),)

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    class_id = Column(Integer, nullable=False)

    event = relationship("Event", back_populates="recipients")
