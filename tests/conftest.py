import os

# Must be set before the package creates its engine at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("CRON_SECRET", None)
os.environ.pop("WEBHOOK_SECRET", None)

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from parents_portal.database import Base
from parents_portal.email_service import SendResult
from parents_portal.models import Event, EventRecipient, Profile, SchoolClass, Student


class RecordingSender:
    """In-memory email sender that records every call"""

    def __init__(self, fail_for=(), raise_for=()):
        self.sent = []
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)

    async def send(self, to, subject, html_body):
        self.sent.append((to, subject, html_body))
        if to in self.raise_for:
            raise RuntimeError("connection reset")
        if to in self.fail_for:
            return SendResult(success=False, error="rejected")
        return SendResult(success=True)

    @property
    def recipients(self):
        return [to for to, _, _ in self.sent]

    @property
    def subjects(self):
        return [subject for _, subject, _ in self.sent]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def sender():
    return RecordingSender()


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def add_parent(db, profile_id, email, role="parent"):
    profile = Profile(id=profile_id, email=email, role=role)
    db.add(profile)
    db.commit()
    return profile


def add_student(db, student_id, class_id, parent_id):
    student = Student(id=student_id, class_id=class_id, parent_id=parent_id)
    db.add(student)
    db.commit()
    return student


def add_class(db, class_id, name):
    school_class = SchoolClass(id=class_id, name=name)
    db.add(school_class)
    db.commit()
    return school_class


def add_event(db, title, event_date, class_ids=(), description=None):
    event = Event(title=title, event_date=event_date, description=description)
    event.recipients = [EventRecipient(class_id=class_id) for class_id in class_ids]
    db.add(event)
    db.commit()
    db.refresh(event)
    return event
