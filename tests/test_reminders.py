from datetime import date, datetime, timedelta, timezone

import pytest

from conftest import RecordingSender, add_event, add_parent, add_student, utc
from parents_portal.domain.events import reminders
from parents_portal.domain.events.delivery import WorkItem, deliver
from parents_portal.domain.events.exceptions import PersistenceError
from parents_portal.domain.events.reminders import (
    ReminderScheduler,
    normalize_to_day_start,
    reminder_window,
)
from parents_portal.domain.events.repository import EventRepository
from parents_portal.domain.events.resolver import RecipientResolver

INTERVALS = [21, 7, 1]
NOW = utc(2024, 1, 1, 9, 30)


@pytest.fixture
def parents(db):
    add_parent(db, "P1", "a@x.com")
    add_parent(db, "P2", "b@x.com")
    return db


def test_normalize_truncates_to_utc_midnight():
    assert normalize_to_day_start(utc(2024, 1, 1, 23, 59, 59)) == utc(2024, 1, 1)
    assert normalize_to_day_start(datetime(2024, 1, 1, 6, 0)) == utc(2024, 1, 1)

    # 01:00 on Jan 2 in UTC+3 is still Jan 1 in UTC
    plus_three = timezone(timedelta(hours=3))
    assert normalize_to_day_start(datetime(2024, 1, 2, 1, 0, tzinfo=plus_three)) == utc(2024, 1, 1)


def test_reminder_window_covers_one_full_day():
    start, end = reminder_window(NOW, 7)
    assert start == utc(2024, 1, 8)
    assert end == utc(2024, 1, 9)


@pytest.mark.asyncio
async def test_each_event_matches_only_its_offset(parents):
    add_event(parents, "Bake Sale", utc(2024, 1, 2, 10, 0))
    add_event(parents, "Spring Gala", utc(2024, 1, 22, 0, 0))
    add_event(parents, "Not Yet", utc(2024, 1, 23, 0, 0))
    sender = RecordingSender()

    summary = await ReminderScheduler(parents, sender).run_reminder_pass(NOW, INTERVALS)

    assert summary.events_checked == 2
    assert summary.emails_sent == 4
    assert summary.email_errors == 0
    assert sorted(sender.subjects) == [
        "Reminder: Upcoming Event - Bake Sale",
        "Reminder: Upcoming Event - Bake Sale",
        "Reminder: Upcoming Event - Spring Gala",
        "Reminder: Upcoming Event - Spring Gala",
    ]


@pytest.mark.asyncio
async def test_window_edges_are_inclusive_of_whole_day(parents):
    add_event(parents, "Early", utc(2024, 1, 8, 0, 0, 0))
    add_event(parents, "Late", datetime(2024, 1, 8, 23, 59, 59, 999000, tzinfo=timezone.utc))
    add_event(parents, "Next Day", utc(2024, 1, 9, 0, 0, 0))
    sender = RecordingSender()

    summary = await ReminderScheduler(parents, sender).run_reminder_pass(NOW, [7])

    assert summary.events_checked == 2
    assert {s.rsplit(" - ", 1)[1] for s in sender.subjects} == {"Early", "Late"}


@pytest.mark.asyncio
async def test_overlapping_offsets_send_once_per_offset(parents):
    add_event(parents, "Assembly", utc(2024, 1, 8, 9, 0))
    sender = RecordingSender()

    summary = await ReminderScheduler(parents, sender).run_reminder_pass(NOW, [7, 7])

    assert summary.events_checked == 2
    assert summary.emails_sent == 4


@pytest.mark.asyncio
async def test_failed_offset_lookup_does_not_abort_other_offsets(parents, monkeypatch):
    add_event(parents, "Bake Sale", utc(2024, 1, 2, 10, 0))
    add_event(parents, "Week Ahead", utc(2024, 1, 8, 10, 0))
    add_event(parents, "Spring Gala", utc(2024, 1, 22, 12, 0))

    original = EventRepository.get_events_between

    def flaky(db, start, end):
        if start.date() == date(2024, 1, 8):
            raise PersistenceError("fetch events", "connection lost")
        return original(db, start, end)

    monkeypatch.setattr(EventRepository, "get_events_between", staticmethod(flaky))
    sender = RecordingSender()

    summary = await ReminderScheduler(parents, sender).run_reminder_pass(NOW, INTERVALS)

    assert summary.failed_offsets == [7]
    assert summary.events_checked == 2
    assert summary.emails_sent == 4
    assert not any("Week Ahead" in s for s in sender.subjects)


@pytest.mark.asyncio
async def test_send_failures_are_isolated_and_counted(db):
    add_parent(db, "P1", "a@x.com")
    add_parent(db, "P2", "bad@x.com")
    add_parent(db, "P3", "boom@x.com")
    add_parent(db, "P4", "d@x.com")
    add_event(db, "Bake Sale", utc(2024, 1, 2, 10, 0))
    add_event(db, "Spring Gala", utc(2024, 1, 22, 12, 0))
    sender = RecordingSender(fail_for={"bad@x.com"}, raise_for={"boom@x.com"})

    summary = await ReminderScheduler(db, sender).run_reminder_pass(NOW, INTERVALS)

    assert summary.events_checked == 2
    assert summary.emails_sent == 4
    assert summary.email_errors == 4
    assert len(sender.sent) == 8


@pytest.mark.asyncio
async def test_targeted_reminder_only_reaches_class_parents(parents):
    add_parent(parents, "P3", "c@x.com")
    add_student(parents, 1, 5, "P1")
    add_student(parents, 2, 6, "P2")
    add_student(parents, 3, 7, "P3")
    add_event(parents, "Science Fair", utc(2024, 1, 2, 10, 0), class_ids=[5, 6])
    sender = RecordingSender()

    await ReminderScheduler(parents, sender).run_reminder_pass(NOW, INTERVALS)

    assert sorted(sender.recipients) == ["a@x.com", "b@x.com"]


@pytest.mark.asyncio
async def test_invalid_event_rows_are_skipped(parents):
    add_event(parents, "   ", utc(2024, 1, 2, 10, 0))
    add_event(parents, "Bake Sale", utc(2024, 1, 2, 11, 0))
    sender = RecordingSender()

    summary = await ReminderScheduler(parents, sender).run_reminder_pass(NOW, INTERVALS)

    assert summary.invalid_events == 1
    assert summary.events_checked == 2
    assert summary.emails_sent == 2


@pytest.mark.asyncio
async def test_resolution_failure_skips_only_that_event(parents, monkeypatch):
    first = add_event(parents, "Bake Sale", utc(2024, 1, 2, 10, 0))
    add_event(parents, "Book Fair", utc(2024, 1, 2, 15, 0))

    original = RecipientResolver.resolve_recipients

    def flaky(self, event):
        if event.id == first.id:
            raise PersistenceError("fetch targeting rules", "timeout")
        return original(self, event)

    monkeypatch.setattr(RecipientResolver, "resolve_recipients", flaky)
    sender = RecordingSender()

    summary = await ReminderScheduler(parents, sender).run_reminder_pass(NOW, INTERVALS)

    assert summary.events_checked == 2
    assert summary.emails_sent == 2
    assert set(sender.subjects) == {"Reminder: Upcoming Event - Book Fair"}


@pytest.mark.asyncio
async def test_no_events_sends_nothing(parents):
    sender = RecordingSender()

    summary = await ReminderScheduler(parents, sender).run_reminder_pass(NOW, INTERVALS)

    assert summary.events_checked == 0
    assert summary.emails_sent == 0
    assert sender.sent == []
    assert summary.summary_line() == "Cron job finished. Events checked: 0. Emails sent: 0. Errors: 0."


@pytest.mark.asyncio
async def test_default_intervals_come_from_config(parents, monkeypatch):
    monkeypatch.setattr(reminders, "REMINDER_INTERVALS_DAYS", [3])
    add_event(parents, "Parent Meeting", utc(2024, 1, 4, 18, 0))
    sender = RecordingSender()

    summary = await ReminderScheduler(parents, sender).run_reminder_pass(NOW)

    assert summary.events_checked == 1


@pytest.mark.asyncio
async def test_reminder_body_contains_event_details(parents):
    add_event(
        parents,
        "Bake <Sale>",
        utc(2024, 1, 2, 10, 0),
        description="Bring cookies & cake",
    )
    sender = RecordingSender()

    await ReminderScheduler(parents, sender).run_reminder_pass(NOW, [1])

    _, subject, body = sender.sent[0]
    assert subject == "Reminder: Upcoming Event - Bake <Sale>"
    assert "<Sale>" not in body
    assert "Bring cookies" in body
    assert "Tuesday, 02 January 2024" in body


class BoolSender:
    def __init__(self, ok=True):
        self.ok = ok

    async def send(self, to, subject, html_body):
        return self.ok


@pytest.mark.asyncio
async def test_boolean_send_results_are_counted():
    items = [WorkItem(1, "a@x.com", "s", "b"), WorkItem(1, "b@x.com", "s", "b")]

    assert (await deliver(BoolSender(True), items)).sent == 2
    assert (await deliver(BoolSender(False), items)).failed == 2


@pytest.mark.asyncio
async def test_event_dates_with_offsets_fall_in_their_utc_day(parents):
    plus_three = timezone(timedelta(hours=3))
    # 22:00 UTC on Jan 1 and on Jan 2 respectively
    early = add_event(parents, "Late Night Quiz", datetime(2024, 1, 2, 1, 0, tzinfo=plus_three))
    add_event(parents, "Midnight Run", datetime(2024, 1, 3, 1, 0, tzinfo=plus_three))
    sender = RecordingSender()

    summary = await ReminderScheduler(parents, sender).run_reminder_pass(NOW, [1])

    assert early.event_date == utc(2024, 1, 1, 22, 0)
    assert summary.events_checked == 1
    assert set(sender.subjects) == {"Reminder: Upcoming Event - Midnight Run"}
