"""
Event reminder scheduling

Run once per day. For every configured offset `d`, events dated exactly `d`
days after today (UTC calendar day) get a reminder sent to each resolved
recipient. Offsets are processed independently: a failed lookup for one
offset is logged and the pass moves on to the next.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ...config import EMAIL_MAX_CONCURRENCY, REMINDER_INTERVALS_DAYS
from ...email_service import compile_mjml_to_html
from ...email_templates import event_reminder_template
from .delivery import EmailSender, WorkItem, deliver
from .exceptions import InvalidEventError, PersistenceError
from .repository import EventRepository
from .resolver import RecipientResolver
from .schemas import EventRow, ReminderSummary, parse_event_row

logger = logging.getLogger(__name__)


def normalize_to_day_start(now: datetime) -> datetime:
    """Truncate `now` to 00:00 of its UTC calendar day. Naive values are taken as UTC."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def reminder_window(now: datetime, days_before: int) -> tuple[datetime, datetime]:
    """Half-open [start, end) window covering the whole UTC day `days_before` days ahead"""
    start = normalize_to_day_start(now) + timedelta(days=days_before)
    return start, start + timedelta(days=1)


def reminder_subject(event: EventRow) -> str:
    return f"Reminder: Upcoming Event - {event.title}"


class ReminderScheduler:
    """Sends reminder emails for events falling on each configured offset day"""

    def __init__(
        self,
        db: Session,
        sender: EmailSender,
        resolver: Optional[RecipientResolver] = None,
        max_concurrency: int = EMAIL_MAX_CONCURRENCY,
    ):
        self.db = db
        self.sender = sender
        self.repo = EventRepository()
        self.resolver = resolver or RecipientResolver(db)
        self.max_concurrency = max_concurrency

    async def run_reminder_pass(
        self, now: Optional[datetime] = None, intervals: Optional[list[int]] = None
    ) -> ReminderSummary:
        now = now or datetime.now(timezone.utc)
        intervals = REMINDER_INTERVALS_DAYS if intervals is None else intervals
        summary = ReminderSummary()

        logger.info(f"⏰ Starting reminder pass for {now.isoformat()} with offsets {intervals}")

        for days_before in intervals:
            items = self._collect_work_items(now, days_before, summary)
            if not items:
                continue
            counts = await deliver(self.sender, items, self.max_concurrency)
            summary.emails_sent += counts.sent
            summary.email_errors += counts.failed

        logger.info(summary.summary_line())
        if summary.failed_offsets:
            logger.warning(f"⚠️ Offsets skipped after lookup failures: {summary.failed_offsets}")
        return summary

    def _collect_work_items(
        self, now: datetime, days_before: int, summary: ReminderSummary
    ) -> list[WorkItem]:
        start, end = reminder_window(now, days_before)
        target_date = start.date().isoformat()
        logger.info(f"🔍 Checking for events on {target_date} (for {days_before}-day reminder)")

        try:
            rows = self.repo.get_events_between(self.db, start, end)
        except PersistenceError as e:
            logger.error(f"❌ Error fetching events for {days_before}-day reminder: {e}")
            summary.failed_offsets.append(days_before)
            return []

        if not rows:
            logger.info(f"No events found for {days_before}-day reminder on {target_date}.")
            return []

        summary.events_checked += len(rows)

        items = []
        for row in rows:
            try:
                event = parse_event_row(row)
            except InvalidEventError as e:
                logger.warning(f"⚠️ Skipping invalid event row {getattr(row, 'id', None)}: {e}")
                summary.invalid_events += 1
                continue

            try:
                recipients = self.resolver.resolve_recipients(event)
            except PersistenceError as e:
                logger.error(f"❌ Error resolving recipients for event {event.id}: {e}")
                continue

            if not recipients:
                continue

            try:
                html_body = compile_mjml_to_html(
                    event_reminder_template(event.title, event.event_date, event.description)
                )
            except Exception as e:
                logger.error(f"❌ Failed to render reminder for event {event.id}: {e}")
                continue

            subject = reminder_subject(event)
            items.extend(
                WorkItem(event_id=event.id, recipient=email, subject=subject, html_body=html_body)
                for email in sorted(recipients)
            )

        logger.info(
            f"📬 {len(items)} reminder(s) queued for {days_before}-day offset on {target_date}"
        )
        return items
