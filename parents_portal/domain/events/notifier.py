"""New event announcements"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...config import EMAIL_MAX_CONCURRENCY
from ...email_service import compile_mjml_to_html
from ...email_templates import new_event_template
from .delivery import EmailSender, WorkItem, deliver
from .resolver import RecipientResolver
from .schemas import EventRow, NotificationSummary

logger = logging.getLogger(__name__)


def new_event_subject(event: EventRow) -> str:
    return f"New School Event: {event.title}"


class NewEventNotifier:
    """Announces a newly created event to its recipients.

    Unlike the reminder pass, a recipient lookup failure is raised to the
    caller, since a single event can simply be retried.
    """

    def __init__(
        self,
        db: Session,
        sender: EmailSender,
        resolver: Optional[RecipientResolver] = None,
        max_concurrency: int = EMAIL_MAX_CONCURRENCY,
    ):
        self.sender = sender
        self.resolver = resolver or RecipientResolver(db)
        self.max_concurrency = max_concurrency

    async def notify_new_event(self, event: EventRow) -> NotificationSummary:
        logger.info(f"🆕 Processing new event: \"{event.title}\" (ID: {event.id})")

        recipients = self.resolver.resolve_recipients(event)
        summary = NotificationSummary(event_id=event.id, recipients=len(recipients))
        if not recipients:
            return summary

        subject = new_event_subject(event)
        html_body = compile_mjml_to_html(
            new_event_template(event.title, event.event_date, event.description)
        )
        items = [
            WorkItem(event_id=event.id, recipient=email, subject=subject, html_body=html_body)
            for email in sorted(recipients)
        ]

        counts = await deliver(self.sender, items, self.max_concurrency)
        summary.emails_sent = counts.sent
        summary.email_errors = counts.failed

        logger.info(
            f"Finished sending emails for event {event.id}. "
            f"Sent: {summary.emails_sent}, Errors: {summary.email_errors}"
        )
        return summary
