"""Bounded delivery of notification emails, one work item per recipient"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol, Union

from ...config import EMAIL_MAX_CONCURRENCY
from ...email_service import SendResult

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    async def send(self, to: str, subject: str, html_body: str) -> Union[SendResult, bool]: ...


@dataclass(frozen=True)
class WorkItem:
    event_id: int
    recipient: str
    subject: str
    html_body: str


@dataclass
class DeliveryCounts:
    sent: int = 0
    failed: int = 0


async def deliver(
    sender: EmailSender, items: list[WorkItem], max_concurrency: int = EMAIL_MAX_CONCURRENCY
) -> DeliveryCounts:
    """Send every work item; a failure on one item never affects the others"""
    counts = DeliveryCounts()
    if not items:
        return counts

    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def run(item: WorkItem) -> bool:
        async with semaphore:
            try:
                result = await sender.send(item.recipient, item.subject, item.html_body)
            except Exception as e:
                logger.error(f"❌ Send to {item.recipient} for event {item.event_id} raised: {e}")
                return False
        # Senders may report a bare bool or a result object with `success`
        ok = result if isinstance(result, bool) else bool(getattr(result, "success", False))
        if not ok:
            logger.error(
                f"❌ Send to {item.recipient} for event {item.event_id} failed: "
                f"{getattr(result, 'error', None)}"
            )
            return False
        return True

    outcomes = await asyncio.gather(*(run(item) for item in items))
    for ok in outcomes:
        if ok:
            counts.sent += 1
        else:
            counts.failed += 1
    return counts
