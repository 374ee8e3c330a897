"""Event notification router - Cron and webhook entry points"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ... import config
from ...database import get_db
from ...email_service import ResendEmailSender, get_email_sender
from ...webhook_security import WebhookSignatureError, verify_bearer_secret
from .exceptions import InvalidEventError, PersistenceError
from .notifier import NewEventNotifier
from .reminders import ReminderScheduler
from .schemas import EventWebhookPayload, ReminderPassResponse, WebhookResponse, parse_event_row

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["Cron"])
webhooks_router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


def get_current_time() -> datetime:
    """Dependency injection for the reminder pass clock"""
    return datetime.now(timezone.utc)


def require_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    try:
        verify_bearer_secret(authorization, config.CRON_SECRET)
    except WebhookSignatureError as e:
        logger.warning(f"Unauthorized attempt to access cron job: {e}")
        raise HTTPException(status_code=401, detail="Unauthorized") from e


def require_webhook_secret(authorization: Optional[str] = Header(None)) -> None:
    try:
        verify_bearer_secret(authorization, config.WEBHOOK_SECRET)
    except WebhookSignatureError as e:
        logger.warning(f"Unauthorized webhook call: {e}")
        raise HTTPException(status_code=401, detail="Unauthorized") from e


# ============================================================================
# CRON
# ============================================================================


@router.get(
    "/send-event-reminders",
    response_model=ReminderPassResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def send_event_reminders(
    db: Session = Depends(get_db),
    sender: ResendEmailSender = Depends(get_email_sender),
    now: datetime = Depends(get_current_time),
):
    """Run the daily reminder pass over the configured offsets"""
    logger.info("Cron job send-event-reminders triggered.")
    try:
        scheduler = ReminderScheduler(db, sender)
        summary = await scheduler.run_reminder_pass(now, config.REMINDER_INTERVALS_DAYS)
    except Exception as e:
        logger.error(f"❌ Error in cron job send-event-reminders: {e}")
        return JSONResponse(status_code=500, content={"error": f"Cron job failed: {str(e)}"})

    return ReminderPassResponse(
        message="Cron job executed.",
        summary=summary.summary_line(),
        **summary.model_dump(),
    )


# ============================================================================
# WEBHOOKS
# ============================================================================


@webhooks_router.post(
    "/on-new-event",
    response_model=WebhookResponse,
    dependencies=[Depends(require_webhook_secret)],
)
async def on_new_event(
    payload: EventWebhookPayload,
    db: Session = Depends(get_db),
    sender: ResendEmailSender = Depends(get_email_sender),
):
    """Announce a newly inserted event to its recipients"""
    if payload.type != "INSERT" or payload.table != "events":
        logger.info("Payload is not an INSERT event on the events table. Ignoring.")
        return WebhookResponse(message="Ignoring non-INSERT event or wrong table")

    try:
        event = parse_event_row(payload.record)
    except InvalidEventError as e:
        logger.error(f"❌ Invalid event data in payload: {e}")
        raise HTTPException(status_code=400, detail="Invalid event data") from e

    try:
        summary = await NewEventNotifier(db, sender).notify_new_event(event)
    except PersistenceError as e:
        logger.error(f"❌ Error in on-new-event webhook: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    if summary.recipients == 0:
        return WebhookResponse(message="No recipients found.")

    return WebhookResponse(
        message=(
            f"Notifications processed. Emails sent: {summary.emails_sent}, "
            f"Errors: {summary.email_errors}"
        ),
        emails_sent=summary.emails_sent,
        email_errors=summary.email_errors,
    )
