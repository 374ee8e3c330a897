"""
Event Reminder Runner
Runs a single reminder pass outside the ARQ worker, e.g. from system cron.
Usage: python run_reminders.py [YYYY-MM-DD]
"""

import asyncio
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from parents_portal.config import REMINDER_INTERVALS_DAYS
from parents_portal.database import SessionLocal
from parents_portal.domain.events.reminders import ReminderScheduler
from parents_portal.email_service import get_email_sender

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


async def run(now: datetime) -> None:
    db = SessionLocal()
    try:
        scheduler = ReminderScheduler(db, get_email_sender())
        await scheduler.run_reminder_pass(now, REMINDER_INTERVALS_DAYS)
    finally:
        db.close()


if __name__ == "__main__":
    now = datetime.now(timezone.utc)
    if len(sys.argv) > 1:
        now = datetime.strptime(sys.argv[1], "%Y-%m-%d").replace(tzinfo=timezone.utc)

    logger.info(f"🚀 Running event reminder pass for {now.date().isoformat()}...")
    try:
        asyncio.run(run(now))
    except Exception as e:
        logger.error(f"❌ Reminder pass crashed: {e}")
        sys.exit(1)
