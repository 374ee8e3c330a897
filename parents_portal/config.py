import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./parents_portal.db")

# Per-statement timeout applied to PostgreSQL connections (milliseconds)
DB_STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "10000"))

# Resend Email Configuration
# When RESEND_API_KEY is missing, sends are simulated and reported as successful
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "noreply@example.com")
EMAIL_SEND_TIMEOUT_SECONDS = float(os.getenv("EMAIL_SEND_TIMEOUT_SECONDS", "15"))
EMAIL_MAX_CONCURRENCY = int(os.getenv("EMAIL_MAX_CONCURRENCY", "5"))

# Shared secrets for the externally-invoked entry points.
# Leaving one unset disables the bearer check for that entry point.
CRON_SECRET = os.getenv("CRON_SECRET")
WEBHOOK_SECRET = os.getenv("WEBHOOK_SECRET")


def parse_intervals(raw: str) -> list[int]:
    """Parse a comma-separated list of day offsets, keeping the given order"""
    intervals = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        days = int(part)
        if days < 0:
            raise ValueError(f"Reminder interval must be non-negative, got {days}")
        intervals.append(days)
    return intervals


# Days before an event at which reminders go out (3 weeks, 1 week, 1 day)
REMINDER_INTERVALS_DAYS = parse_intervals(os.getenv("REMINDER_INTERVALS_DAYS", "21,7,1"))

# Day boundaries for reminder windows are always computed in UTC
REMINDER_TIMEZONE = "UTC"

# Daily reminder cron time (UTC)
REMINDER_CRON_HOUR = int(os.getenv("REMINDER_CRON_HOUR", "9"))
REMINDER_CRON_MINUTE = int(os.getenv("REMINDER_CRON_MINUTE", "0"))

APP_NAME = os.getenv("APP_NAME", "School Parent Association")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
