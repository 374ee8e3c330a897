"""Events domain - Recipient targeting, reminders and new-event announcements"""

from .router import router, webhooks_router

__all__ = ["router", "webhooks_router"]
