"""Recipient resolution - Which parents are notified about an event"""

import logging

from sqlalchemy.orm import Session

from .repository import EventRepository
from .schemas import EventRow

logger = logging.getLogger(__name__)

PARENT_ROLE = "parent"


class RecipientResolver:
    """Resolves the set of parent emails an event is delivered to.

    An event with no targeting rules is a broadcast to every profile with the
    parent role. An event with rules goes only to parents of students enrolled
    in the targeted classes. Unknown class ids simply match no students.

    Read failures raise PersistenceError so callers can tell "no recipients"
    apart from "query failed".
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = EventRepository()

    def resolve_recipients(self, event: EventRow) -> set[str]:
        rules = self.repo.get_targeting_rules(self.db, event.id)

        if rules:
            class_ids = sorted({rule.class_id for rule in rules})
            logger.info(f"🎯 Event {event.id} targets classes: {', '.join(map(str, class_ids))}")
            emails = self.repo.get_parent_emails_for_classes(self.db, class_ids)
        else:
            logger.info(f"📢 Event {event.id} targets all parents")
            emails = self.repo.get_emails_by_role(self.db, PARENT_ROLE)

        # Exact-match dedup, no case folding
        recipients = {email for email in emails if email}

        if not recipients:
            logger.info(f"ℹ️ No recipients for event {event.id} (\"{event.title}\")")
        else:
            logger.info(f"👪 Resolved {len(recipients)} unique recipient(s) for event {event.id}")

        return recipients
