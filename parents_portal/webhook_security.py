"""
Webhook Security Module

Shared-secret checks for externally invoked entry points (cron runner and
database webhooks). Secrets are sent as `Authorization: Bearer <secret>` and
compared in constant time.
"""

import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class WebhookSignatureError(Exception):
    """Raised when a shared-secret check fails"""

    pass


def constant_time_compare(a: Optional[str], b: Optional[str]) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from a 'Bearer <token>' header value, or None"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def verify_bearer_secret(authorization: Optional[str], secret: Optional[str]) -> None:
    """
    Check an Authorization header against a configured shared secret.
    An unset secret means the entry point is open.

    Raises:
        WebhookSignatureError: if a secret is configured and the header does not match
    """
    if not secret:
        return

    token = extract_bearer_token(authorization)
    if token is None:
        logger.warning("🚫 Missing or malformed Authorization header")
        raise WebhookSignatureError("Missing bearer token")

    if not constant_time_compare(token, secret):
        logger.warning("🚫 Bearer token does not match configured secret")
        raise WebhookSignatureError("Invalid bearer token")
