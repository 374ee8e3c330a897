"""
Email Service using Resend
Compiles MJML templates to HTML and delivers them through the Resend API.
Without RESEND_API_KEY, sends are simulated and reported as successful so a
deployment without email credentials keeps working.
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Optional

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, EMAIL_SEND_TIMEOUT_SECONDS, RESEND_API_KEY

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    """Outcome of a single send. `simulated` is informational only."""

    success: bool
    simulated: bool = False
    message_id: Optional[str] = None
    error: Optional[str] = None


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(io.BytesIO(mjml_content.encode("utf-8")))
        # mjml_to_html returns a result object with 'html' and 'errors'
        errors = getattr(result, "errors", None)
        if errors:
            logger.warning(f"MJML compilation warnings: {errors}")
        if isinstance(result, dict):
            return result.get("html", "")
        return getattr(result, "html", str(result))
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


class ResendEmailSender:
    """Sends one HTML email per call through Resend"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_address: Optional[str] = None,
        timeout: float = EMAIL_SEND_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key
        self.from_address = from_address or EMAIL_FROM_ADDRESS
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def send(self, to: str, subject: str, html_body: str) -> SendResult:
        if not self.is_configured:
            logger.warning("⚠️ RESEND_API_KEY not set. Skipping actual email sending.")
            logger.info(f"Simulating email send: TO={to}, SUBJECT={subject}, BODY={html_body[:100]}...")
            return SendResult(success=True, simulated=True)

        email_data = {
            "from": self.from_address,
            "to": [to],
            "subject": subject,
            "html": html_body,
        }

        try:
            logger.info(f"📧 Sending email via Resend to: {to}")
            resend.api_key = self.api_key
            # The SDK call blocks; run it off the event loop so the timeout applies
            response = await asyncio.wait_for(
                asyncio.to_thread(resend.Emails.send, email_data), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"❌ Email send to {to} timed out after {self.timeout}s")
            return SendResult(success=False, error=f"Timed out after {self.timeout}s")
        except Exception as e:
            logger.error(f"❌ Email send error to {to}: {e}")
            return SendResult(success=False, error=str(e))

        message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        logger.info(f"✅ Email sent successfully via Resend: {message_id}")
        return SendResult(success=True, message_id=message_id)


def get_email_sender() -> ResendEmailSender:
    """Dependency injection for the email sender"""
    return ResendEmailSender(api_key=RESEND_API_KEY)
