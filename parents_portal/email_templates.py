"""
MJML Email Templates
Event notification emails sent to parents, compiled to HTML before sending
"""

from datetime import datetime
from typing import Optional

from .config import APP_NAME, FRONTEND_URL
from .utils.sanitization import sanitize_string

# Association theme colors
THEME = {
    "primary": "#2563eb",
    "primary_light": "#dbeafe",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}


def format_event_date(event_date: datetime) -> str:
    """Human readable event date, always shown in UTC"""
    return event_date.strftime("%A, %d %B %Y at %H:%M UTC")


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="40px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 24px 0" />

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              <em>This is an automated notification from the {APP_NAME} App.</em>
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _event_details(title: str, event_date: datetime, description: Optional[str]) -> str:
    return f"""
    <mj-text>
      <strong>Title:</strong> {title}<br/>
      <strong>Date:</strong> {format_event_date(event_date)}<br/>
      <strong>Description:</strong> {sanitize_string(description) or 'No description provided.'}
    </mj-text>
    """


def event_reminder_template(
    title: str, event_date: datetime, description: Optional[str] = None
) -> str:
    """Reminder for an upcoming event MJML template"""
    safe_title = sanitize_string(title)
    content = f"""
    <mj-text>
      Hello Parent,
    </mj-text>

    <mj-text>
      This is a reminder for our upcoming event:
    </mj-text>

    {_event_details(safe_title, event_date, description)}

    <mj-text>
      We look forward to your participation!
    </mj-text>
    """

    return get_base_template(
        title=f"Event Reminder: {safe_title}",
        preview_text=f"{safe_title} is coming up on {event_date:%d %B %Y}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard",
        cta_label="View Events",
    )


def new_event_template(title: str, event_date: datetime, description: Optional[str] = None) -> str:
    """New event announcement MJML template"""
    safe_title = sanitize_string(title)
    content = f"""
    <mj-text>
      Hello Parent,
    </mj-text>

    <mj-text>
      We have a new event scheduled:
    </mj-text>

    {_event_details(safe_title, event_date, description)}

    <mj-text>
      We hope to see you there!
    </mj-text>
    """

    return get_base_template(
        title=f"New Event: {safe_title}",
        preview_text=f"New event on {event_date:%d %B %Y}: {safe_title}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard",
        cta_label="View Events",
    )
