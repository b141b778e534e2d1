"""DigestMailer: sends the generated digest through the Gmail API."""

import base64
import logging
from datetime import date
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import markdown
from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from .exceptions import DeliveryError
from .gmail_auth import GmailSendAuthenticator

logger = logging.getLogger(__name__)

EMAIL_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<style>
body {{ font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 800px; margin: 0 auto; padding: 20px; }}
h1, h2, h3 {{ color: #2c3e50; }}
h1 {{ font-size: 28px; }}
h2 {{ font-size: 24px; }}
h3 {{ font-size: 20px; }}
a {{ color: #3498db; }}
ul {{ padding-left: 20px; }}
li {{ margin: 8px 0; }}
code {{ background: #f8f9fa; padding: 2px 4px; }}
blockquote {{ border-left: 4px solid #e9ecef; margin: 0; padding-left: 12px; }}
</style>
</head>
<body>
{content}
</body>
</html>
"""


def build_subject(focus: str, day: Optional[date] = None) -> str:
    """Subject line for a digest email."""
    day = day or date.today()
    return f"Slack Digest [{focus}] - {day.isoformat()}"


def render_html(body: str) -> str:
    """Render the model's markdown digest as a styled HTML document."""
    content = markdown.markdown(body, extensions=["extra", "sane_lists"])
    return EMAIL_TEMPLATE.format(content=content)


class DigestMailer:
    """Delivers digest text as a multipart email.

    The markdown body is sent twice: verbatim as the plain text part and
    rendered through ``render_html`` as the HTML part.
    """

    def __init__(
        self,
        authenticator: Optional[GmailSendAuthenticator] = None,
        service: Optional[Resource] = None,
    ):
        """Initialize the mailer.

        Args:
            authenticator: Gmail authenticator with the send scope.
                Created with default paths if not provided.
            service: Pre-built Gmail API service (for testing).
                Overrides authenticator if provided.
        """
        self._authenticator = authenticator
        self._service = service

    def _get_service(self) -> Resource:
        if self._service is None:
            if self._authenticator is None:
                self._authenticator = GmailSendAuthenticator()
            self._service = self._authenticator.get_service()
        return self._service

    def send(self, subject: str, body: str, recipients: list[str]) -> Optional[str]:
        """Send the digest to ``recipients``.

        Returns:
            Gmail message ID, or None when there are no recipients.

        Raises:
            DeliveryError: If the Gmail API rejects the message.
        """
        if not recipients:
            logger.info("No email recipients configured, skipping email send")
            return None

        message = MIMEMultipart("alternative")
        message.attach(MIMEText(body, "plain", "utf-8"))
        message.attach(MIMEText(render_html(body), "html", "utf-8"))
        message["to"] = ", ".join(recipients)
        message["subject"] = subject
        raw = base64.urlsafe_b64encode(message.as_bytes()).decode()

        try:
            result = (
                self._get_service()
                .users()
                .messages()
                .send(userId="me", body={"raw": raw})
                .execute()
            )
        except HttpError as e:
            raise DeliveryError(str(e)) from e

        logger.info("Email sent successfully to %s", ", ".join(recipients))
        return result["id"]
