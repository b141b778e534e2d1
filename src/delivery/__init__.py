"""Delivery of the finished digest by email.

Public API:
    - DigestMailer: Sends digest text through the Gmail API
    - GmailSendAuthenticator: OAuth token handling for the send scope
    - build_subject: Digest email subject line
    - render_html: Markdown digest rendered as a styled HTML document
    - DeliveryError, AuthenticationError, NonInteractiveAuthError
"""

from .exceptions import AuthenticationError, DeliveryError, NonInteractiveAuthError
from .gmail_auth import GmailSendAuthenticator
from .mailer import DigestMailer, build_subject, render_html

__all__ = [
    "DigestMailer",
    "GmailSendAuthenticator",
    "build_subject",
    "render_html",
    "DeliveryError",
    "AuthenticationError",
    "NonInteractiveAuthError",
]
