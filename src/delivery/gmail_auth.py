"""Gmail API credentials for sending the digest."""

import logging
import os
from pathlib import Path
from typing import Optional

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import Resource, build

from .exceptions import AuthenticationError, NonInteractiveAuthError

logger = logging.getLogger(__name__)

SEND_SCOPES = ["https://www.googleapis.com/auth/gmail.send"]


class GmailSendAuthenticator:
    """Loads, refreshes or creates an OAuth token with the gmail.send scope.

    Paths default to GMAIL_CREDENTIALS_PATH / GMAIL_TOKEN_PATH, then to
    ``config/credentials.json`` and ``config/send_token.json``.
    """

    def __init__(
        self,
        credentials_path: Optional[Path] = None,
        token_path: Optional[Path] = None,
        interactive: bool = True,
    ):
        config_dir = Path(__file__).parent.parent.parent / "config"
        self._credentials_path = credentials_path or Path(
            os.environ.get("GMAIL_CREDENTIALS_PATH", config_dir / "credentials.json")
        )
        self._token_path = token_path or Path(
            os.environ.get("GMAIL_TOKEN_PATH", config_dir / "send_token.json")
        )
        self._interactive = interactive and not os.environ.get("GMAIL_NON_INTERACTIVE")
        self._service: Optional[Resource] = None

    def _load_token(self) -> Optional[Credentials]:
        if not self._token_path.exists():
            return None
        creds = Credentials.from_authorized_user_file(str(self._token_path), SEND_SCOPES)
        granted = creds.granted_scopes or creds.scopes or []
        if all(scope in granted for scope in SEND_SCOPES):
            return creds
        if not self._interactive:
            raise AuthenticationError(
                f"token at {self._token_path} lacks scopes {SEND_SCOPES}"
            )
        logger.info("Stored Gmail token lacks the send scope, re-authenticating")
        self._token_path.unlink()
        return None

    def _credentials(self) -> Credentials:
        creds = self._load_token()
        if creds and creds.valid:
            return creds

        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())
        else:
            if not self._interactive:
                raise NonInteractiveAuthError(
                    "No valid token exists" if not creds else "Token expired without refresh token"
                )
            if not self._credentials_path.exists():
                raise AuthenticationError(
                    f"credentials file not found at {self._credentials_path}"
                )
            flow = InstalledAppFlow.from_client_secrets_file(
                str(self._credentials_path), SEND_SCOPES
            )
            creds = flow.run_local_server(port=0)

        self._token_path.parent.mkdir(parents=True, exist_ok=True)
        self._token_path.write_text(creds.to_json())
        return creds

    def get_service(self) -> Resource:
        """Build the Gmail service once and cache it."""
        if self._service is None:
            self._service = build("gmail", "v1", credentials=self._credentials())
        return self._service
