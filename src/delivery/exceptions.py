"""Exceptions for digest delivery."""


class DeliveryError(Exception):
    """Raised when the digest email cannot be sent."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to deliver digest: {reason}")


class AuthenticationError(DeliveryError):
    """Raised when Gmail credentials cannot be obtained."""

    def __init__(self, reason: str):
        super().__init__(f"Gmail authentication failed: {reason}")


class NonInteractiveAuthError(AuthenticationError):
    """Raised when the OAuth flow needs a browser but running unattended."""

    def __init__(self, reason: str):
        super().__init__(
            f"{reason}, and GMAIL_NON_INTERACTIVE=1 forbids the browser flow. "
            "Re-authenticate locally or update the stored token."
        )
