"""Exceptions for the digest module."""


class DigestError(Exception):
    """Base exception for digest errors."""

    pass


class DigestGenerationError(DigestError):
    """Raised when the digest text cannot be produced."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to generate digest: {reason}")
