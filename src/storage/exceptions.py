"""Exceptions for the storage module."""


class PersistenceError(Exception):
    """Raised when the local store cannot be read or written.

    Attributes:
        operation: Name of the repository operation that failed.
    """

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Persistence failure during {operation}: {reason}")
