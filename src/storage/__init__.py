"""Persistence for the channel cache, watermarks and message history.

Public API:
    - DigestRepository: Interface for the persistent store
    - InMemoryRepository: In-memory implementation for tests
    - PostgresRepository: PostgreSQL implementation
    - WatermarkStore: Per-channel sync watermarks
    - PersistenceError: Raised on store failures
"""

from .exceptions import PersistenceError
from .repository import DigestRepository, InMemoryRepository
from .postgres import PostgresRepository
from .watermark import WatermarkStore

__all__ = [
    "DigestRepository",
    "InMemoryRepository",
    "PostgresRepository",
    "WatermarkStore",
    "PersistenceError",
]
