"""
Persistence-specific errors.
"""


class PersistenceError(Exception):
    """Base exception for persistence operations."""

    pass


class StorageQuotaExceeded(PersistenceError):
    """Raised when a write would push the storage file past its size limit."""

    def __init__(self, key: str, size: int, limit: int):
        self.key = key
        self.size = size
        self.limit = limit
        super().__init__(
            f"Cannot write '{key}': storage would grow to {size} bytes "
            f"(limit {limit} bytes)"
        )
