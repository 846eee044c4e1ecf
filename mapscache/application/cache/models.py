"""Data models for the cache module."""

from dataclasses import dataclass
from typing import Any

from ...domain.models import CacheEntryRecord


@dataclass
class CacheEntry:
    """Represents a cached provider result with access metadata."""

    key: str
    value: Any
    created_at: float
    ttl_seconds: float
    access_count: int = 0
    last_accessed_at: float = 0.0

    def __post_init__(self):
        if not self.last_accessed_at:
            self.last_accessed_at = self.created_at

    def is_expired(self, now: float) -> bool:
        """Check if this entry has outlived its TTL."""
        return now - self.created_at >= self.ttl_seconds

    def age(self, now: float) -> float:
        return now - self.created_at

    def update_access(self, now: float):
        """Update access count and timestamp."""
        self.access_count += 1
        self.last_accessed_at = now

    def to_record(self) -> CacheEntryRecord:
        return CacheEntryRecord(
            value=self.value,
            created_at=self.created_at,
            ttl_seconds=self.ttl_seconds,
            access_count=self.access_count,
            last_accessed_at=self.last_accessed_at,
        )

    @classmethod
    def from_record(cls, key: str, record: CacheEntryRecord) -> "CacheEntry":
        return cls(
            key=key,
            value=record.value,
            created_at=record.created_at,
            ttl_seconds=record.ttl_seconds,
            access_count=record.access_count,
            last_accessed_at=record.last_accessed_at,
        )
