"""Cache module: TTL store, statistics, key builders and snapshot persistence."""

from .store import CacheStore
from .models import CacheEntry
from .statistics import CacheStatistics
from .persistence import CacheSnapshotManager

__all__ = ["CacheStore", "CacheEntry", "CacheStatistics", "CacheSnapshotManager"]
