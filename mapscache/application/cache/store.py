"""In-memory TTL cache with capacity-bounded, recency-based eviction."""

import time
from collections import OrderedDict
from typing import Any, Callable, List, Optional

import anyio

from .models import CacheEntry
from .statistics import CacheStatistics
from ...constants import (
    DEFAULT_CACHE_CLEANUP_INTERVAL_SECONDS,
    DEFAULT_CACHE_MAX_SIZE,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_SNAPSHOT_MAX_AGE_SECONDS,
    DEFAULT_SNAPSHOT_MAX_ENTRIES,
    DEFAULT_SNAPSHOT_MIN_ACCESS_COUNT,
    SNAPSHOT_FORMAT_VERSION,
)
from ...domain.models import CacheSnapshot, CacheStats
from ...logging import debug, info, warning, LogRecord, LogEvent


def _short(key: str) -> str:
    return key if len(key) <= 32 else key[:32] + "..."


class CacheStore:
    """
    Category-agnostic key/value cache with per-entry TTL.

    Entries are visible only while ``now - created_at < ttl``. Stale entries
    are dropped lazily on read and in bulk by ``sweep_expired``. When the
    store is full, writing a new key first evicts the entry with the oldest
    ``last_accessed_at``.

    All operations are synchronous; the store is meant to be shared by every
    coroutine of one event loop without locking.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_CACHE_MAX_SIZE,
        default_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        cleanup_interval_seconds: float = DEFAULT_CACHE_CLEANUP_INTERVAL_SECONDS,
        snapshot_max_entries: int = DEFAULT_SNAPSHOT_MAX_ENTRIES,
        snapshot_min_access_count: int = DEFAULT_SNAPSHOT_MIN_ACCESS_COUNT,
        snapshot_max_age_seconds: float = DEFAULT_SNAPSHOT_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache store.

        Args:
            max_size: Upper bound on the number of entries
            default_ttl_seconds: TTL used when ``set`` gets none
            cleanup_interval_seconds: Period of ``run_cleanup_loop``
            snapshot_max_entries: Most entries written by ``snapshot``
            snapshot_min_access_count: Reads an entry needs to be snapshotted
            snapshot_max_age_seconds: Older snapshots are discarded on restore
            clock: Wall-clock source in seconds
        """
        self._validate_positive("max_size", max_size)
        self._validate_positive("default_ttl_seconds", default_ttl_seconds)
        self._validate_positive("cleanup_interval_seconds", cleanup_interval_seconds)
        self.max_size = max_size
        self.default_ttl_seconds = default_ttl_seconds
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self.snapshot_max_entries = snapshot_max_entries
        self.snapshot_min_access_count = snapshot_min_access_count
        self.snapshot_max_age_seconds = snapshot_max_age_seconds
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._statistics = CacheStatistics(clock)

    @staticmethod
    def _validate_positive(name: str, value: float) -> None:
        if value is None or value <= 0:
            raise ValueError(f"{name} must be positive, got {value!r}")

    def configure(
        self,
        max_size: Optional[int] = None,
        default_ttl_seconds: Optional[float] = None,
        cleanup_interval_seconds: Optional[float] = None,
    ) -> None:
        """Change store limits at runtime.

        Lowering ``max_size`` evicts least recently accessed entries right
        away so the capacity bound holds at all times.
        """
        if max_size is not None:
            self._validate_positive("max_size", max_size)
            self.max_size = max_size
            self._evict_down_to(self.max_size)
        if default_ttl_seconds is not None:
            self._validate_positive("default_ttl_seconds", default_ttl_seconds)
            self.default_ttl_seconds = default_ttl_seconds
        if cleanup_interval_seconds is not None:
            self._validate_positive("cleanup_interval_seconds", cleanup_interval_seconds)
            self.cleanup_interval_seconds = cleanup_interval_seconds

    def get(self, key: str, default: Any = None) -> Any:
        """
        Return the cached value for ``key`` and update its access stats.

        Args:
            key: Cache key
            default: Returned when the key is absent or stale

        Returns:
            Cached value if present and live, ``default`` otherwise
        """
        entry = self._entries.get(key)
        if entry is None:
            self._statistics.record_miss()
            return default

        now = self._clock()
        if entry.is_expired(now):
            self._remove_expired(key)
            self._statistics.record_miss()
            return default

        entry.update_access(now)
        self._entries.move_to_end(key)
        self._statistics.record_hit()
        return entry.value

    def has(self, key: str) -> bool:
        """Check whether ``key`` is live without touching access stats."""
        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry.is_expired(self._clock()):
            self._remove_expired(key)
            return False
        return True

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __len__(self) -> int:
        return len(self._entries)

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """
        Insert or overwrite an entry.

        Args:
            key: Cache key
            value: Serializable payload
            ttl_seconds: Entry lifetime, the store default when None
        """
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._validate_positive("ttl_seconds", ttl)

        if key in self._entries:
            del self._entries[key]
        else:
            self._evict_down_to(self.max_size - 1)

        self._entries[key] = CacheEntry(
            key=key, value=value, created_at=self._clock(), ttl_seconds=ttl
        )
        self._statistics.record_write()

    def delete(self, key: str) -> bool:
        """Remove one entry. Returns True if something was removed."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Remove all entries and reset statistics."""
        removed = len(self._entries)
        self._entries.clear()
        self._statistics.reset()
        info(
            LogRecord(
                event=LogEvent.CACHE_CLEARED.value,
                message="Cache cleared",
                data={"removed": removed},
            )
        )

    def _remove_expired(self, key: str) -> None:
        self._entries.pop(key, None)
        self._statistics.record_expiration()
        debug(
            LogRecord(
                event=LogEvent.CACHE_SWEEP.value,
                message="Dropped expired cache entry on read",
                data={"cache_key": _short(key)},
            )
        )

    def _evict_down_to(self, limit: int) -> None:
        while len(self._entries) > max(limit, 0):
            self._evict_lru()

    def _evict_lru(self) -> None:
        """Evict the entry with the oldest last access time."""
        if not self._entries:
            return

        # Ties resolve to the earliest entry in recency order.
        victim = min(self._entries.values(), key=lambda e: e.last_accessed_at)
        del self._entries[victim.key]
        self._statistics.record_eviction()

        debug(
            LogRecord(
                event=LogEvent.CACHE_EVICTION.value,
                message="Evicted least recently accessed cache entry",
                data={
                    "evicted_key": _short(victim.key),
                    "access_count": victim.access_count,
                },
            )
        )

    def sweep_expired(self) -> List[str]:
        """
        Remove every stale entry.

        Returns:
            Keys that were removed
        """
        now = self._clock()
        expired_keys = [
            key for key, entry in self._entries.items() if entry.is_expired(now)
        ]
        for key in expired_keys:
            del self._entries[key]

        if expired_keys:
            self._statistics.record_expiration(len(expired_keys))
            info(
                LogRecord(
                    event=LogEvent.CACHE_SWEEP.value,
                    message=f"Swept {len(expired_keys)} expired entries",
                    data={"evicted_count": len(expired_keys)},
                )
            )
        return expired_keys

    async def run_cleanup_loop(self) -> None:
        """Sweep expired entries every ``cleanup_interval_seconds`` until cancelled."""
        while True:
            await anyio.sleep(self.cleanup_interval_seconds)
            try:
                self.sweep_expired()
            except Exception as e:
                warning(
                    LogRecord(
                        event=LogEvent.CACHE_SWEEP.value,
                        message=f"Error in cache cleanup: {e}",
                    ),
                    exc=e,
                )

    def stats(self) -> CacheStats:
        """Read-only snapshot of the store for observability."""
        now = self._clock()
        total_hits = sum(entry.access_count for entry in self._entries.values())
        ages = [entry.age(now) for entry in self._entries.values()]

        return CacheStats(
            size=len(self._entries),
            max_size=self.max_size,
            total_hits=total_hits,
            hits=self._statistics.cache_hits,
            misses=self._statistics.cache_misses,
            hit_rate=round(self._statistics.hit_rate, 3),
            evictions=self._statistics.evictions,
            expirations=self._statistics.expirations,
            writes=self._statistics.writes,
            uptime_seconds=round(self._statistics.uptime_seconds, 1),
            oldest_entry_age=max(ages) if ages else None,
            newest_entry_age=min(ages) if ages else None,
        )

    def snapshot(
        self,
        max_entries: Optional[int] = None,
        min_access_count: Optional[int] = None,
    ) -> CacheSnapshot:
        """
        Capture the most accessed live entries.

        Args:
            max_entries: Upper bound on captured entries
            min_access_count: Entries read fewer times are skipped

        Returns:
            Snapshot ready to be serialized
        """
        limit = self.snapshot_max_entries if max_entries is None else max_entries
        threshold = (
            self.snapshot_min_access_count
            if min_access_count is None
            else min_access_count
        )
        now = self._clock()
        candidates = [
            entry
            for entry in self._entries.values()
            if not entry.is_expired(now) and entry.access_count >= threshold
        ]
        candidates.sort(key=lambda e: e.access_count, reverse=True)

        return CacheSnapshot(
            version=SNAPSHOT_FORMAT_VERSION,
            timestamp=now,
            entries=[(entry.key, entry.to_record()) for entry in candidates[:limit]],
        )

    def restore(self, snapshot: CacheSnapshot) -> int:
        """
        Load live entries from a snapshot.

        A snapshot older than ``snapshot_max_age_seconds`` is discarded as a
        whole. Entries already present in the store are kept as they are.

        Returns:
            Number of entries loaded
        """
        now = self._clock()
        if snapshot.version != SNAPSHOT_FORMAT_VERSION:
            info(
                LogRecord(
                    event=LogEvent.CACHE_RESTORE.value,
                    message="Ignoring cache snapshot with unknown format version",
                    data={"version": snapshot.version},
                )
            )
            return 0

        snapshot_age = now - snapshot.timestamp
        if snapshot_age > self.snapshot_max_age_seconds:
            info(
                LogRecord(
                    event=LogEvent.CACHE_RESTORE.value,
                    message="Discarding stale cache snapshot",
                    data={"snapshot_age_seconds": round(snapshot_age, 1)},
                )
            )
            return 0

        loaded = 0
        records = sorted(snapshot.entries, key=lambda item: item[1].last_accessed_at)
        for key, record in records:
            entry = CacheEntry.from_record(key, record)
            if key in self._entries or entry.is_expired(now):
                continue
            self._evict_down_to(self.max_size - 1)
            self._entries[key] = entry
            loaded += 1

        info(
            LogRecord(
                event=LogEvent.CACHE_RESTORE.value,
                message=f"Restored {loaded} cache entries from snapshot",
                data={"loaded": loaded, "offered": len(snapshot.entries)},
            )
        )
        return loaded
