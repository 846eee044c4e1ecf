"""Cache statistics tracking and reporting."""

import time
from typing import Callable


class CacheStatistics:
    """Tracks hit/miss, write and removal counters of the cache store."""

    def __init__(self, clock: Callable[[], float] = time.time):
        """Initialize cache statistics."""
        self._clock = clock
        self.cache_hits = 0
        self.cache_misses = 0
        self.evictions = 0
        self.expirations = 0
        self.writes = 0
        self.start_time = clock()

    def record_hit(self):
        """Record a cache hit."""
        self.cache_hits += 1

    def record_miss(self):
        """Record a cache miss."""
        self.cache_misses += 1

    def record_eviction(self, count: int = 1):
        """Record capacity eviction(s)."""
        self.evictions += count

    def record_expiration(self, count: int = 1):
        """Record entries removed because their TTL elapsed."""
        self.expirations += count

    def record_write(self):
        self.writes += 1

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.cache_hits + self.cache_misses
        if total == 0:
            return 0.0
        return self.cache_hits / total

    @property
    def uptime_seconds(self) -> float:
        """Seconds since the counters were created or last reset."""
        return self._clock() - self.start_time

    def reset(self):
        """Reset all statistics."""
        self.cache_hits = 0
        self.cache_misses = 0
        self.evictions = 0
        self.expirations = 0
        self.writes = 0
        self.start_time = self._clock()
