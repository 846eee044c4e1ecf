"""Test suite for the TTL cache store."""

import anyio
import pytest

from mapscache.application.cache.store import CacheStore
from mapscache.application.cache.statistics import CacheStatistics
from mapscache.application.cache.models import CacheEntry
from mapscache.constants import SNAPSHOT_FORMAT_VERSION
from mapscache.domain.models import CacheEntryRecord, CacheSnapshot


@pytest.fixture
def store(clock) -> CacheStore:
    """Create a small cache store driven by the fake clock."""
    return CacheStore(max_size=3, default_ttl_seconds=60, clock=clock)


class TestGetSet:
    def test_get_absent_before_set(self, store: CacheStore) -> None:
        assert store.get("missing") is None
        assert store.get("missing", "fallback") == "fallback"

    def test_get_returns_value_after_set(self, store: CacheStore) -> None:
        store.set("k", {"lat": 1.5})
        assert store.get("k") == {"lat": 1.5}

    def test_get_twice_returns_same_value(self, store: CacheStore) -> None:
        store.set("k", [1, 2, 3])
        assert store.get("k") == store.get("k") == [1, 2, 3]

    def test_get_updates_access_stats(self, store: CacheStore, clock) -> None:
        store.set("k", "v")
        clock.advance(5)
        store.get("k")
        store.get("k")

        entry = store._entries["k"]
        assert entry.access_count == 2
        assert entry.last_accessed_at == clock.now

    def test_has_does_not_touch_access_stats(self, store: CacheStore) -> None:
        store.set("k", "v")
        assert store.has("k")
        assert "k" in store
        assert store._entries["k"].access_count == 0
        assert store.stats().hits == 0

    def test_cached_none_is_a_hit(self, store: CacheStore) -> None:
        sentinel = object()
        store.set("k", None)
        assert store.get("k", sentinel) is None

    def test_overwrite_replaces_value_and_resets_entry(
        self, store: CacheStore, clock
    ) -> None:
        store.set("k", "old")
        store.get("k")
        clock.advance(10)
        store.set("k", "new")

        entry = store._entries["k"]
        assert store.get("k") == "new"
        assert entry.created_at == clock.now
        assert len(store) == 1

    def test_set_rejects_non_positive_ttl(self, store: CacheStore) -> None:
        with pytest.raises(ValueError):
            store.set("k", "v", ttl_seconds=0)
        with pytest.raises(ValueError):
            store.set("k", "v", ttl_seconds=-1)

    def test_delete_and_clear(self, store: CacheStore) -> None:
        store.set("a", 1)
        store.set("b", 2)

        assert store.delete("a") is True
        assert store.delete("a") is False
        assert store.get("a") is None

        store.clear()
        assert len(store) == 0
        assert store.get("b") is None


class TestExpiry:
    def test_entry_expires_after_ttl(self, store: CacheStore, clock) -> None:
        store.set("k", "v", ttl_seconds=10)
        clock.advance(9.5)
        assert store.get("k") == "v"

        clock.advance(0.5)
        assert store.get("k") is None
        assert "k" not in store._entries

    def test_expired_entry_is_absent_for_has(self, store: CacheStore, clock) -> None:
        store.set("k", "v", ttl_seconds=1)
        clock.advance(1)
        assert not store.has("k")
        assert len(store) == 0

    def test_sweep_removes_only_stale_entries(self, store: CacheStore, clock) -> None:
        store.set("short", 1, ttl_seconds=5)
        store.set("long", 2, ttl_seconds=50)
        clock.advance(10)

        assert store.sweep_expired() == ["short"]
        assert list(store._entries) == ["long"]
        assert store.stats().expirations == 1

    def test_sweep_with_nothing_stale(self, store: CacheStore) -> None:
        store.set("k", "v")
        assert store.sweep_expired() == []

    @pytest.mark.anyio
    async def test_cleanup_loop_sweeps_periodically(self, clock) -> None:
        store = CacheStore(
            max_size=10,
            default_ttl_seconds=1,
            cleanup_interval_seconds=0.01,
            clock=clock,
        )
        store.set("k", "v")
        clock.advance(2)

        async with anyio.create_task_group() as tg:
            tg.start_soon(store.run_cleanup_loop)
            with anyio.fail_after(2):
                while len(store):
                    await anyio.sleep(0.01)
            tg.cancel_scope.cancel()

        assert len(store) == 0


class TestCapacity:
    def test_eviction_scenario(self, clock) -> None:
        store = CacheStore(max_size=2, clock=clock)
        store.set("a", 1, 1.0)
        clock.advance(0.01)
        store.set("b", 2, 1.0)
        clock.advance(0.01)
        store.set("c", 3, 1.0)

        assert store.get("a") is None
        assert store.get("b") == 2
        assert store.get("c") == 3

    def test_size_never_exceeds_max(self, store: CacheStore, clock) -> None:
        for i in range(20):
            store.set(f"k{i}", i)
            clock.advance(1)
            assert len(store) <= store.max_size

        assert store.stats().evictions == 17

    def test_evicts_oldest_last_access(self, store: CacheStore, clock) -> None:
        store.set("a", 1)
        clock.advance(1)
        store.set("b", 2)
        clock.advance(1)
        store.set("c", 3)
        clock.advance(1)
        store.get("a")
        clock.advance(1)

        store.set("d", 4)

        assert set(store._entries) == {"a", "c", "d"}

    def test_overwrite_at_capacity_does_not_evict(self, store: CacheStore) -> None:
        store.set("a", 1)
        store.set("b", 2)
        store.set("c", 3)
        store.set("b", 20)

        assert len(store) == 3
        assert store.stats().evictions == 0
        assert store.get("b") == 20

    def test_configure_lower_max_size_evicts_immediately(
        self, store: CacheStore, clock
    ) -> None:
        for key in ("a", "b", "c"):
            store.set(key, key)
            clock.advance(1)

        store.configure(max_size=1)

        assert list(store._entries) == ["c"]

    def test_configure_validates_limits(self, store: CacheStore) -> None:
        with pytest.raises(ValueError):
            store.configure(max_size=0)
        with pytest.raises(ValueError):
            store.configure(default_ttl_seconds=-5)

    def test_constructor_validates_limits(self) -> None:
        with pytest.raises(ValueError):
            CacheStore(max_size=0)
        with pytest.raises(ValueError):
            CacheStore(cleanup_interval_seconds=0)


class TestStats:
    def test_stats_of_empty_store(self, store: CacheStore) -> None:
        stats = store.stats()
        assert stats.size == 0
        assert stats.max_size == 3
        assert stats.total_hits == 0
        assert stats.oldest_entry_age is None
        assert stats.newest_entry_age is None

    def test_stats_ages_and_hits(self, store: CacheStore, clock) -> None:
        store.set("old", 1)
        clock.advance(30)
        store.set("new", 2)
        clock.advance(5)
        store.get("old")
        store.get("new")
        store.get("new")
        store.get("nope")

        stats = store.stats()
        assert stats.size == 2
        assert stats.total_hits == 3
        assert stats.hits == 3
        assert stats.misses == 1
        assert stats.hit_rate == 0.75
        assert stats.oldest_entry_age == 35
        assert stats.newest_entry_age == 5
        assert stats.writes == 2
        assert stats.uptime_seconds == 35

    def test_clear_resets_statistics(self, store: CacheStore) -> None:
        store.set("k", 1)
        store.get("k")
        store.clear()
        assert store.stats().hits == 0


class TestSnapshotRestore:
    def test_snapshot_keeps_most_accessed_live_entries(
        self, clock
    ) -> None:
        store = CacheStore(max_size=10, clock=clock)
        store.set("never_read", 0)
        store.set("once", 1)
        store.set("twice", 2)
        store.set("stale", 3, ttl_seconds=1)
        store.get("once")
        store.get("twice")
        store.get("twice")
        store.get("stale")
        clock.advance(2)

        snapshot = store.snapshot(max_entries=5, min_access_count=1)

        assert snapshot.version == SNAPSHOT_FORMAT_VERSION
        assert snapshot.timestamp == clock.now
        assert [key for key, _ in snapshot.entries] == ["twice", "once"]

    def test_snapshot_is_bounded(self, clock) -> None:
        store = CacheStore(max_size=10, clock=clock)
        for i in range(5):
            store.set(f"k{i}", i)
            store.get(f"k{i}")

        assert len(store.snapshot(max_entries=2).entries) == 2

    def test_restore_loads_live_entries(self, clock) -> None:
        source = CacheStore(max_size=10, clock=clock)
        source.set("a", {"v": 1})
        source.get("a")
        snapshot = source.snapshot()

        clock.advance(10)
        target = CacheStore(max_size=10, clock=clock)
        assert target.restore(snapshot) == 1
        assert target.get("a") == {"v": 1}
        assert target._entries["a"].access_count == 2

    def test_restore_skips_entries_expired_at_load(self, clock) -> None:
        snapshot = CacheSnapshot(
            timestamp=clock.now,
            entries=[
                (
                    "gone",
                    CacheEntryRecord(
                        value=1,
                        created_at=clock.now - 100,
                        ttl_seconds=50,
                        access_count=1,
                        last_accessed_at=clock.now - 60,
                    ),
                ),
                (
                    "live",
                    CacheEntryRecord(
                        value=2,
                        created_at=clock.now - 10,
                        ttl_seconds=50,
                        access_count=1,
                        last_accessed_at=clock.now - 5,
                    ),
                ),
            ],
        )
        store = CacheStore(clock=clock)

        assert store.restore(snapshot) == 1
        assert list(store._entries) == ["live"]

    def test_restore_discards_stale_snapshot_wholesale(self, clock) -> None:
        source = CacheStore(default_ttl_seconds=7 * 24 * 3600, clock=clock)
        source.set("a", 1)
        source.get("a")
        snapshot = source.snapshot()

        clock.advance(24 * 3600 + 1)
        target = CacheStore(clock=clock)
        assert target.restore(snapshot) == 0
        assert len(target) == 0

    def test_restore_ignores_other_format_versions(self, clock) -> None:
        snapshot = CacheSnapshot(version=SNAPSHOT_FORMAT_VERSION + 1, timestamp=clock.now)
        assert CacheStore(clock=clock).restore(snapshot) == 0

    def test_restore_respects_capacity_and_existing_entries(self, clock) -> None:
        source = CacheStore(max_size=10, clock=clock)
        for key in ("a", "b", "c"):
            source.set(key, key)
            clock.advance(1)
            source.get(key)
        snapshot = source.snapshot()

        target = CacheStore(max_size=2, clock=clock)
        target.set("b", "mine")
        target.restore(snapshot)

        assert len(target) == 2
        assert target.get("b") == "mine"


class TestCacheEntry:
    def test_last_access_defaults_to_creation(self) -> None:
        entry = CacheEntry(key="k", value=1, created_at=100.0, ttl_seconds=10)
        assert entry.last_accessed_at == 100.0
        assert entry.age(105.0) == 5.0
        assert not entry.is_expired(109.9)
        assert entry.is_expired(110.0)

    def test_record_round_trip_keeps_access_metadata(self) -> None:
        entry = CacheEntry(
            key="k",
            value={"a": 1},
            created_at=1.0,
            ttl_seconds=5,
            access_count=3,
            last_accessed_at=2.0,
        )
        assert CacheEntry.from_record("k", entry.to_record()) == entry


class TestCacheStatistics:
    def test_counters_and_uptime(self, clock) -> None:
        stats = CacheStatistics(clock)
        assert stats.hit_rate == 0.0
        stats.record_hit()
        stats.record_miss()
        stats.record_eviction()
        stats.record_expiration(2)
        stats.record_write()
        clock.advance(12)

        assert stats.hit_rate == 0.5
        assert stats.evictions == 1
        assert stats.expirations == 2
        assert stats.writes == 1
        assert stats.uptime_seconds == 12

        stats.reset()
        assert stats.cache_hits == 0
        assert stats.writes == 0
        assert stats.uptime_seconds == 0
