"""Snapshot persistence for the cache store.

Snapshots are taken at shutdown and periodically, and restored once at
startup. Blob-store I/O runs in a worker thread so it never blocks the event
loop. Every failure is logged and absorbed: a cache that cannot be persisted
simply starts empty next time.
"""

from typing import Optional

import anyio
from asyncer import asyncify
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from .store import CacheStore
from ...constants import DEFAULT_SNAPSHOT_INTERVAL_SECONDS
from ...domain.exceptions import PersistenceError
from ...domain.models import CacheSnapshot
from ...infrastructure.storage.base import BlobStore
from ...logging import info, warning, LogRecord, LogEvent


class CacheSnapshotManager:
    """Moves cache snapshots between a ``CacheStore`` and a ``BlobStore``."""

    def __init__(
        self,
        cache: CacheStore,
        blob_store: BlobStore,
        save_interval_seconds: float = DEFAULT_SNAPSHOT_INTERVAL_SECONDS,
    ):
        """
        Initialize the snapshot manager.

        Args:
            cache: The cache store to snapshot and restore
            blob_store: Where the serialized snapshot lives
            save_interval_seconds: Period of ``run_autosave_loop``
        """
        self.cache = cache
        self.blob_store = blob_store
        self.save_interval_seconds = save_interval_seconds
        self.last_saved_entries: Optional[int] = None

    async def load(self) -> int:
        """Restore the cache from the blob store. Returns the entries loaded."""
        try:
            blob = await asyncify(self.blob_store.load)()
        except PersistenceError as e:
            warning(
                LogRecord(
                    event=LogEvent.PERSISTENCE_FAILURE.value,
                    message=f"Failed to load cache snapshot: {e.message}",
                    data={"store": self.blob_store.name},
                ),
                exc=e,
            )
            return 0

        if blob is None:
            return 0

        try:
            snapshot = CacheSnapshot.model_validate_json(blob)
        except ValidationError as e:
            warning(
                LogRecord(
                    event=LogEvent.PERSISTENCE_FAILURE.value,
                    message="Ignoring unreadable cache snapshot",
                    data={"store": self.blob_store.name, "errors": e.error_count()},
                )
            )
            await self._discard()
            return 0

        loaded = self.cache.restore(snapshot)
        if loaded == 0 and snapshot.entries:
            await self._discard()
        return loaded

    async def save(self) -> bool:
        """Write a snapshot of the most accessed entries. Returns True on success."""
        snapshot = self.cache.snapshot()
        try:
            blob = snapshot.model_dump_json()
            await asyncify(self.blob_store.save)(blob)
        except (PersistenceError, PydanticSerializationError) as e:
            warning(
                LogRecord(
                    event=LogEvent.PERSISTENCE_FAILURE.value,
                    message=f"Failed to save cache snapshot: {e}",
                    data={"store": self.blob_store.name},
                ),
                exc=e,
            )
            return False

        self.last_saved_entries = len(snapshot.entries)
        info(
            LogRecord(
                event=LogEvent.CACHE_SNAPSHOT.value,
                message=f"Saved {len(snapshot.entries)} cache entries to snapshot",
                data={"store": self.blob_store.name},
            )
        )
        return True

    async def run_autosave_loop(self) -> None:
        """Save a snapshot every ``save_interval_seconds`` until cancelled."""
        while True:
            await anyio.sleep(self.save_interval_seconds)
            await self.save()

    async def _discard(self) -> None:
        try:
            await asyncify(self.blob_store.clear)()
        except PersistenceError as e:
            warning(
                LogRecord(
                    event=LogEvent.PERSISTENCE_FAILURE.value,
                    message=f"Failed to discard cache snapshot: {e.message}",
                    data={"store": self.blob_store.name},
                ),
                exc=e,
            )
