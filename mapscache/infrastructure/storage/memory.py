"""Process-local blob store for tests and ephemeral deployments."""

from typing import Optional

from .base import BlobStore


class MemoryBlobStore(BlobStore):
    """Keeps the blob in memory; it does not survive a restart."""

    def __init__(self, initial: Optional[str] = None, name: str = "memory"):
        self._blob = initial
        self.name = name
        self.save_count = 0

    def load(self) -> Optional[str]:
        return self._blob

    def save(self, blob: str) -> None:
        self._blob = blob
        self.save_count += 1

    def clear(self) -> None:
        self._blob = None
