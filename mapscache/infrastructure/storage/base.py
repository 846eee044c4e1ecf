"""Blob store abstraction used for cache and ledger snapshots."""

from abc import ABC, abstractmethod
from typing import Optional


class BlobStore(ABC):
    """Holds one serialized snapshot.

    Implementations may keep the blob in a file, in memory, or in an external
    service. Failures are reported as ``PersistenceError``; callers decide
    whether to absorb them.
    """

    name: str = "blob"

    @abstractmethod
    def load(self) -> Optional[str]:
        """Return the stored blob, or None when nothing has been saved."""

    @abstractmethod
    def save(self, blob: str) -> None:
        """Replace the stored blob."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored blob. No error if nothing is stored."""
