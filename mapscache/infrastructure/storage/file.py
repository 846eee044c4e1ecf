"""File-backed blob store with atomic replacement."""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from .base import BlobStore
from ...domain.exceptions import PersistenceError


class FileBlobStore(BlobStore):
    """Stores the blob as a UTF-8 text file.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace`` so a crash never leaves a half-written snapshot.
    """

    def __init__(self, path: Union[str, os.PathLike]):
        self.path = Path(path)
        self.name = str(self.path)

    def load(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(
                f"Failed to read snapshot from {self.path}: {e}", store=self.name
            ) from e

    def save(self, blob: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(blob)
                os.replace(tmp_path, self.path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(
                f"Failed to write snapshot to {self.path}: {e}", store=self.name
            ) from e

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(
                f"Failed to remove snapshot {self.path}: {e}", store=self.name
            ) from e
