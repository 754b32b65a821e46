"""
JSON File Storage Implementation

DESIGN DECISION: Each key is stored as its own file in the data directory.
This keeps every write a full-value replace of one small file:
1. Write the new value to a temp file in the same directory
2. os.replace() it over the old file (atomic on the same filesystem)

TRADEOFFS:
- No transactions across keys (a crash between two writes can leave
  the user list and a user's data out of step; accepted)
- One process only: concurrent writers are last-writer-wins

Keys may contain any characters (user names are part of per-user keys),
so file names are percent-encoded.
"""

import os
import tempfile
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import quote, unquote

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from money_tracker.services.storage.interface import (
    KeyValueStoreInterface,
    StorageError,
)


FILE_SUFFIX = ".json"


class JsonFileStore(KeyValueStoreInterface):
    """
    Durable store keeping one JSON document per key.

    The replace step is retried on PermissionError, which some platforms
    raise while another program (a virus scanner, a sync client) briefly
    holds the target file open.
    """

    def __init__(self, data_dir: Path, write_retries: int = 3):
        self._data_dir = Path(data_dir)
        self._replace = retry(
            stop=stop_after_attempt(write_retries),
            wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
            retry=retry_if_exception_type(PermissionError),
            reraise=True,
        )(os.replace)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        """Map a key to its file path."""
        if not key:
            raise StorageError("Storage key must not be empty")
        return self._data_dir / f"{quote(key, safe='')}{FILE_SUFFIX}"

    def get(self, key: str) -> Optional[str]:
        """Read a key's file, or None if it does not exist."""
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read '{key}': {e}")

    def set(self, key: str, value: str) -> None:
        """Atomically replace a key's file with the new value."""
        path = self._path_for(key)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", delete=False, dir=self._data_dir, encoding="utf-8", suffix=".tmp"
            ) as tmp:
                tmp.write(value)
                tmp.flush()
                os.fsync(tmp.fileno())
        except OSError as e:
            raise StorageError(f"Failed to write '{key}': {e}")

        try:
            self._replace(tmp.name, path)
        except OSError as e:
            Path(tmp.name).unlink(missing_ok=True)
            raise StorageError(f"Failed to write '{key}': {e}")

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete '{key}': {e}")

    def keys(self) -> Iterator[str]:
        if not self._data_dir.exists():
            return iter(())
        return iter(sorted(
            unquote(path.name[: -len(FILE_SUFFIX)])
            for path in self._data_dir.glob(f"*{FILE_SUFFIX}")
        ))
