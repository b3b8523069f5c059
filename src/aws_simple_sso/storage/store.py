"""String key-value stores backing the SSO cache.

``FileKeyValueStore`` keeps one file per key under a root directory, so a
token written by one process is visible to the next invocation. Writes are
not locked: concurrent processes race and the last write wins.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """In-process store, mostly useful for tests and short-lived hosts."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileKeyValueStore:
    """Persist each key as a UTF-8 file under ``root``."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, key: str) -> Path:
        if not key:
            raise ValueError("Cache key must not be empty")
        return self._root / quote(key, safe="")

    def get(self, key: str) -> str | None:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        self._root.mkdir(parents=True, exist_ok=True)
        # Replace atomically so readers never observe a half-written file.
        fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Wrote cache entry %s", key)

    def delete(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)
