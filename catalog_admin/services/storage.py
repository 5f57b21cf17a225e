from __future__ import annotations

"""Durable key-value areas: the rendezvous point shared by every context."""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Iterator, Optional, Protocol

from catalog_admin.exceptions import StorageQuotaExceededError, StorageWriteError

logger = logging.getLogger("catalog_admin.storage")


class StorageArea(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


def _entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class MemoryStorageArea:
    """Dict-backed area; mostly for tests and single-process setups."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self.quota_bytes = quota_bytes
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            others = sum(_entry_size(k, v) for k, v in self._items.items() if k != key)
            required = others + _entry_size(key, value)
            if required > self.quota_bytes:
                raise StorageQuotaExceededError(key, required, self.quota_bytes)
        self._items[key] = value
        logger.debug("Stored %s in memory (%d chars)", key, len(value))

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))


class FileStorageArea:
    """One ``<key>.json`` file per key inside ``directory``.

    Several processes pointed at the same directory see each other's writes,
    which is what lets separate processes act as contexts of one profile.
    Writes go through a temporary file and ``os.replace`` so readers never
    observe a half-written document.
    """

    SAFE_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")

    def __init__(self, directory: str | Path, quota_bytes: int | None = None) -> None:
        self.directory = Path(directory)
        self.quota_bytes = quota_bytes

    def _path_for(self, key: str) -> Path:
        if not self.SAFE_KEY_RE.match(key):
            raise StorageWriteError(f"Unsupported storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        if self.quota_bytes is not None:
            required = self._used_bytes(exclude=key) + _entry_size(key, value)
            if required > self.quota_bytes:
                raise StorageQuotaExceededError(key, required, self.quota_bytes)

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageWriteError(f"Failed to write {path}: {exc}") from exc
        logger.debug("Stored %s at %s (%d chars)", key, path, len(value))

    def remove_item(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)

    def __iter__(self) -> Iterator[str]:
        if not self.directory.exists():
            return iter(())
        return iter(sorted(path.stem for path in self.directory.glob("*.json")))

    def _used_bytes(self, exclude: str) -> int:
        total = 0
        for key in self:
            if key == exclude:
                continue
            value = self.get_item(key)
            if value is not None:
                total += _entry_size(key, value)
        return total
