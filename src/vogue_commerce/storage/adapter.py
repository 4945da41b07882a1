# src/vogue_commerce/storage/adapter.py
"""
Persistence Adapters

Key/value string stores used for write-through persistence of the cart,
user, catalog query and offline queue records. Values are opaque strings;
the stores serialize their own records to JSON.

Adapters:
- InMemoryStorage: process-local dict, for tests and ephemeral sessions
- FileStorage: one ``<key>.json`` file per key inside a directory

Failures raise PersistenceException; the stores decide how to surface them.
"""

import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union, runtime_checkable

from ..core.exceptions import PersistenceException
from ..core.logger import get_logger

_KEY_PATTERN = re.compile(r'^[A-Za-z0-9._-]+$')


@runtime_checkable
class PersistenceAdapter(Protocol):
    """Minimal async-storage-like contract."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...

    def keys(self) -> List[str]:
        ...

    def clear(self) -> None:
        ...


class InMemoryStorage:
    """Dictionary-backed adapter."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise PersistenceException(
                f"Storage values must be strings, got {type(value).__name__}",
                key=key,
                operation="set"
            )
        with self._lock:
            self._data[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class FileStorage:
    """
    Directory-backed adapter writing one JSON file per key.

    Writes go to a temporary file in the same directory and are then
    renamed over the target, so a crash never leaves a half-written record.
    """

    SUFFIX = ".json"

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.logger = get_logger("file_storage")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceException(
                f"Cannot create storage directory {self.directory}",
                operation="init",
                original_exception=e
            ) from e

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise PersistenceException(f"Invalid storage key: {key!r}", key=key)
        return self.directory / f"{key}{self.SUFFIX}"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceException(
                f"Failed to read {key}",
                key=key,
                operation="get",
                original_exception=e
            ) from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceException(
                f"Failed to write {key}",
                key=key,
                operation="set",
                original_exception=e
            ) from e
        self.logger.debug("Record written", key=key, bytes=len(value))

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceException(
                f"Failed to remove {key}",
                key=key,
                operation="remove",
                original_exception=e
            ) from e

    def keys(self) -> List[str]:
        return sorted(path.stem for path in self.directory.glob(f"*{self.SUFFIX}"))

    def clear(self) -> None:
        for key in self.keys():
            self.remove_item(key)
