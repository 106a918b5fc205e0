"""
Keyed JSON persistence.

A KeyedStore holds one JSON-compatible value per string key:
- "projects" -> list of projects
- "diagrams:{project_id}" -> that project's list of diagrams

Reads never raise: absent or corrupted data yields the caller's default.
Writes raise PersistenceError when the medium rejects them.

There is no locking. Two processes pointed at the same data directory
overwrite each other's writes, last write wins per key.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any
from urllib.parse import quote

from reliability_core.errors import PersistenceError

logger = logging.getLogger(__name__)

PROJECTS_KEY = "projects"


def diagrams_key(project_id: str) -> str:
    """Key holding the diagram collection of one project."""
    return f"diagrams:{project_id}"


def _check_key(key: str) -> str:
    if not isinstance(key, str) or not key:
        raise ValueError(f"Invalid store key: {key!r}")
    return key


class KeyedStore(ABC):
    """Synchronous key -> JSON value storage."""

    def read(self, key: str, default: Any = None) -> Any:
        """Return the value under `key`, or `default` if absent or unreadable."""
        text = self._read_text(_check_key(key))
        if text is None:
            return default
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Discarding corrupted data under key %r", key)
            return default

    def write(self, key: str, value: Any) -> None:
        """Serialize `value` to JSON and store it under `key`."""
        try:
            text = json.dumps(value, indent=2)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Value for {key!r} is not JSON-serializable: {e}") from e
        self._write_text(_check_key(key), text)

    def remove(self, key: str) -> None:
        """Delete `key` if present."""
        self._remove(_check_key(key))

    @abstractmethod
    def _read_text(self, key: str) -> str | None:
        ...

    @abstractmethod
    def _write_text(self, key: str, text: str) -> None:
        ...

    @abstractmethod
    def _remove(self, key: str) -> None:
        ...


class MemoryStore(KeyedStore):
    """In-process store; values are kept as JSON text like on disk."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def keys(self) -> list[str]:
        return sorted(self._data)

    def _read_text(self, key: str) -> str | None:
        return self._data.get(key)

    def _write_text(self, key: str, text: str) -> None:
        self._data[key] = text

    def _remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(KeyedStore):
    """
    One JSON file per key inside a data directory.

    "diagrams:abc" is stored as "diagrams-abc.json"; other characters are
    percent-encoded so every key maps to a file inside the directory. Writes go through a
    temporary file in the same directory and are moved into place.
    """

    def __init__(self, directory: str | Path):
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        stem = quote(_check_key(key).replace(":", "-", 1), safe="")
        return self._directory / f"{stem}.json"

    def _read_text(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", path, e)
            return None

    def _write_text(self, key: str, text: str) -> None:
        path = self.path_for(key)
        tmp_name = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=".tmp-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Failed to write {path}: {e}") from e

    def _remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to remove {path}: {e}") from e
