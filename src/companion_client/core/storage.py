"""
Persisted key-value storage for Companion Client.

The host environment provides synchronous get/set/remove on a durable store
that survives process restarts. This module defines that interface, a
JSON-file implementation for desktop use and an in-memory implementation.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Final, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class StorageKeys:
    """Keys written to the persisted store."""

    # Session mirror
    TOKEN: Final[str] = "token"
    USER_INFO: Final[str] = "userInfo"
    USER_ID: Final[str] = "userId"

    # Identity-scoped caches
    LAST_CONVERSATION_ID: Final[str] = "last_conversation_id"
    HOME_CHARACTER: Final[str] = "home_character"
    GREETING_CACHE: Final[str] = "greeting_cache"
    LAST_CONVERSATION_CHARACTER: Final[str] = "last_conversation_character"


@runtime_checkable
class KeyValueStore(Protocol):
    """Synchronous durable key-value store supplied by the host."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class MemoryStore:
    """Key-value store held in process memory."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data.keys())

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileStore:
    """
    Key-value store persisted as a single JSON document.

    Values must be JSON-serializable. Every mutation rewrites the file through
    a temporary file and an atomic rename, so a crash never leaves a partially
    written document behind. Write errors propagate to the caller.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._data: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable storage file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring storage file {self.path}: top-level value is not an object")
            return {}
        return data

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()
