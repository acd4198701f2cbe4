"""
Key-value storage backends for encrypted state.

Each entry holds an opaque string and an expiry timestamp; expired entries
read as missing. Two backends, selected by the STORAGE_BACKEND setting:
  - "local" (default): one JSON file per key under STORAGE_DIR
  - "memory": process-local dict, for tests and throwaway sessions
"""

import json
import logging
import os
from datetime import datetime
from typing import Callable, Dict, Optional, Protocol, Tuple, runtime_checkable

from firetools.config import settings
from firetools.core.exceptions import StorageError
from firetools.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for storage backends."""

    def get(self, key: str) -> Optional[str]:
        """Return the value stored at ``key``, or None if missing or expired."""
        ...

    def set(self, key: str, value: str, expires_at: datetime) -> None:
        """Store ``value`` under ``key`` until ``expires_at``."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key``. Missing keys are ignored."""
        ...


class MemoryStorageBackend:
    """Keeps entries in a dict for the lifetime of the object."""

    def __init__(self, clock: Clock = utc_now):
        self._entries: Dict[str, Tuple[str, datetime]] = {}
        self._clock = clock

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: str, expires_at: datetime) -> None:
        self._entries[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class LocalFileStorageBackend:
    """
    Stores each entry as ``<base_dir>/<key>.json``::

        {"value": "<ciphertext>", "expires_at": "2025-01-01T00:00:00+00:00"}
    """

    def __init__(self, base_dir: Optional[str] = None, clock: Clock = utc_now):
        self._base_dir = base_dir or settings.STORAGE_DIR
        self._clock = clock

    def _full_path(self, key: str) -> str:
        # Prevent path traversal
        safe_key = os.path.basename(os.path.normpath(key))
        if not safe_key or safe_key in (".", ".."):
            raise StorageError(f"Invalid storage key '{key}'")
        return os.path.join(self._base_dir, f"{safe_key}.json")

    def get(self, key: str) -> Optional[str]:
        path = self._full_path(key)
        if not os.path.exists(path):
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                entry = json.load(f)
            value = entry["value"]
            expires_at = datetime.fromisoformat(entry["expires_at"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(
                "storage_entry_unreadable",
                extra={"key": key, "error": str(e)},
            )
            return None

        if expires_at <= self._clock():
            self.delete(key)
            return None
        return value

    def set(self, key: str, value: str, expires_at: datetime) -> None:
        path = self._full_path(key)
        try:
            os.makedirs(self._base_dir, exist_ok=True)
            tmp_path = f"{path}.tmp"
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump({"value": value, "expires_at": expires_at.isoformat()}, f)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Failed to write storage entry '{key}': {e}") from e

    def delete(self, key: str) -> None:
        path = self._full_path(key)
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            raise StorageError(f"Failed to delete storage entry '{key}': {e}") from e


def get_storage_backend() -> StorageBackend:
    """Return the backend configured by STORAGE_BACKEND."""
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "memory":
        return MemoryStorageBackend()
    if backend == "local":
        return LocalFileStorageBackend()
    raise ValueError(f"Unknown STORAGE_BACKEND '{settings.STORAGE_BACKEND}'. Use 'local' or 'memory'.")
