"""Key-value store backends."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog


@runtime_checkable
class KeyValueStore(Protocol):
    """String key-value persistence contract."""

    def get(self, key: str) -> str | None:
        """Return the raw value stored under ``key`` or None."""

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""


class InMemoryStore:
    """Process-local store, used by default and in tests."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """Store persisting all keys into a single JSON object file.

    A missing or corrupt file reads as an empty store.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._logger = structlog.get_logger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError, RecursionError) as exc:
            self._logger.warning("store.unreadable_file", path=str(self._path), error=str(exc))
            return {}
        if not isinstance(data, dict):
            self._logger.warning("store.unreadable_file", path=str(self._path), error="not an object")
            return {}
        return data

    def _write(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(data, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
