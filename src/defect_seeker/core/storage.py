"""Durable key-value storage for the inventory state.

Every collection lives under its own namespaced key as one JSON document. A missing
key or a document that fails to decode falls back to a default supplied by the caller.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

CURRENT_USER_KEY = "ds_user"
DEFECTS_KEY = "ds_defects"
USERS_KEY = "ds_all_users"
PROJECTS_KEY = "ds_projects"
NOTIFICATIONS_KEY = "ds_notifications"
QUERY_STATE_KEY = "ds_defect_view_v3"

DATA_DIR_ENV = "DEFECT_SEEKER_DATA_DIR"
DEFAULT_DATA_DIR = ".defect_seeker"


class KeyValueStorage(Protocol):
    """Storage interface: string values addressed by string keys."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryStorage:
    """Process-local storage, mostly for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStorage:
    """One ``<key>.json`` file per key inside a data directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        _write_atomic(self._path(key), value)

    def delete(self, key: str) -> None:
        with contextlib.suppress(FileNotFoundError):
            self._path(key).unlink()


def _write_atomic(path: Path, content: str) -> None:
    """Write content to path atomically via temp file + os.replace()."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise


def resolve_data_dir(data_dir: str | Path | None = None) -> Path:
    """Return the data directory from the argument, the environment, or the default."""
    if data_dir is not None:
        return Path(data_dir).expanduser()
    env = os.getenv(DATA_DIR_ENV)
    if env:
        return Path(env).expanduser()
    return Path(DEFAULT_DATA_DIR)


def load_document(
    storage: KeyValueStorage,
    key: str,
    *,
    decode: Callable[[Any], T],
    default: Callable[[], T],
) -> T:
    """Load and decode a JSON document, falling back to ``default()``.

    ``decode`` receives the parsed JSON and may raise KeyError, TypeError,
    ValueError or AttributeError when the document has the wrong shape.
    """
    try:
        raw = storage.get(key)
        if raw is None:
            return default()
        return decode(json.loads(raw))
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        # JSONDecodeError and UnicodeDecodeError are ValueErrors
        logger.warning("Discarding unreadable document %r, using defaults: %s", key, exc)
        return default()


def save_document(storage: KeyValueStorage, key: str, value: Any) -> None:
    """Serialize a JSON-compatible value under ``key``."""
    storage.set(key, json.dumps(value, ensure_ascii=False))
