"""Wiring of storage, record store and inventory view."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .inventory import InventoryView
from .storage import JsonFileStorage, KeyValueStorage, resolve_data_dir
from .store import DefectStore


@dataclass(slots=True)
class DefectApp:
    storage: KeyValueStorage
    store: DefectStore
    view: InventoryView


def open_app(storage: KeyValueStorage) -> DefectApp:
    store = DefectStore(storage)
    return DefectApp(storage=storage, store=store, view=InventoryView(store, storage))


def open_data_dir(data_dir: str | Path | None = None) -> DefectApp:
    """Open the app backed by JSON documents in ``data_dir`` (see DEFECT_SEEKER_DATA_DIR)."""
    return open_app(JsonFileStorage(resolve_data_dir(data_dir)))
