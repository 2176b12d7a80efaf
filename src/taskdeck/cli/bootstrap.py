# src/taskdeck/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the storage medium and the task store into AppState,
- performs the initial load before anything can be written.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import KeyValueStorage
from ..core.state import AppState
from ..storage.kv_storage import MemoryKeyValueStorage, SqliteKeyValueStorage
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.storage_path.parent.mkdir(parents=True, exist_ok=True)


def create_storage(settings) -> KeyValueStorage:
    backend = str(getattr(settings, "storage_backend", "sqlite"))
    if backend == "memory":
        logger.info("Using in-memory storage (nothing is kept after exit).")
        return MemoryKeyValueStorage()
    return SqliteKeyValueStorage(settings.storage_path)


def create_initial_state(*, settings=None, storage: KeyValueStorage | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and storage) injectable makes the app easier to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if storage is None:
        _ensure_local_dirs(settings)
        storage = create_storage(settings)

    task_store = TaskStore(storage, key=getattr(settings, "tasks_key", "todo-tasks"))
    task_store.load()

    return AppState(settings=settings, storage=storage, task_store=task_store)


def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    for name in ("task_store", "storage"):
        obj = getattr(state, name, None)
        if obj is None or not hasattr(obj, "close"):
            continue
        try:
            obj.close()
        except Exception:
            logger.debug("%s close failed.", name, exc_info=True)
