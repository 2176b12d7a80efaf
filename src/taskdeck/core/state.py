# src/taskdeck/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..tasks.task_store import TaskStore
from .ports import KeyValueStorage


@dataclass
class AppState:
    """
    Everything a front-end needs, built once by the composition root.

    The store is passed by reference; there is no global singleton.
    """

    # Settings are stored on the state for easy access in other modules.
    settings: object

    storage: KeyValueStorage
    task_store: TaskStore
