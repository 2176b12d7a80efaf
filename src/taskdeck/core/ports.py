# src/taskdeck/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task store depends on a Protocol instead of a concrete storage class.
This keeps the storage medium swappable and makes testing easier.
"""

from typing import Protocol


class KeyValueStorage(Protocol):
    """
    Persistent key-value sink with localStorage semantics.

    Semantics:
    - get_item returns None when the key is absent
    - set_item overwrites (last writer wins, no cross-process coordination)
    - any method may raise on I/O failure; callers decide how to recover
    """

    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...
