# tests/conftest.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdeck.core.state import AppState
from taskdeck.storage.kv_storage import MemoryKeyValueStorage
from taskdeck.tasks.task_store import TaskStore

T0 = datetime(2024, 5, 1, 10, 0, 0, tzinfo=UTC)


class FakeClock:
    """Deterministic clock: every call returns a strictly later instant."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(seconds=1)) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


class RecordingStorage(MemoryKeyValueStorage):
    """
    Key-value storage that records every call.

    - fail_writes: set_item raises OSError (simulates a full/unavailable medium)
    - fail_reads: get_item raises OSError
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self.calls: list[tuple[str, str]] = []
        self.writes: list[tuple[str, str]] = []
        self.fail_writes = False
        self.fail_reads = False

    def seed(self, key: str, value: str) -> None:
        """Put data in place without recording a write."""
        MemoryKeyValueStorage.set_item(self, key, value)

    def get_item(self, key: str) -> str | None:
        self.calls.append(("get", key))
        if self.fail_reads:
            raise OSError("storage unavailable")
        return super().get_item(key)

    def set_item(self, key: str, value: str) -> None:
        self.calls.append(("set", key))
        if self.fail_writes:
            raise OSError("quota exceeded")
        self.writes.append((key, value))
        super().set_item(key, value)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskdeck-test",
        log_level="WARNING",
        log_to_file=False,
        data_dir=tmp_path / "data",
        storage_backend="sqlite",
        storage_path=tmp_path / "data" / "storage.sqlite3",
        tasks_key="todo-tasks",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def storage() -> RecordingStorage:
    return RecordingStorage()


@pytest.fixture()
def store(storage: RecordingStorage, clock: FakeClock) -> TaskStore:
    """A loaded TaskStore over an empty recording storage."""
    s = TaskStore(storage, clock=clock)
    s.load()
    return s


@pytest.fixture()
def state(settings: SimpleNamespace, storage: RecordingStorage, store: TaskStore) -> AppState:
    return AppState(settings=settings, storage=storage, task_store=store)
