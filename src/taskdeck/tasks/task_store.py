# src/taskdeck/tasks/task_store.py

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from ..core.ports import KeyValueStorage
from .task_codec import TaskDecodeError, decode_tasks, encode_tasks
from .task_models import Priority, SubTask, Task, TaskForm, TaskStats, as_utc
from .task_views import is_urgent, round_half_up

logger = logging.getLogger(__name__)

DEFAULT_TASKS_KEY = "todo-tasks"

_UPDATABLE_FIELDS = frozenset({"title", "description", "priority", "completed", "due_date"})


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _uuid() -> str:
    return str(uuid.uuid4())


class TaskStore:
    """
    In-memory task collection mirrored to a key-value storage medium.

    The in-memory list is authoritative; storage is a mirror:
    - load() must run before anything is written (writes are gated on it),
    - every mutation re-serializes the whole collection under one key,
    - a failed write is logged and the in-memory state is kept.

    Unknown task/subtask ids are silent no-ops (nothing changes, nothing is written).
    Single-threaded by design: one writer, one copy.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        key: str = DEFAULT_TASKS_KEY,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._storage = storage
        self._key = key
        self._clock = clock or _utc_now
        self._new_id = id_factory or _uuid

        self._tasks: list[Task] = []
        self._loaded = False

    def close(self) -> None:
        """Compatibility hook for shutdown (every mutation is already written)."""
        return

    # ---- low-level helpers ----

    @property
    def key(self) -> str:
        return self._key

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def tasks(self) -> tuple[Task, ...]:
        """Snapshot of the collection, newest task first."""
        return tuple(self._tasks)

    def _now(self) -> datetime:
        return as_utc(self._clock())

    def _fresh_id(self, taken: set[str]) -> str:
        while True:
            new_id = self._new_id()
            if new_id not in taken:
                return new_id
            logger.warning("id_factory returned a duplicate id=%s; retrying", new_id)

    @staticmethod
    def _touched(task: Task, now: datetime, **changes: Any) -> Task:
        # updated_at never goes below created_at, even if the clock steps back.
        return replace(task, **changes, updated_at=max(now, task.created_at))

    def _index_of(self, task_id: str) -> int | None:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    def _persist(self) -> None:
        if not self._loaded:
            # Writing now would clobber whatever load() has not read yet.
            logger.debug("TaskStore persist skipped (not loaded) key=%s", self._key)
            return
        try:
            self._storage.set_item(self._key, encode_tasks(self._tasks))
        except Exception:
            logger.exception(
                "Failed to persist %d tasks key=%s; keeping in-memory state.",
                len(self._tasks),
                self._key,
            )

    def _commit(self, tasks: list[Task]) -> None:
        self._tasks = tasks
        self._persist()

    def _replace_task(self, task_id: str, fn: Callable[[Task], Task | None]) -> bool:
        """Apply fn to the matching task; fn returning None means 'no change'."""
        idx = self._index_of(task_id)
        if idx is None:
            logger.debug("TaskStore: unknown task id=%s (no-op)", task_id)
            return False
        new_task = fn(self._tasks[idx])
        if new_task is None:
            return False
        tasks = list(self._tasks)
        tasks[idx] = new_task
        self._commit(tasks)
        return True

    # ---- public API ----

    def load(self) -> None:
        """
        Read the persisted collection and enable writes.

        - key absent          -> empty collection
        - malformed payload   -> empty collection (logged); the next write replaces it
        - storage read failed -> empty collection, writes stay disabled for this session
        """
        try:
            raw = self._storage.get_item(self._key)
        except Exception:
            logger.exception(
                "Failed to read tasks key=%s; starting empty with persistence disabled.",
                self._key,
            )
            self._tasks = []
            return

        tasks: list[Task] = []
        if raw is not None:
            try:
                tasks = decode_tasks(raw)
            except TaskDecodeError:
                logger.exception("Malformed task data under key=%s; starting empty.", self._key)
                tasks = []

        self._tasks = tasks
        self._loaded = True
        logger.info("TaskStore loaded key=%s total=%d", self._key, len(tasks))

    def create_task(self, form: TaskForm) -> Task:
        now = self._now()
        task = Task(
            id=self._fresh_id({t.id for t in self._tasks}),
            title=form.title,
            description=form.description,
            priority=Priority.parse(form.priority),
            completed=False,
            due_date=as_utc(form.due_date) if form.due_date is not None else None,
            created_at=now,
            updated_at=now,
            subtasks=(),
        )
        self._commit([task, *self._tasks])
        logger.debug("Task created id=%s priority=%s due=%s", task.id, task.priority, task.due_date)
        return task

    def update_task(self, task_id: str, **fields: Any) -> None:
        """
        Overwrite the given fields and bump updated_at.

        Accepted fields: title, description, priority, completed, due_date.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"update_task: unsupported field(s): {', '.join(sorted(unknown))}")

        changes = dict(fields)
        if "priority" in changes:
            if changes["priority"] is None:
                raise ValueError("update_task: priority cannot be None")
            changes["priority"] = Priority.parse(changes["priority"])
        if "completed" in changes:
            changes["completed"] = bool(changes["completed"])
        if changes.get("due_date") is not None:
            changes["due_date"] = as_utc(changes["due_date"])

        now = self._now()
        if self._replace_task(task_id, lambda t: self._touched(t, now, **changes)):
            logger.debug("Task updated id=%s fields=%s", task_id, sorted(changes))

    def delete_task(self, task_id: str) -> None:
        if self._index_of(task_id) is None:
            logger.debug("TaskStore: unknown task id=%s (no-op)", task_id)
            return
        self._commit([t for t in self._tasks if t.id != task_id])
        logger.debug("Task deleted id=%s", task_id)

    def toggle_task_complete(self, task_id: str) -> None:
        """Flip completed; subtasks keep their own state."""
        now = self._now()
        self._replace_task(task_id, lambda t: self._touched(t, now, completed=not t.completed))

    def add_subtask(self, task_id: str, title: str) -> None:
        now = self._now()

        def _add(t: Task) -> Task:
            st = SubTask(
                id=self._fresh_id({s.id for s in t.subtasks}),
                title=title,
                completed=False,
                created_at=now,
            )
            return self._touched(t, now, subtasks=(*t.subtasks, st))

        self._replace_task(task_id, _add)

    def toggle_subtask_complete(self, task_id: str, subtask_id: str) -> None:
        now = self._now()

        def _toggle(t: Task) -> Task | None:
            if not any(st.id == subtask_id for st in t.subtasks):
                logger.debug("TaskStore: unknown subtask id=%s in task=%s (no-op)", subtask_id, t.id)
                return None
            subtasks = tuple(
                replace(st, completed=not st.completed) if st.id == subtask_id else st
                for st in t.subtasks
            )
            return self._touched(t, now, subtasks=subtasks)

        self._replace_task(task_id, _toggle)

    def get_task_by_id(self, task_id: str) -> Task | None:
        idx = self._index_of(task_id)
        return None if idx is None else self._tasks[idx]

    def get_task_stats(self, now: datetime | None = None) -> TaskStats:
        """Derived counters, recomputed from the live collection on each call."""
        now = self._now() if now is None else as_utc(now)

        total = len(self._tasks)
        completed = sum(1 for t in self._tasks if t.completed)
        urgent = sum(1 for t in self._tasks if is_urgent(t, now))

        return TaskStats(
            total=total,
            active=total - completed,
            completed=completed,
            urgent=urgent,
            completion_rate=round_half_up(completed / total * 100) if total > 0 else 0,
        )
