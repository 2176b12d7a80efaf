# src/taskdeck/tasks/task_views.py

"""
Read-only derived views over the task collection.

Pure functions: nothing here mutates tasks or touches storage.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from .task_models import Priority, Task


@dataclass(frozen=True, slots=True)
class SubtaskProgress:
    done: int
    total: int
    percent: int


@dataclass(frozen=True, slots=True)
class TaskSections:
    urgent: tuple[Task, ...]
    active: tuple[Task, ...]
    completed: tuple[Task, ...]
    today: tuple[Task, ...]


def _now(now: datetime | None) -> datetime:
    return datetime.now(UTC) if now is None else now


def round_half_up(x: float) -> int:
    # Same result as JS Math.round for the non-negative values we feed it.
    return int(x + 0.5)


def is_overdue(task: Task, now: datetime | None = None) -> bool:
    if task.completed or task.due_date is None:
        return False
    return task.due_date < _now(now)


def is_urgent(task: Task, now: datetime | None = None) -> bool:
    """Incomplete AND (high priority OR due strictly in the past)."""
    if task.completed:
        return False
    return task.priority == Priority.HIGH or is_overdue(task, now)


def is_due_today(task: Task, now: datetime | None = None) -> bool:
    """Incomplete and due on the same local calendar day as `now`."""
    if task.completed or task.due_date is None:
        return False
    return task.due_date.astimezone().date() == _now(now).astimezone().date()


def subtask_progress(task: Task) -> SubtaskProgress:
    total = len(task.subtasks)
    if total == 0:
        return SubtaskProgress(done=0, total=0, percent=0)
    done = sum(1 for st in task.subtasks if st.completed)
    return SubtaskProgress(done=done, total=total, percent=round_half_up(done / total * 100))


def group_tasks(tasks: Iterable[Task], now: datetime | None = None) -> TaskSections:
    """
    Split the collection into list sections, keeping collection order.

    A task appears in exactly one of urgent/active/completed; `today`
    is an overlay of incomplete tasks due today.
    """
    now = _now(now)
    urgent: list[Task] = []
    active: list[Task] = []
    completed: list[Task] = []
    today: list[Task] = []

    for t in tasks:
        if t.completed:
            completed.append(t)
            continue
        if is_urgent(t, now):
            urgent.append(t)
        else:
            active.append(t)
        if is_due_today(t, now):
            today.append(t)

    return TaskSections(
        urgent=tuple(urgent),
        active=tuple(active),
        completed=tuple(completed),
        today=tuple(today),
    )
