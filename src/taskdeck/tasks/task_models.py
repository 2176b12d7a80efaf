# src/taskdeck/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, raw: Priority | str | None) -> Priority:
        """Strict parse: unknown text raises ValueError, None means MEDIUM."""
        if raw is None:
            return cls.MEDIUM
        if isinstance(raw, cls):
            return raw
        return cls(str(raw).strip().lower())


def as_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Naive values are treated as local wall-clock time (what a user typed).
    """
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(UTC)


@dataclass(frozen=True, slots=True)
class SubTask:
    id: str
    title: str
    completed: bool
    created_at: datetime


@dataclass(frozen=True, slots=True)
class Task:
    """
    A tracked unit of work.

    Records are immutable; the store replaces a task with an updated copy
    (dataclasses.replace) on every mutation. Subtasks keep creation order.
    """

    id: str
    title: str
    description: str | None
    priority: Priority
    completed: bool
    due_date: datetime | None
    created_at: datetime
    updated_at: datetime

    subtasks: tuple[SubTask, ...] = ()


@dataclass(slots=True)
class TaskForm:
    """Input for TaskStore.create_task (title non-emptiness is the caller's job)."""

    title: str
    description: str | None = None
    priority: Priority = Priority.MEDIUM
    due_date: datetime | None = None


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    active: int
    completed: int
    urgent: int
    completion_rate: int  # integer percent 0..100

    def as_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "active": self.active,
            "completed": self.completed,
            "urgent": self.urgent,
            "completionRate": self.completion_rate,
        }
