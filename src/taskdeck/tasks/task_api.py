# src/taskdeck/tasks/task_api.py

from __future__ import annotations

import logging
from datetime import datetime

from ..core.state import AppState
from .task_models import Priority, Task, TaskForm
from .title_hints import parse_title_hints

logger = logging.getLogger(__name__)


class TaskValidationError(ValueError):
    """User input rejected at the boundary (before it reaches the store)."""


def validate_title(text: str | None) -> str:
    title = (text or "").strip()
    if not title:
        raise TaskValidationError("title must not be empty")
    return title


def create_task_from_text(
    state: AppState,
    text: str,
    *,
    description: str | None = None,
    priority: Priority | str | None = None,
    due_date: datetime | None = None,
) -> Task:
    """
    Convenience helper: create a task from free text.

    Title hints (today/tomorrow, urgent/sometime) fill in due date and
    priority unless they are given explicitly. Uses state.task_store.
    """
    raw = validate_title(text)
    hints = parse_title_hints(raw)

    # A title made only of hint words keeps its original text.
    title = hints.clean_title or raw

    form = TaskForm(
        title=title,
        description=(description or "").strip() or None,
        priority=Priority.parse(priority) if priority is not None else hints.priority,
        due_date=due_date if due_date is not None else hints.due_date,
    )
    task = state.task_store.create_task(form)
    logger.info("Task created from text id=%s priority=%s", task.id, task.priority.value)
    return task


def add_subtask_from_text(state: AppState, task_id: str, text: str) -> None:
    state.task_store.add_subtask(task_id, validate_title(text))
