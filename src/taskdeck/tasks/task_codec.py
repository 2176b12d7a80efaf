# src/taskdeck/tasks/task_codec.py

"""
Storage encoding for the task collection.

One storage key holds a JSON array of task records. Keys are camelCase and
timestamps are ISO-8601 text with a trailing "Z", so blobs written by
JavaScript's Date.toISOString load unchanged.

Decoding is strict: any record that cannot be rebuilt into a Task raises
TaskDecodeError, and the caller decides how to recover.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from .task_models import Priority, SubTask, Task, as_utc


class TaskDecodeError(ValueError):
    """Persisted task data is malformed."""


def format_timestamp(value: datetime) -> str:
    return as_utc(value).isoformat(timespec="microseconds").replace("+00:00", "Z")


def parse_timestamp(raw: Any, *, field_name: str) -> datetime:
    if not isinstance(raw, str) or not raw.strip():
        raise TaskDecodeError(f"{field_name}: expected ISO-8601 text, got {raw!r}")
    try:
        value = datetime.fromisoformat(raw.strip())
        if value.tzinfo is None:
            # Treat offset-less text as UTC (never written by us, but be lenient).
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    except (ValueError, OverflowError) as e:
        raise TaskDecodeError(f"{field_name}: unparseable timestamp {raw!r}") from e


def _require(rec: dict[str, Any], key: str, where: str) -> Any:
    if key not in rec or rec[key] is None:
        raise TaskDecodeError(f"{where}: missing required field {key!r}")
    return rec[key]


def _require_str(rec: dict[str, Any], key: str, where: str) -> str:
    val = _require(rec, key, where)
    if not isinstance(val, str):
        raise TaskDecodeError(f"{where}: field {key!r} must be a string")
    return val


def _opt_bool(rec: dict[str, Any], key: str, where: str) -> bool:
    val = rec.get(key, False)
    if val is None:
        return False
    if not isinstance(val, bool):
        raise TaskDecodeError(f"{where}: field {key!r} must be a boolean")
    return val


def subtask_to_record(st: SubTask) -> dict[str, Any]:
    return {
        "id": st.id,
        "title": st.title,
        "completed": st.completed,
        "createdAt": format_timestamp(st.created_at),
    }


def task_to_record(task: Task) -> dict[str, Any]:
    rec: dict[str, Any] = {
        "id": task.id,
        "title": task.title,
        "priority": task.priority.value,
        "completed": task.completed,
        "createdAt": format_timestamp(task.created_at),
        "updatedAt": format_timestamp(task.updated_at),
        "subtasks": [subtask_to_record(st) for st in task.subtasks],
    }
    if task.description is not None:
        rec["description"] = task.description
    if task.due_date is not None:
        rec["dueDate"] = format_timestamp(task.due_date)
    return rec


def subtask_from_record(rec: Any, where: str) -> SubTask:
    if not isinstance(rec, dict):
        raise TaskDecodeError(f"{where}: subtask record must be an object")
    return SubTask(
        id=_require_str(rec, "id", where),
        title=_require_str(rec, "title", where),
        completed=_opt_bool(rec, "completed", where),
        created_at=parse_timestamp(_require(rec, "createdAt", where), field_name=f"{where}.createdAt"),
    )


def task_from_record(rec: Any, where: str = "task") -> Task:
    if not isinstance(rec, dict):
        raise TaskDecodeError(f"{where}: task record must be an object")

    task_id = _require_str(rec, "id", where)
    where = f"task[{task_id}]"

    description = rec.get("description")
    if description is not None and not isinstance(description, str):
        raise TaskDecodeError(f"{where}: field 'description' must be a string")

    try:
        priority = Priority.parse(rec.get("priority"))
    except ValueError as e:
        raise TaskDecodeError(f"{where}: unknown priority {rec.get('priority')!r}") from e

    due_raw = rec.get("dueDate")
    due_date = None if due_raw in (None, "") else parse_timestamp(due_raw, field_name=f"{where}.dueDate")

    raw_subtasks = rec.get("subtasks") or []
    if not isinstance(raw_subtasks, list):
        raise TaskDecodeError(f"{where}: field 'subtasks' must be an array")
    subtasks = tuple(
        subtask_from_record(st, f"{where}.subtasks[{i}]") for i, st in enumerate(raw_subtasks)
    )
    if len({st.id for st in subtasks}) != len(subtasks):
        raise TaskDecodeError(f"{where}: duplicate subtask id")

    return Task(
        id=task_id,
        title=_require_str(rec, "title", where),
        description=description,
        priority=priority,
        completed=_opt_bool(rec, "completed", where),
        due_date=due_date,
        created_at=parse_timestamp(_require(rec, "createdAt", where), field_name=f"{where}.createdAt"),
        updated_at=parse_timestamp(_require(rec, "updatedAt", where), field_name=f"{where}.updatedAt"),
        subtasks=subtasks,
    )


def encode_tasks(tasks: Iterable[Task]) -> str:
    return json.dumps([task_to_record(t) for t in tasks], ensure_ascii=False)


def decode_tasks(raw: str) -> list[Task]:
    """
    Decode a stored collection.

    Raises TaskDecodeError on invalid JSON, a non-array payload,
    or any record that fails validation.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError, RecursionError) as e:
        raise TaskDecodeError(f"invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise TaskDecodeError(f"expected a JSON array, got {type(data).__name__}")

    tasks = [task_from_record(rec, f"task #{i}") for i, rec in enumerate(data)]

    seen: set[str] = set()
    for t in tasks:
        if t.id in seen:
            raise TaskDecodeError(f"duplicate task id {t.id!r}")
        seen.add(t.id)
    return tasks
