# src/taskdeck/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from ..core.state import AppState
from ..tasks.task_api import TaskValidationError, add_subtask_from_text, create_task_from_text, validate_title
from ..tasks.task_models import Priority, SubTask, Task
from ..tasks.task_views import group_tasks, is_overdue, subtask_progress

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _local_day(dt: datetime, now: datetime | None = None) -> str:
    day = dt.astimezone().date()
    today = (datetime.now(UTC) if now is None else now).astimezone().date()
    if day == today:
        return "Today"
    if day == today + timedelta(days=1):
        return "Tomorrow"
    return f"{day:%b} {day.day}"


def resolve_task(state: AppState, ref: str) -> Task | None:
    """
    Find a task by list position (1-based, newest first), full id, or unique id prefix.

    All-digit refs are positions first; out of range they fall back to id matching.
    """
    tasks = state.task_store.tasks
    ref = ref.strip()
    if not ref:
        return None

    if ref.isdigit():
        pos = int(ref)
        if 1 <= pos <= len(tasks):
            return tasks[pos - 1]

    exact = state.task_store.get_task_by_id(ref)
    if exact is not None:
        return exact

    matches = [t for t in tasks if t.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


def resolve_subtask(task: Task, ref: str) -> SubTask | None:
    ref = ref.strip()
    if ref.isdigit():
        pos = int(ref)
        return task.subtasks[pos - 1] if 1 <= pos <= len(task.subtasks) else None
    matches = [st for st in task.subtasks if st.id == ref or st.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


def _position(state: AppState, task: Task) -> int:
    for i, t in enumerate(state.task_store.tasks, start=1):
        if t.id == task.id:
            return i
    return 0


def format_task_line(state: AppState, task: Task, now: datetime | None = None) -> str:
    mark = "x" if task.completed else " "
    meta = [task.priority.value]
    if task.due_date is not None:
        due = f"due {_local_day(task.due_date, now)}"
        if is_overdue(task, now):
            due += " (overdue)"
        meta.append(due)

    line = f"[{mark}] #{_position(state, task)} {task.title} ({', '.join(meta)})"

    prog = subtask_progress(task)
    if prog.total:
        line += f" {prog.done}/{prog.total} subtasks"
    return f"{line}  id={task.id[:8]}"


def parse_due(raw: str, now: datetime | None = None) -> datetime | None:
    """
    "today" / "tomorrow" / "YYYY-MM-DD" (local midnight) / "none".

    Raises ValueError on anything else.
    """
    now = datetime.now(UTC) if now is None else now
    value = raw.strip().lower()
    if value in ("none", "-", "clear"):
        return None
    if value == "today":
        return now
    if value == "tomorrow":
        return now + timedelta(days=1)
    return datetime.fromisoformat(value)


_USAGE_EDIT = (
    "Usage: /edit <task> <field> <value>\n"
    "  fields: title | desc | priority (low|medium|high) | due (today|tomorrow|YYYY-MM-DD|none)"
)


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return (
        registry.build_help()
        + "\n<task> is a list number or an id prefix; numbers past the end of the list match ids."
        + "\nAnything not starting with / is added as a new task."
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title> [-- description]
    Hints in the title work: "Call John tomorrow", "urgent: review proposal".
    """
    text = " ".join(args)
    title, _, desc = text.partition(" -- ")
    try:
        task = create_task_from_text(state, title, description=desc or None)
    except TaskValidationError:
        return "Usage: /add <title> [-- description]"
    return f"Task created: {format_task_line(state, task)}"


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list                -> urgent / active / completed sections
    /list today          -> incomplete tasks due today
    /list all            -> flat list in collection order
    """
    tasks = state.task_store.tasks
    if not tasks:
        return (
            "No tasks yet. Create your first one, e.g. "
            '"Call John tomorrow" or "Urgent: review proposal".'
        )

    now = datetime.now(UTC)
    view = args[0].lower() if args else ""

    if view == "all":
        return "\n".join(format_task_line(state, t, now) for t in tasks)

    sections = group_tasks(tasks, now)

    if view == "today":
        if not sections.today:
            return "Nothing due today."
        return "\n".join(format_task_line(state, t, now) for t in sections.today)

    lines: list[str] = []
    if sections.urgent:
        n = len(sections.urgent)
        lines.append(f"Urgent: {n} task{'s' if n != 1 else ''} need immediate attention")
        lines.extend("  " + format_task_line(state, t, now) for t in sections.urgent)
    if sections.active:
        lines.append("Active tasks:")
        lines.extend("  " + format_task_line(state, t, now) for t in sections.active)
    if sections.completed:
        lines.append(f"Completed ({len(sections.completed)}):")
        lines.extend("  " + format_task_line(state, t, now) for t in sections.completed)
    return "\n".join(lines)


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <task>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."

    lines = [format_task_line(state, task)]
    if task.description:
        lines.append(f"  {task.description}")
    for i, st in enumerate(task.subtasks, start=1):
        lines.append(f"  {i}. [{'x' if st.completed else ' '}] {st.title}")
    lines.append(f"  created {task.created_at.astimezone():%Y-%m-%d %H:%M}, "
                 f"updated {task.updated_at.astimezone():%Y-%m-%d %H:%M}")
    return "\n".join(lines)


def cmd_edit(state: AppState, args: list[str]) -> str:
    if len(args) < 3:
        return _USAGE_EDIT

    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."

    field = args[1].lower()
    value = " ".join(args[2:])

    try:
        if field == "title":
            state.task_store.update_task(task.id, title=validate_title(value))
        elif field in ("desc", "description"):
            state.task_store.update_task(task.id, description=value.strip() or None)
        elif field == "priority":
            state.task_store.update_task(task.id, priority=Priority.parse(value))
        elif field == "due":
            state.task_store.update_task(task.id, due_date=parse_due(value))
        else:
            return _USAGE_EDIT
    except TaskValidationError:
        return "Title must not be empty."
    except ValueError:
        return f"Invalid value for {field}: {value!r}"

    return "Task updated. Your task has been successfully updated."


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <task>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."

    state.task_store.toggle_task_complete(task.id)
    if not task.completed:
        return "Great job! Task completed successfully."
    return "Task marked as active again."


def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <task>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."
    state.task_store.delete_task(task.id)
    return "Task deleted. The task has been removed from your list."


def cmd_sub(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /sub <task> <subtask title>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."
    try:
        add_subtask_from_text(state, task.id, " ".join(args[1:]))
    except TaskValidationError:
        return "Usage: /sub <task> <subtask title>"
    return f"Subtask added ({len(task.subtasks) + 1} total)."


def cmd_subdone(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /subdone <task> <subtask number>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."
    st = resolve_subtask(task, args[1])
    if st is None:
        return f"No subtask matches {args[1]!r}."
    state.task_store.toggle_subtask_complete(task.id, st.id)
    return f"Subtask {'reopened' if st.completed else 'done'}: {st.title}"


def cmd_stats(state: AppState, args: list[str]) -> str:
    s = state.task_store.get_task_stats()
    return (
        "Stats:\n"
        f"  Total: {s.total}\n"
        f"  Active: {s.active}\n"
        f"  Completed: {s.completed}\n"
        f"  Urgent: {s.urgent}\n"
        f"  Completion rate: {s.completion_rate}%"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("add", cmd_add, help_text="Add a task: /add <title> [-- description].", aliases=["a"])
registry.register("list", cmd_list, help_text="List tasks: /list | /list today | /list all.", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show one task with its subtasks: /show <task>.")
registry.register("edit", cmd_edit, help_text="Edit a field: /edit <task> title|desc|priority|due <value>.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <task>.")
registry.register("rm", cmd_rm, help_text="Delete a task and its subtasks: /rm <task>.", aliases=["del"])
registry.register("sub", cmd_sub, help_text="Add a subtask: /sub <task> <title>.")
registry.register("subdone", cmd_subdone, help_text="Toggle a subtask: /subdone <task> <n>.")
registry.register("stats", cmd_stats, help_text="Show totals and completion rate.")
