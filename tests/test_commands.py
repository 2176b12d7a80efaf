# tests/test_commands.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from taskdeck.cli.commands import CommandRegistry, cmd_list, cmd_stats, format_task_line, registry, resolve_task
from taskdeck.core.state import AppState
from taskdeck.connectors.console_connector import handle_line
from taskdeck.tasks.task_models import Priority, TaskForm
from taskdeck.tasks.task_store import TaskStore

NOW = datetime(2024, 5, 1, 10, 0, 0, tzinfo=UTC)


def test_command_registry_routes_names_and_aliases(state) -> None:
    reg = CommandRegistry()
    reg.register("stats", cmd_stats, "Show totals.", aliases=["st"])
    reg.register("list", cmd_list, "List tasks.", aliases=["ls"])
    handle_line(state, "water plants")

    assert reg.handle(state, "/STATS") == reg.handle(state, "/st") == cmd_stats(state, [])
    assert reg.handle(state, "/ls all") == cmd_list(state, ["all"])
    assert "/stats - Show totals." in reg.build_help()
    assert "/st " not in reg.build_help()


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")


def test_add_with_hints_and_description(state) -> None:
    reply = registry.handle(state, "/add Review urgent report -- numbers for Q2")

    assert reply is not None and reply.startswith("Task created")
    [task] = state.task_store.tasks
    assert task.title == "Review report"
    assert task.priority == Priority.HIGH
    assert task.description == "numbers for Q2"


def test_add_rejects_blank_title(state) -> None:
    assert registry.handle(state, "/add    ") == "Usage: /add <title> [-- description]"
    assert state.task_store.tasks == ()


def test_quick_add_from_plain_text(state) -> None:
    reply = handle_line(state, "Call John tomorrow")

    assert reply is not None and "Call John" in reply
    [task] = state.task_store.tasks
    assert task.due_date is not None
    assert handle_line(state, "   ") is None


def test_done_toggles_and_reports(state) -> None:
    handle_line(state, "water plants")

    assert registry.handle(state, "/done 1") == "Great job! Task completed successfully."
    assert state.task_store.tasks[0].completed is True
    assert registry.handle(state, "/done 1") == "Task marked as active again."
    assert "No task matches" in (registry.handle(state, "/done 123456789") or "")


def test_resolve_by_position_id_and_prefix(state) -> None:
    handle_line(state, "first")
    handle_line(state, "second")
    newest, oldest = state.task_store.tasks

    assert resolve_task(state, "1") == newest
    assert resolve_task(state, "2") == oldest
    assert resolve_task(state, oldest.id) == oldest
    assert resolve_task(state, newest.id[:8]) == newest
    assert resolve_task(state, "123456789") is None


def test_subtasks_and_show(state) -> None:
    handle_line(state, "plan trip")

    assert registry.handle(state, "/sub 1 book flights") == "Subtask added (1 total)."
    assert registry.handle(state, "/sub 1 book hotel") == "Subtask added (2 total)."
    assert registry.handle(state, "/subdone 1 2") == "Subtask done: book hotel"

    shown = registry.handle(state, "/show 1") or ""
    assert "1/2 subtasks" in shown
    assert "1. [ ] book flights" in shown
    assert "2. [x] book hotel" in shown


def test_edit_fields(state) -> None:
    handle_line(state, "draft")

    assert registry.handle(state, "/edit 1 title final draft").startswith("Task updated")  # type: ignore[union-attr]
    assert registry.handle(state, "/edit 1 priority high").startswith("Task updated")  # type: ignore[union-attr]
    assert registry.handle(state, "/edit 1 due 2030-01-02").startswith("Task updated")  # type: ignore[union-attr]
    assert "Invalid value" in (registry.handle(state, "/edit 1 priority extreme") or "")
    assert registry.handle(state, "/edit 1 colour red").startswith("Usage")  # type: ignore[union-attr]

    [task] = state.task_store.tasks
    assert task.title == "final draft"
    assert task.priority == Priority.HIGH
    assert task.due_date is not None and task.due_date.astimezone().year == 2030

    registry.handle(state, "/edit 1 due none")
    assert state.task_store.tasks[0].due_date is None


def test_rm_list_and_stats(state) -> None:
    assert "No tasks yet" in (registry.handle(state, "/list") or "")

    handle_line(state, "urgent: taxes")
    handle_line(state, "laundry")
    handle_line(state, "dishes")
    registry.handle(state, "/done 1")

    listing = registry.handle(state, "/list") or ""
    assert "Urgent: 1 task need immediate attention" in listing
    assert "Active tasks:" in listing
    assert "Completed (1):" in listing

    stats = registry.handle(state, "/stats") or ""
    assert "Total: 3" in stats
    assert "Completion rate: 33%" in stats

    assert registry.handle(state, "/rm 2").startswith("Task deleted")  # type: ignore[union-attr]
    assert [t.title for t in state.task_store.tasks] == ["dishes", "taxes"]


def test_numeric_ref_past_the_list_falls_back_to_id_prefix(settings, storage, clock) -> None:
    ids = iter(["12345-a", "98765-b"])
    store = TaskStore(storage, clock=clock, id_factory=lambda: next(ids))
    store.load()
    state = AppState(settings=settings, storage=storage, task_store=store)
    older = store.create_task(TaskForm(title="older"))
    newer = store.create_task(TaskForm(title="newer"))

    assert resolve_task(state, "1") == newer
    assert resolve_task(state, "98765") == newer
    assert resolve_task(state, "12345") == older
    assert resolve_task(state, "3") is None
    assert registry.handle(state, "/done 98765") == "Great job! Task completed successfully."
    assert store.get_task_by_id(newer.id).completed is True  # type: ignore[union-attr]


def test_due_dates_render_today_and_tomorrow(state) -> None:
    store = state.task_store
    later = store.create_task(TaskForm(title="later", due_date=datetime(2024, 5, 10, 12, 0, tzinfo=UTC)))
    tomorrow = store.create_task(TaskForm(title="tomorrow", due_date=NOW + timedelta(days=1)))
    today = store.create_task(TaskForm(title="today", due_date=NOW))

    assert "(medium, due Today)" in format_task_line(state, today, NOW)
    assert "(medium, due Tomorrow)" in format_task_line(state, tomorrow, NOW)
    assert "(medium, due May 10)" in format_task_line(state, later, NOW)
    assert "due Today (overdue)" in format_task_line(state, today, NOW + timedelta(hours=1))
