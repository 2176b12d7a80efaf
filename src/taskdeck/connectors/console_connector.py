# src/taskdeck/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import format_task_line
from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks.task_api import TaskValidationError, create_task_from_text

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def handle_line(state: AppState, line: str) -> str | None:
    """
    One REPL step: slash commands go to the registry, anything else is a quick add.
    Returns the reply text (None for empty input).
    """
    line = line.strip()
    if not line:
        return None

    try:
        cmd_response = command_registry.handle(state, line)
    except Exception:
        logger.exception("Command handler crashed.")
        return "Internal error while handling a command."

    if cmd_response is not None:
        return cmd_response

    try:
        task = create_task_from_text(state, line)
    except TaskValidationError:
        return None
    except Exception:
        logger.exception("Quick add crashed.")
        return "Internal error while adding a task."
    return f"Task created: {format_task_line(state, task)}"


def run_console_loop(state: AppState) -> None:
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "taskdeck"))
    logger.info("Console connector started.")
    _print_ts(f"[{app_name}] Type a task to add it. Use /help for commands. Use /exit to quit.\n")

    stats = state.task_store.get_task_stats()
    if stats.total:
        _print_ts(f"{stats.active} active, {stats.urgent} urgent, {stats.completion_rate}% complete.")

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        reply = handle_line(state, user_input)
        if reply is not None:
            _print_ts(reply)

    logger.info("Console connector finished.")
