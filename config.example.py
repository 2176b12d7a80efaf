# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKDECK_APP_NAME": "App display name (default: taskdeck).",
    "TASKDECK_LOG_LEVEL": "Console logging level (default: WARNING).",
    "TASKDECK_LOG_TO_FILE": "Write full debug logs to <data_dir>/taskdeck.log (true/false, default: true).",
    # Storage
    "TASKDECK_DATA_DIR": "Local data directory (default: .local/taskdeck).",
    "TASKDECK_STORAGE": "Storage backend: sqlite | memory (default: sqlite).",
    "TASKDECK_STORAGE_PATH": "Key-value SQLite path (default: <data_dir>/storage.sqlite3).",
    "TASKDECK_TASKS_KEY": "Storage key holding the task collection (default: todo-tasks).",
}
