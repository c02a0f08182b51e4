"""Load todo snapshots from the todos directory."""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from ccmanager.errors import StorageIOError
from ccmanager.models import TodoItem
from ccmanager.observability import record_parser_failure

logger = logging.getLogger("ccmanager.parsers")

_TODO_LIST_ADAPTER = TypeAdapter(list[TodoItem])
# <session-id>-agent-<agent-id>.json
_TODO_FILENAME_PATTERN = re.compile(r"^(?P<session>.+?)-agent-(?P<agent>.+)$")


def session_id_from_todo_file(path: Path) -> str | None:
    match = _TODO_FILENAME_PATTERN.match(path.stem)
    return match.group("session") if match else None


def load_todo_file(path: Path) -> list[TodoItem] | None:
    """Decode one todo file; None when it is not a valid todo array."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        todos = _TODO_LIST_ADAPTER.validate_python(payload)
    except (OSError, ValueError, ValidationError) as exc:
        logger.debug("Skipping malformed todo file %s: %s", path.name, exc)
        record_parser_failure("todo_file")
        return None

    session_id = session_id_from_todo_file(path)
    if session_id:
        for todo in todos:
            todo.session_id = session_id
    return todos


def load_todos(todos_dir: Path) -> list[TodoItem]:
    """Aggregate every ``*.json`` todo array; malformed files are skipped."""
    if not todos_dir.is_dir():
        return []
    try:
        files = sorted(p for p in todos_dir.iterdir() if p.is_file() and p.suffix == ".json")
    except OSError as exc:
        raise StorageIOError(f"Cannot list {todos_dir}: {exc}") from exc

    all_todos: list[TodoItem] = []
    for path in files:
        todos = load_todo_file(path)
        if todos:
            all_todos.extend(todos)
    return all_todos
