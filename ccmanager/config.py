"""ccmanager configuration."""
import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    value = os.getenv(name)
    if not value or not value.strip():
        return default
    return Path(value.strip()).expanduser()


# Claude data layout (everything is read from here, never written except via the file API)
CLAUDE_DIR = _env_path("CCM_CLAUDE_DIR", Path.home() / ".claude")
PROJECTS_DIRNAME = "projects"
TODOS_DIRNAME = "todos"
IDE_DIRNAME = "ide"
SETTINGS_FILENAME = "settings.json"
COMMAND_HISTORY_FILENAME = "command_history.log"

# Session reconstruction
PREVIEW_MAX_CHARS = _env_int("CCM_PREVIEW_MAX_CHARS", 200)
CWD_SNIFF_LINES = _env_int("CCM_CWD_SNIFF_LINES", 10)

# File watcher
WATCH_ENABLED = _env_bool("CCM_WATCH_ENABLED", True)
WATCH_DEBOUNCE_MS = _env_int("CCM_WATCH_DEBOUNCE_MS", 500)

# Observability
OTEL_ENABLED = _env_bool("CCM_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("CCM_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("CCM_OTEL_SERVICE_NAME", "ccmanager")
PROM_PORT = _env_int("CCM_PROM_PORT", 0)

# Server settings
HOST = os.getenv("CCM_HOST", "127.0.0.1")
PORT = _env_int("CCM_PORT", 8000)
LOG_LEVEL = os.getenv("CCM_LOG_LEVEL", "INFO").upper()

# CORS
FRONTEND_ORIGIN = os.getenv("CCM_FRONTEND_ORIGIN", "http://localhost:1420")
