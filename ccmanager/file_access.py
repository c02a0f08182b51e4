"""Guarded read/write access to files inside ``.claude`` directories."""
from __future__ import annotations

import logging
from pathlib import Path

from ccmanager.errors import AccessDeniedError, NotFoundError, StorageIOError

logger = logging.getLogger("ccmanager.files")

CLAUDE_DIRNAME = ".claude"


def _normalize(raw_path: str | Path) -> Path:
    return Path(raw_path).expanduser().resolve(strict=False)


def has_claude_ancestor(path: Path) -> bool:
    return CLAUDE_DIRNAME in path.parent.parts


def ensure_claude_path(raw_path: str | Path) -> Path:
    """Resolve `raw_path` and require a ``.claude`` directory above it."""
    path = _normalize(raw_path)
    if not has_claude_ancestor(path):
        raise AccessDeniedError(f"Access denied: {raw_path} is not inside a {CLAUDE_DIRNAME} directory")
    return path


def read_file(raw_path: str | Path) -> str:
    path = ensure_claude_path(raw_path)
    if not path.is_file():
        raise NotFoundError(f"File not found: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise StorageIOError(f"Cannot read {path}: {exc}") from exc


def write_file(raw_path: str | Path, content: str) -> Path:
    path = ensure_claude_path(raw_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise StorageIOError(f"Cannot write {path}: {exc}") from exc
    logger.info("Wrote %d chars to %s", len(content), path)
    return path
