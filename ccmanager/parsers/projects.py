"""Map encoded project directory names back to real project paths.

Claude stores each project's logs under a directory named after the
project path with separators replaced by hyphens. That encoding cannot be
reversed reliably (a hyphen in the real path looks like a separator), so
the ``cwd`` recorded in the logs themselves is preferred when present.
"""
from __future__ import annotations

import logging
from itertools import islice
from pathlib import Path

from ccmanager import config
from ccmanager.errors import StorageIOError
from ccmanager.parsers.records import parse_record_line
from ccmanager.parsers.sessions import iter_log_lines, list_session_files

logger = logging.getLogger("ccmanager.parsers")


def decode_project_dir_name(dir_name: str) -> str:
    """Naive reverse of the directory-name encoding."""
    return dir_name.replace("-", "/")


def sniff_cwd(path: Path, max_lines: int | None = None) -> str | None:
    """Return the first non-empty ``cwd`` among the first `max_lines` records."""
    limit = config.CWD_SNIFF_LINES if max_lines is None else max_lines
    lines = iter_log_lines(path)
    try:
        for line in islice(lines, max(0, limit)):
            raw = parse_record_line(line)
            if raw is None:
                continue
            cwd = raw.get("cwd")
            if isinstance(cwd, str) and cwd:
                return cwd
    finally:
        lines.close()
    return None


def resolve_project_path(project_dir: Path, max_lines: int | None = None) -> str:
    """Resolve one encoded project directory to the path its sessions ran in."""
    for session_file in list_session_files(project_dir):
        try:
            cwd = sniff_cwd(session_file, max_lines)
        except StorageIOError as exc:
            logger.debug("cwd sniff skipped for %s: %s", session_file, exc)
            continue
        if cwd:
            return cwd
    return decode_project_dir_name(project_dir.name)


def list_project_dirs(projects_dir: Path) -> list[Path]:
    if not projects_dir.is_dir():
        return []
    try:
        return sorted(p for p in projects_dir.iterdir() if p.is_dir())
    except OSError as exc:
        raise StorageIOError(f"Cannot list {projects_dir}: {exc}") from exc


def build_project_path_mapping(projects_dir: Path, max_lines: int | None = None) -> dict[str, str]:
    """Build the directory-name → resolved-path table for one listing pass."""
    return {
        project_dir.name: resolve_project_path(project_dir, max_lines)
        for project_dir in list_project_dirs(projects_dir)
    }
