"""Parse the flat shell command log written by Claude hooks."""
from __future__ import annotations

import logging
import re
from pathlib import Path

from ccmanager.date_utils import parse_date_command_timestamp, utc_now
from ccmanager.errors import StorageIOError
from ccmanager.models import CommandLogEntry

logger = logging.getLogger("ccmanager.parsers")

# [Thu Jul 17 15:18:23 JST 2025] user: command
_COMMAND_LINE_PATTERN = re.compile(r"\[(?P<timestamp>[^\]]*)\] (?P<user>[^:]*): (?P<command>.+)")


def parse_command_log_line(line: str) -> CommandLogEntry | None:
    match = _COMMAND_LINE_PATTERN.search(line.rstrip("\r\n"))
    if not match:
        return None
    raw_timestamp = match.group("timestamp").strip()
    return CommandLogEntry(
        timestamp=parse_date_command_timestamp(raw_timestamp) or utc_now(),
        user=match.group("user"),
        command=match.group("command"),
        raw_timestamp=raw_timestamp,
    )


def load_command_history(log_file: Path) -> list[CommandLogEntry]:
    """Read every parseable entry, newest first. A missing log is empty."""
    if not log_file.exists():
        return []
    try:
        content = log_file.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise StorageIOError(f"Cannot read command history {log_file}: {exc}") from exc

    entries: list[CommandLogEntry] = []
    skipped = 0
    for line in content.splitlines():
        entry = parse_command_log_line(line)
        if entry is None:
            if line.strip():
                skipped += 1
            continue
        entries.append(entry)
    if skipped:
        logger.debug("Skipped %d unparseable command log lines", skipped)

    entries.sort(key=lambda e: e.timestamp, reverse=True)
    return entries


def search_commands(entries: list[CommandLogEntry], query: str) -> list[CommandLogEntry]:
    needle = query.lower()
    return [entry for entry in entries if needle in entry.command.lower()]
