"""Rebuild session summaries and message timelines from JSONL log files."""
from __future__ import annotations

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Iterator

from ccmanager import config
from ccmanager.date_utils import file_modified_datetime, parse_iso_timestamp, utc_now
from ccmanager.errors import StorageIOError
from ccmanager.models import AssistantMessage, ClaudeSession, Message
from ccmanager.observability import record_ingestion, record_parser_failure, start_span
from ccmanager.parsers.records import (
    decode_record,
    extract_content_preview,
    parse_record_line,
)

logger = logging.getLogger("ccmanager.parsers")

SESSION_SUFFIX = ".jsonl"


def list_session_files(project_dir: Path) -> list[Path]:
    """Return the session logs directly under one encoded project directory."""
    try:
        return sorted(p for p in project_dir.iterdir() if p.is_file() and p.suffix == SESSION_SUFFIX)
    except OSError as exc:
        raise StorageIOError(f"Cannot list {project_dir}: {exc}") from exc


def iter_log_lines(path: Path) -> Iterator[str]:
    """Yield lines of a log file in on-disk order without buffering the file."""
    try:
        with path.open("r", encoding="utf-8", errors="replace") as handle:
            yield from handle
    except OSError as exc:
        raise StorageIOError(f"Cannot read session log {path}: {exc}") from exc


def parse_session_file(
    path: Path,
    session_id: str,
    project_path: str,
    preview_chars: int | None = None,
) -> ClaudeSession:
    """Fold one session log into a ClaudeSession.

    Every JSON object line counts towards `message_count` and feeds the
    timestamps, whatever its `type`. `first_timestamp` is the first parseable
    timestamp in file order and `git_branch` the first non-empty branch. The
    preview comes from the decoded message with the greatest timestamp (later
    lines win ties). Any assistant turn without a stop reason marks the
    session as still processing.
    """
    budget = config.PREVIEW_MAX_CHARS if preview_chars is None else preview_chars
    started = time.perf_counter()

    message_count = 0
    skipped = 0
    first_ts: datetime | None = None
    last_ts: datetime | None = None
    git_branch: str | None = None
    preview: str | None = None
    preview_ts: datetime | None = None
    is_processing = False

    with start_span("ccmanager.parse_session", {"session_id": session_id}):
        try:
            modified = file_modified_datetime(path)
        except OSError as exc:
            raise StorageIOError(f"Cannot stat session log {path}: {exc}") from exc

        for line in iter_log_lines(path):
            raw = parse_record_line(line)
            if raw is None:
                if line.strip():
                    skipped += 1
                continue
            message_count += 1

            timestamp = parse_iso_timestamp(raw.get("timestamp"))
            if timestamp is not None:
                if first_ts is None:
                    first_ts = timestamp
                if last_ts is None or timestamp > last_ts:
                    last_ts = timestamp

            if git_branch is None:
                branch = raw.get("gitBranch")
                if isinstance(branch, str) and branch:
                    git_branch = branch

            message = decode_record(raw, session_id)
            if message is None:
                continue
            # snapshots and system records have no displayable content
            if timestamp is not None and (preview_ts is None or timestamp >= preview_ts):
                preview_ts = timestamp
                preview = extract_content_preview(raw, budget)

            if isinstance(message, AssistantMessage) and message.stop_reason is None:
                is_processing = True

    if skipped:
        logger.debug("Skipped %d unparseable lines in %s", skipped, path)
        record_parser_failure("session_line", skipped)
    record_ingestion("session", "ok", (time.perf_counter() - started) * 1000)

    now = utc_now()
    return ClaudeSession(
        session_id=session_id,
        project_path=project_path,
        first_timestamp=first_ts or now,
        last_timestamp=last_ts or now,
        file_modified_time=modified,
        message_count=message_count,
        git_branch=git_branch,
        latest_content_preview=preview,
        is_processing=is_processing,
    )


def parse_messages_file(path: Path, session_id: str) -> list[Message]:
    """Decode every recognised record of a session log, in file order."""
    messages: list[Message] = []
    started = time.perf_counter()
    with start_span("ccmanager.parse_messages", {"session_id": session_id}):
        for line in iter_log_lines(path):
            raw = parse_record_line(line)
            if raw is None:
                continue
            message = decode_record(raw, session_id)
            if message is not None:
                messages.append(message)
    record_ingestion("messages", "ok", (time.perf_counter() - started) * 1000)
    return messages
