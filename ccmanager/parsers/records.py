"""Decode single JSONL log records into typed messages.

A record that cannot be decoded is never an error: blank lines, broken JSON
and unknown ``type`` values all come back as ``None`` so the rest of the
file keeps parsing.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from ccmanager.date_utils import format_datetime_utc, parse_iso_timestamp, utc_now
from ccmanager.models import (
    AssistantMessage,
    Message,
    ProcessingStatus,
    SummaryMessage,
    TextBlock,
    ToolUseBlock,
    UserMessage,
)
from ccmanager.parsers.text import truncate_preview

logger = logging.getLogger("ccmanager.parsers")

_STOP_REASON_STATUS: dict[str, ProcessingStatus] = {
    "end_turn": ProcessingStatus.COMPLETED,
    "tool_use": ProcessingStatus.COMPLETED,
    "max_tokens": ProcessingStatus.STOPPED,
    "stop_sequence": ProcessingStatus.STOPPED,
}


def _str_field(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    return value if isinstance(value, str) else ""


def _optional_str(raw: dict[str, Any], key: str) -> str | None:
    value = raw.get(key)
    return value if isinstance(value, str) else None


def _nested_message(raw: dict[str, Any]) -> dict[str, Any]:
    nested = raw.get("message")
    return nested if isinstance(nested, dict) else {}


def parse_record_line(line: str) -> dict[str, Any] | None:
    """Parse one log line into a raw JSON object, or None if it is not one."""
    stripped = line.strip()
    if not stripped:
        return None
    try:
        raw = json.loads(stripped)
    except ValueError:
        logger.debug("Skipping unparseable log line (%d chars)", len(stripped))
        return None
    return raw if isinstance(raw, dict) else None


def derive_processing_status(stop_reason: str | None) -> ProcessingStatus:
    if stop_reason is None:
        return ProcessingStatus.PROCESSING
    return _STOP_REASON_STATUS.get(stop_reason, ProcessingStatus.ERROR)


def extract_stop_reason(raw: dict[str, Any]) -> str | None:
    value = _nested_message(raw).get("stop_reason")
    if value is None:
        return None
    return value if isinstance(value, str) else json.dumps(value)


def decode_content_block(block: Any) -> TextBlock | ToolUseBlock | None:
    if not isinstance(block, dict):
        return None
    block_type = block.get("type")
    if block_type == "text":
        return TextBlock(text=_str_field(block, "text"))
    if block_type == "tool_use":
        return ToolUseBlock(
            id=_str_field(block, "id"),
            name=_str_field(block, "name"),
            input=block.get("input"),
        )
    return None


def decode_record(raw: dict[str, Any], session_id: str) -> Message | None:
    """Decode a raw record into a message variant, or None for other types."""
    record_type = raw.get("type")

    if record_type == "summary":
        return SummaryMessage(
            summary_text=_str_field(raw, "summary"),
            leaf_id=_str_field(raw, "leafUuid"),
        )

    if record_type not in ("user", "assistant"):
        return None

    common: dict[str, Any] = {
        "id": _str_field(raw, "uuid"),
        "parent_id": _optional_str(raw, "parentUuid"),
        "session_id": session_id,
        "timestamp": parse_iso_timestamp(raw.get("timestamp")) or utc_now(),
        "working_directory": _str_field(raw, "cwd"),
        "git_branch": _optional_str(raw, "gitBranch"),
    }
    content = _nested_message(raw).get("content")

    if record_type == "user":
        # Block-array content (tool results) is not reconstructed into text.
        return UserMessage(**common, content=content if isinstance(content, str) else "")

    blocks = []
    if isinstance(content, list):
        for item in content:
            block = decode_content_block(item)
            if block is not None:
                blocks.append(block)
    stop_reason = extract_stop_reason(raw)
    return AssistantMessage(
        **common,
        content=blocks,
        processing_status=derive_processing_status(stop_reason),
        stop_reason=stop_reason,
    )


def decode_record_line(line: str, session_id: str) -> Message | None:
    raw = parse_record_line(line)
    if raw is None:
        return None
    return decode_record(raw, session_id)


def extract_content_preview(raw: dict[str, Any], max_chars: int) -> str | None:
    """Build the one-line human preview for a raw record."""
    record_type = raw.get("type")

    if record_type == "user":
        content = _nested_message(raw).get("content")
        if isinstance(content, str):
            return truncate_preview(content, max_chars)
        return None

    if record_type == "assistant":
        content = _nested_message(raw).get("content")
        if not isinstance(content, list):
            return None
        parts: list[str] = []
        for block in content:
            if not isinstance(block, dict):
                continue
            if block.get("type") == "text" and isinstance(block.get("text"), str):
                parts.append(block["text"])
            elif block.get("type") == "tool_use" and isinstance(block.get("name"), str):
                parts.append(f"[Using tool: {block['name']}]")
        if not parts:
            return None
        return truncate_preview(" ".join(parts), max_chars)

    if record_type == "summary":
        summary = raw.get("summary")
        if isinstance(summary, str):
            return truncate_preview(summary, max_chars)
    return None


def message_to_record(message: Message) -> dict[str, Any]:
    """Re-encode a decoded message into the on-disk record shape."""
    if isinstance(message, SummaryMessage):
        return {"type": "summary", "summary": message.summary_text, "leafUuid": message.leaf_id}

    record: dict[str, Any] = {
        "type": message.message_type,
        "uuid": message.id,
        "parentUuid": message.parent_id,
        "sessionId": message.session_id,
        "timestamp": format_datetime_utc(message.timestamp),
        "cwd": message.working_directory,
    }
    if message.git_branch is not None:
        record["gitBranch"] = message.git_branch

    if isinstance(message, UserMessage):
        record["message"] = {"role": "user", "content": message.content}
        return record

    record["message"] = {
        "role": "assistant",
        "content": [block.model_dump() for block in message.content],
        "stop_reason": message.stop_reason,
    }
    return record
