"""Strict loader for the user-level settings file."""
from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from ccmanager.errors import DecodeError, NotFoundError, StorageIOError
from ccmanager.models import ClaudeSettings


def load_settings(settings_file: Path) -> ClaudeSettings:
    if not settings_file.exists():
        raise NotFoundError(f"Settings file not found: {settings_file}")
    try:
        content = settings_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise StorageIOError(f"Cannot read settings {settings_file}: {exc}") from exc

    try:
        payload = json.loads(content)
    except ValueError as exc:
        raise DecodeError(f"Malformed settings JSON in {settings_file}: {exc}") from exc
    if not isinstance(payload, dict):
        raise DecodeError(f"Settings in {settings_file} must be a JSON object")
    try:
        return ClaudeSettings.model_validate(payload)
    except ValidationError as exc:
        raise DecodeError(f"Invalid settings in {settings_file}: {exc}") from exc
