"""Error taxonomy for Claude data access.

Per-line and per-file tolerance lives in the parsers; anything raised from
here is meant to reach the caller.
"""
from __future__ import annotations


class ClaudeDataError(Exception):
    """Base class for failures surfaced by the data manager."""


class NotFoundError(ClaudeDataError):
    """A session id or a required file does not exist."""


class AccessDeniedError(ClaudeDataError):
    """A path lies outside the directories the file API may touch."""


class StorageIOError(ClaudeDataError):
    """Filesystem failure while listing, opening or reading a file."""


class DecodeError(ClaudeDataError):
    """A file that must be a single well-formed document could not be decoded."""
