"""Shared timestamp parsing helpers."""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

# `date` output as written into command_history.log, e.g. "Thu Jul 17 15:18:23 JST 2025"
_DATE_CMD_RE = re.compile(
    r"^(?P<body>[A-Za-z]{3}\s+[A-Za-z]{3}\s+\d{1,2}\s+\d{2}:\d{2}:\d{2})\s+(?P<zone>[A-Za-z+\-0-9]+)\s+(?P<year>\d{4})$"
)
_ZONE_OFFSETS = {
    "UTC": 0,
    "GMT": 0,
    "Z": 0,
    "JST": 9,
    "KST": 9,
    "CST": -6,
    "CDT": -5,
    "EST": -5,
    "EDT": -4,
    "MST": -7,
    "MDT": -6,
    "PST": -8,
    "PDT": -7,
    "CET": 1,
    "CEST": 2,
    "BST": 1,
}

# fromisoformat before 3.11 only takes 3 or 6 fractional digits
_FRACTION_RE = re.compile(r"(?<=\d{2}:\d{2}:\d{2})\.(\d+)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_datetime_utc(value: datetime) -> str:
    dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _pad_fraction(match: re.Match) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_iso_timestamp(value: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp into an aware UTC datetime.

    Returns None for anything that is not a non-empty string in that shape.
    Naive values are taken as UTC.
    """
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    try:
        normalized = _FRACTION_RE.sub(_pad_fraction, cleaned.replace("Z", "+00:00"), count=1)
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_date_command_timestamp(value: str) -> datetime | None:
    """Parse the output of the `date` command or an ISO-8601 string."""
    token = (value or "").strip()
    if not token:
        return None
    iso = parse_iso_timestamp(token)
    if iso:
        return iso

    match = _DATE_CMD_RE.match(token)
    if not match:
        return None
    zone = match.group("zone").upper()
    if zone not in _ZONE_OFFSETS:
        return None
    try:
        naive = datetime.strptime(f"{match.group('body')} {match.group('year')}", "%a %b %d %H:%M:%S %Y")
    except ValueError:
        return None
    tz = timezone(timedelta(hours=_ZONE_OFFSETS[zone]))
    return naive.replace(tzinfo=tz).astimezone(timezone.utc)


def file_modified_datetime(path: Path) -> datetime:
    """Return the file's mtime as an aware UTC datetime. OSError propagates."""
    stats = path.stat()
    return datetime.fromtimestamp(float(stats.st_mtime), timezone.utc)
