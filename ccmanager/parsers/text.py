"""Preview text shaping for session and project summaries."""
from __future__ import annotations

import unicodedata

ELLIPSIS = "…"


def clean_preview_text(content: str) -> str:
    """Flatten line breaks, drop non-whitespace control characters and trim."""
    flattened = content.replace("\r", " ").replace("\n", " ")
    kept = "".join(
        ch for ch in flattened
        if ch.isspace() or unicodedata.category(ch) != "Cc"
    )
    return kept.strip()


def truncate_preview(content: str, max_chars: int) -> str:
    """Bound `content` to `max_chars` code points, cutting on a word boundary.

    Over-long text is cut at the budget, backed up to the last space inside
    the window when there is one, and marked with a single ellipsis char.
    """
    cleaned = clean_preview_text(content)
    if len(cleaned) <= max_chars:
        return cleaned

    window = cleaned[:max(0, max_chars)]
    last_space = window.rfind(" ")
    if last_space > 0:
        window = window[:last_space]
    return f"{window.rstrip()}{ELLIPSIS}"
