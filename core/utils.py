import logging
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def append_note(existing: Optional[str], label: str, text: Optional[str]) -> Optional[str]:
    """
    Append "Label: text" to a free-text notes field.

    Entries are separated by a blank line. Blank text leaves notes unchanged.
    """
    if text is None or not text.strip():
        return existing
    entry = f"{label}: {text.strip()}"
    return f"{existing}\n\n{entry}" if existing else entry


def format_search_number(year: int, sequence: int) -> str:
    """Human-facing housing search number, e.g. HS-2026-0001."""
    return f"HS-{year}-{sequence:04d}"
