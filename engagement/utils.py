"""Pure helpers: timestamps, comment text validation, row decoding."""

from datetime import datetime, timezone
from typing import Any, Optional

from .errors import ValidationError

# Comment constraints (used by services/comment_engine)
DEFAULT_COMMENT_MAX_LENGTH = 1000


def utc_now() -> str:
    """ISO-8601 UTC timestamp with microseconds; sorts lexicographically."""
    return datetime.now(timezone.utc).isoformat()


def normalize_comment(content: Optional[str], max_length: int = DEFAULT_COMMENT_MAX_LENGTH) -> str:
    """Trim and validate comment text. Raises ValidationError when empty or too long."""
    text = (content or "").strip()
    if not text:
        raise ValidationError("Please enter a comment.", field="content")
    if len(text) > max_length:
        raise ValidationError(f"Comments can be at most {max_length} characters.", field="content")
    return text


def blank_to_none(value: Any) -> Optional[str]:
    """Profile fields: treat empty/whitespace strings as missing."""
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def as_count(value: Any) -> int:
    """Decode a stored counter; missing or malformed values count as zero."""
    try:
        n = int(value or 0)
    except (TypeError, ValueError):
        return 0
    return n if n > 0 else 0
