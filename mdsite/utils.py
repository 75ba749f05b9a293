"""Utility functions for mdsite.

Timestamp conversion, reading-time estimation and value normalization used
while deriving page records.

Key functions:
    to_epoch_ms: Convert a date-like value to epoch milliseconds.
    format_iso: Format epoch milliseconds as an ISO-8601 UTC string.
    count_words: Count words in rendered HTML.
    reading_time: Estimate minutes needed to read rendered HTML.
    json_safe: Convert values so they serialize as flat JSON.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time, timezone
from typing import Any

from .html_utils import strip_tags

_WHITESPACE_RE = re.compile(r"\s+")


def to_epoch_ms(value: Any) -> int:
    """Convert a date-like value to epoch milliseconds.

    Naive dates and datetimes are interpreted as UTC.

    Args:
        value: A datetime, date, ISO-8601 string, or number of milliseconds.

    Returns:
        Epoch milliseconds.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp.

    Examples:
        >>> to_epoch_ms("2024-01-15")
        1705276800000
    """
    if isinstance(value, bool):
        raise ValueError(f"not a timestamp: {value!r}")
    if isinstance(value, (int, float)):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"not a timestamp: {value!r}")
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"not an ISO-8601 date: {value!r}") from None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, date):
        return to_epoch_ms(datetime.combine(value, time()))
    raise ValueError(f"not a timestamp: {value!r}")


def format_iso(ms: int) -> str:
    """Format epoch milliseconds as ``YYYY-MM-DDTHH:MM:SS.sssZ``."""
    moment = datetime.fromtimestamp(ms // 1000, tz=timezone.utc)
    return f"{moment.strftime('%Y-%m-%dT%H:%M:%S')}.{ms % 1000:03d}Z"


def count_words(html: str) -> int:
    """Count space-separated words in HTML after removing tags.

    Examples:
        >>> count_words("<p>one two three four</p>")
        4
    """
    text = _WHITESPACE_RE.sub(" ", strip_tags(html)).strip()
    return len(text.split(" "))


def reading_time(html: str, words_per_minute: int) -> int:
    """Return whole minutes needed to read HTML, rounding halves up."""
    return math.floor(count_words(html) / words_per_minute + 0.5)


def json_safe(value: Any) -> Any:
    """Recursively convert dates to ISO strings and tuples to lists."""
    if isinstance(value, date):
        return format_iso(to_epoch_ms(value))
    if isinstance(value, dict):
        return {str(k): json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    return value
