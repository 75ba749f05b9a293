"""HTML utility functions for mdsite.

Escaping for the contexts page values are interpolated into: HTML attributes,
XML text, and inline ``<script>`` data.

Functions:
    escape_html: Escape a value for HTML attributes and XML text.
    script_json: Serialize data as JSON that is safe inside a script element.
    strip_tags: Replace HTML tags with spaces.
"""

from __future__ import annotations

import json
import re
from typing import Any

from markupsafe import escape

_TAG_RE = re.compile(r"<[^>]*>")

_SCRIPT_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}
_SCRIPT_ESCAPE_RE = re.compile("[<>&\u2028\u2029]")


def escape_html(text: Any) -> str:
    """Escape special HTML characters in a string.

    Args:
        text: The value to escape; non-strings are converted with ``str``.

    Returns:
        The escaped string, safe for HTML attributes and XML text.

    Examples:
        >>> escape_html('Tom & "Jerry"')
        'Tom &amp; &#34;Jerry&#34;'
    """
    return str(escape(text))


def script_json(value: Any) -> str:
    """Serialize a value as compact JSON embeddable in a script element.

    Markup-significant characters are written as ``\\u`` escapes, which keeps
    ``</script>`` and HTML comments out of the output without changing the
    decoded value.
    """
    encoded = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return _SCRIPT_ESCAPE_RE.sub(lambda m: _SCRIPT_ESCAPES[m.group(0)], encoded)


def strip_tags(html: str) -> str:
    """Replace every HTML tag with a single space."""
    return _TAG_RE.sub(" ", html)
