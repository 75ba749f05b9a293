"""Meta tag generation for mdsite.

Each field of a page maps to zero or more ``<meta>`` tags. A closed rule
table handles the well-known fields; every other field falls back to a
generic tag that uses ``name`` for standard meta names and ``property``
otherwise, so arbitrary front-matter keys become Open Graph style
properties. All values are HTML-escaped.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from typing import Any

from .html_utils import escape_html
from .utils import format_iso

# Fields that never produce meta tags.
DISMISSED_FIELDS = frozenset(
    {
        "html",
        "url",
        "baseUrl",
        "created",
        "updated",
        "draft",
        "filename",
        "readingTime",
    }
)

META_TAGS_WITH_NAME = frozenset(
    {
        "owner",
        "author",
        "application-name",
        "generator",
        "referrer",
        "theme-color",
        "copyright",
        "medium",
        "language",
        "description",
        "keywords",
        "robots",
        "viewport",
    }
)


def stringify(value: Any) -> str:
    """Render a field value as meta content text.

    Lists are comma-joined, booleans and None use their JSON spelling and
    mappings are written as JSON.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return json.dumps(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else stringify(v) for v in value)
    if isinstance(value, Mapping):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _title(content: Any) -> str:
    text = escape_html(stringify(content))
    return f"""
  <title>{text}</title>
  <meta name="pagename" content="{text}" />
  <meta property="og:title" content="{text}" />
  <meta name="twitter:title" content="{text}" />"""


def _author(content: Any) -> str:
    text = escape_html(stringify(content))
    return f"""
  <meta name="author" content="{text}" />
  <meta property="article:author" content="{text}" />"""


def _description(content: Any) -> str:
    text = escape_html(stringify(content))
    return f"""
  <meta name="description" content="{text}" />
  <meta property="og:description" content="{text}" />
  <meta name="twitter:description" content="{text}" />"""


def _absolute_url(content: Any) -> str:
    text = escape_html(stringify(content))
    return f"""
  <meta name="url" content="{text}" />
  <meta property="og:url" content="{text}" />
  <meta name="identifier-URL" content="{text}" />"""


def _updated_at(content: Any) -> str:
    return f"""
  <meta property="article:modified_time" content="{format_iso(content)}" />"""


def _created_at(content: Any) -> str:
    return f"""
  <meta property="article:published_time" content="{format_iso(content)}" />"""


FIELD_RULES: Mapping[str, Callable[[Any], str]] = {
    "title": _title,
    "author": _author,
    "description": _description,
    "absolute_url": _absolute_url,
    "updatedAt": _updated_at,
    "createdAt": _created_at,
}


def _default_rule(key: str, content: Any) -> str:
    attribute = "name" if key in META_TAGS_WITH_NAME else "property"
    return f"""
  <meta {attribute}="{escape_html(key)}" content="{escape_html(stringify(content))}" />"""


def create_meta_tag(page: Mapping[str, Any], key: str) -> str:
    """Create the meta tags for one field of a page.

    Args:
        page: Page fields.
        key: Field to render.

    Returns:
        HTML fragment, empty for dismissed fields.
    """
    if key in DISMISSED_FIELDS:
        return ""
    content = page[key]
    rule = FIELD_RULES.get(key)
    if rule is not None:
        return rule(content)
    return _default_rule(key, content)


def build_meta_block(page: Mapping[str, Any]) -> str:
    """Concatenate the meta tags of every field in field order."""
    return "".join(create_meta_tag(page, key) for key in page)
