"""Front-matter extraction for mdsite.

Documents may start with a YAML block fenced by ``---`` lines. The block is
parsed with PyYAML; everything after the closing fence is the markdown body.

Key objects:
- extract_frontmatter: Split raw text into (metadata, body).
- YamlFrontmatterParser: FrontmatterParser implementation.
- FrontmatterError: Raised for malformed front matter.
"""

from __future__ import annotations

import re
from typing import Any

import yaml

FRONTMATTER_RE = re.compile(
    r"^---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|$)", re.DOTALL
)


class FrontmatterError(ValueError):
    """Front matter exists but cannot be parsed into a mapping."""


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML front matter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (front matter dict, remaining body).

    Raises:
        FrontmatterError: If the block is not valid YAML or not a mapping.
    """
    text = text.lstrip("\ufeff")
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1) or "")
    except yaml.YAMLError as exc:
        raise FrontmatterError(f"invalid YAML front matter: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterError(
            f"front matter must be a mapping, got {type(data).__name__}"
        )
    return data, text[match.end() :]


class YamlFrontmatterParser:
    """Parses ``---`` fenced YAML front matter."""

    def parse(self, text: str) -> tuple[dict[str, Any], str]:
        return extract_frontmatter(text)
