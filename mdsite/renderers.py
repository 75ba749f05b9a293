"""Markdown rendering for mdsite.

MarkdownRenderer owns one configured mistune instance and is passed explicitly
to the page builder. Raw HTML passes through untouched, bare URLs are not
autolinked, and no typographic substitution happens. Footnotes, GFM tables and
``~~strikethrough~~`` are enabled.

Attribute blocks follow the inline attribute syntax. Written directly after a
link, image, emphasis or code span they attach to that element; ending a
heading or paragraph they attach to the block::

    ## Install {#install .wide data-step=1}

    See [the docs](/docs){.button}
"""

from __future__ import annotations

import html
import re
from typing import Any, Iterable

import mistune
from mistune.core import BlockState
from mistune.util import escape as escape_text
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .html_utils import escape_html

ATTR_BLOCK_RE = re.compile(r"\s*\{([^{}]*)\}\s*$")
INLINE_ATTR_RE = re.compile(r"\{([^{}]*)\}")
ATTR_TOKEN_RE = re.compile(
    r"""\s*(?:\#(?P<id>[\w-]+)|\.(?P<cls>[\w-]+)|(?P<key>[\w-]+)=(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s"'}]+)))"""
)

# Inline token types that accept a directly following attribute block.
INLINE_ATTR_TYPES = frozenset({"link", "image", "emphasis", "strong", "codespan"})


def parse_attributes(inner: str) -> dict[str, str] | None:
    """Parse the inside of an attribute block.

    Returns:
        Attributes with ``class`` last, or None when the block is empty or
        contains anything other than ids, classes and key=value pairs.
    """
    inner = inner.strip()
    if not inner:
        return None

    attrs: dict[str, str] = {}
    classes: list[str] = []
    pos = 0
    while pos < len(inner):
        token = ATTR_TOKEN_RE.match(inner, pos)
        if not token:
            return None
        if token.group("id"):
            attrs["id"] = token.group("id")
        elif token.group("cls"):
            classes.append(token.group("cls"))
        else:
            value = next(
                v for v in (token.group("dq"), token.group("sq"), token.group("bare"))
                if v is not None
            )
            attrs[token.group("key")] = value
        pos = token.end()
    if classes:
        attrs["class"] = " ".join(classes)
    return attrs


def split_attributes(text: str) -> tuple[str, dict[str, str]]:
    """Split a trailing ``{...}`` attribute block off rendered inline text.

    Args:
        text: Inline HTML of a heading or paragraph.

    Returns:
        Tuple of (text without the block, attributes). Text that does not end
        in a well-formed block is returned unchanged with no attributes.
    """
    match = ATTR_BLOCK_RE.search(text)
    if not match:
        return text, {}
    # Inline text arrives entity-escaped; values are re-escaped on output.
    attrs = parse_attributes(html.unescape(match.group(1)))
    if not attrs:
        return text, {}
    return text[: match.start()], attrs


def _render_attributes(attrs: dict[str, str]) -> str:
    return "".join(f' {key}="{escape_html(value)}"' for key, value in attrs.items())


def _add_attributes(element: str, attrs: dict[str, str]) -> str:
    """Insert attributes at the end of an element's opening tag."""
    end = element.find(">")
    if end == -1:
        return element
    if element[end - 1] == "/":
        end = len(element[:end - 1].rstrip())
    return element[:end] + _render_attributes(attrs) + element[end:]


class _AttributeRenderer(mistune.HTMLRenderer):
    """HTML renderer with attribute blocks and optional code highlighting."""

    def __init__(self, highlight_code: bool = False):
        super().__init__(escape=False)
        self.highlight_code = highlight_code

    def render_tokens(self, tokens: Iterable[dict[str, Any]], state: BlockState) -> str:
        tokens = list(tokens)
        parts = []
        for index, token in enumerate(tokens):
            output = self.render_token(token, state)
            following = tokens[index + 1] if index + 1 < len(tokens) else None
            if (
                token["type"] in INLINE_ATTR_TYPES
                and following is not None
                and following["type"] == "text"
            ):
                match = INLINE_ATTR_RE.match(following["raw"])
                attrs = parse_attributes(match.group(1)) if match else None
                if attrs:
                    output = _add_attributes(output, attrs)
                    tokens[index + 1] = {**following, "raw": following["raw"][match.end():]}
            parts.append(output)
        return "".join(parts)

    def heading(self, text: str, level: int, **attrs) -> str:
        text, extra = split_attributes(text)
        merged = {"id": attrs["id"]} if attrs.get("id") else {}
        merged.update(extra)
        return f"<h{level}{_render_attributes(merged)}>{text}</h{level}>\n"

    def paragraph(self, text: str) -> str:
        text, attrs = split_attributes(text)
        return f"<p{_render_attributes(attrs)}>{text}</p>\n"

    def block_code(self, code: str, info: str | None = None) -> str:
        lang = info.strip().split(None, 1)[0] if info and info.strip() else ""
        if lang and self.highlight_code:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
        lang_class = f' class="language-{escape_html(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escape_text(code)}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown content to HTML.

    Attributes:
        highlight_code: Whether fenced code is highlighted with Pygments.
    """

    def __init__(self, highlight_code: bool = False):
        self.highlight_code = highlight_code
        self._markdown = mistune.create_markdown(
            renderer=_AttributeRenderer(highlight_code=highlight_code),
            plugins=["strikethrough", "footnotes", "table"],
        )

    def render(self, markdown: str) -> str:
        """Render Markdown content to HTML.

        Args:
            markdown: Markdown body without front matter.

        Returns:
            Rendered HTML.
        """
        return self._markdown(markdown)
