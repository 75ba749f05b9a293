"""Page template substitution for mdsite.

A page template is plain HTML carrying two placeholder tokens. The content
placeholder becomes a ``<script>`` block exposing the current page and the
whole collection as ``window.mdsite``; the meta placeholder becomes the page's
meta tags. Substitution is literal string replacement of the first occurrence
of each token; a token missing from the template is left alone.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .collections import PageCollection
from .config import SiteConfig
from .html_utils import script_json
from .meta import build_meta_block

__all__ = ["build_data_block", "render_page", "replace_once", "substitute"]


def build_data_block(page: Mapping[str, Any], pages: PageCollection) -> str:
    """Build the script element exposing page data to client code.

    Args:
        page: Current page fields.
        pages: Every page of the pass.

    Returns:
        A ``<script>`` element assigning ``window.mdsite``.
    """
    return f"""<script>
    window.mdsite = {{
      page: {script_json(dict(page))},
      pages: {script_json(pages.to_list())}
    }};
  </script>"""


def replace_once(template: str, token: str, replacement: str) -> str:
    """Replace the first occurrence of ``token``; no-op when absent."""
    if not token or token not in template:
        return template
    return template.replace(token, replacement, 1)


def substitute(
    template: str,
    content_block: str,
    meta_block: str,
    content_placeholder: str,
    meta_placeholder: str,
) -> str:
    """Insert the content and meta blocks into a template.

    Only template text is searched for tokens, never the inserted blocks.

    Examples:
        >>> substitute("A<!--c-->B<!--m-->C", "X", "Y", "<!--c-->", "<!--m-->")
        'AXBYC'
    """
    if not content_placeholder or content_placeholder not in template:
        return replace_once(template, meta_placeholder, meta_block)
    head, _, tail = template.partition(content_placeholder)
    if meta_placeholder and meta_placeholder in head:
        head = replace_once(head, meta_placeholder, meta_block)
    else:
        tail = replace_once(tail, meta_placeholder, meta_block)
    return head + content_block + tail


def render_page(
    template: str,
    page: Mapping[str, Any],
    pages: PageCollection,
    config: SiteConfig,
) -> str:
    """Render the final HTML of one page.

    Args:
        template: Page template text.
        page: Page to render.
        pages: Every page of the pass.
        config: Site configuration providing the placeholder tokens.

    Returns:
        Template with both placeholders substituted.
    """
    return substitute(
        template,
        build_data_block(page, pages),
        build_meta_block(page),
        config.content_placeholder,
        config.meta_placeholder,
    )
