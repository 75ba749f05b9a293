"""Site building functionality for mdsite.

This module composes the page pipeline: collect pages, substitute each into
the page template, write the results, then emit the sitemap and feed.

Key functions:
- render_site: Render every page plus sitemap and feed to the output directory.
- render_preview: Render the ``index`` page into an in-memory template.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .collections import PageCollection
from .config import ConfigError, SiteConfig
from .content import BuildError, ContentProcessor
from .feeds import create_feed_registry
from .protocols import ContentRenderer, FileStore
from .storage import LocalFileStore
from .templates import render_page

__all__ = ["BuildError", "BuildResult", "collect_pages", "render_preview", "render_site"]

logger = logging.getLogger(__name__)

PREVIEW_PAGE = "index"


@dataclass
class BuildResult:
    """Result of a full render.

    Attributes:
        pages: Every rendered page, newest first.
        output_dir: Directory the site was written to.
        written: Paths of every file written, in write order.
    """

    pages: PageCollection
    output_dir: Path
    written: list[Path] = field(default_factory=list)


def collect_pages(
    config: SiteConfig,
    store: FileStore | None = None,
    renderer: ContentRenderer | None = None,
) -> PageCollection:
    """Collect every non-draft page of the site, newest first."""
    return ContentProcessor(config, store=store, renderer=renderer).load()


def render_site(
    config: SiteConfig,
    store: FileStore | None = None,
    renderer: ContentRenderer | None = None,
) -> BuildResult:
    """Render all pages, the sitemap and the feed.

    Every template is read and every page derived before the first write, so
    a configuration or source error leaves the output directory untouched.

    Args:
        config: Resolved site configuration.
        store: File store, defaults to the local file system.
        renderer: Markdown renderer, defaults to one built from the config.

    Returns:
        BuildResult listing the pages and written files.

    Raises:
        ConfigError: If a template is unreadable or the base URL is invalid.
        BuildError: If a source document cannot be turned into a page.
    """
    store = store or LocalFileStore()
    template = _read_page_template(store, config)
    feeds = create_feed_registry(config, store)
    pages = collect_pages(config, store, renderer)

    targets = [(config.output_dir / f"{page.filename}.html", page) for page in pages]
    template_path = config.html_template.resolve()
    for output_path, page in targets:
        if output_path.resolve() == template_path:
            raise ConfigError(
                "output",
                f"page '{page.filename}' would overwrite the template {config.html_template}",
            )

    result = BuildResult(pages=pages, output_dir=config.output_dir)
    for output_path, page in targets:
        store.write_text(output_path, render_page(template, page, pages, config))
        result.written.append(output_path)
    logger.info("Rendered %d pages into %s", len(pages), config.output_dir)

    result.written.extend(feeds.generate_all(store, config.output_dir, pages, config))
    return result


def render_preview(
    template: str,
    url: str,
    config: SiteConfig,
    store: FileStore | None = None,
    renderer: ContentRenderer | None = None,
) -> str:
    """Render the index page into a template without writing files.

    Args:
        template: Page template text supplied by the host.
        url: Requested URL path. The preview always shows the index page.
        config: Resolved site configuration.
        store: File store, defaults to the local file system.
        renderer: Markdown renderer, defaults to one built from the config.

    Returns:
        Rendered HTML.

    Raises:
        BuildError: If no ``index`` page exists or a document is unusable.
    """
    pages = collect_pages(config, store, renderer)
    page = pages.find(PREVIEW_PAGE)
    if page is None:
        raise BuildError(
            config.markdown_dir / f"{PREVIEW_PAGE}.md",
            "preview needs an index page (missing or marked as draft)",
        )
    logger.debug("Rendering preview of %s for %s", page.filename, url)
    return render_page(template, page, pages, config)


def _read_page_template(store: FileStore, config: SiteConfig) -> str:
    try:
        return store.read_text(config.html_template)
    except OSError as exc:
        raise ConfigError(
            "html_template", f"cannot read template {config.html_template}: {exc}"
        ) from exc
