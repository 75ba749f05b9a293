"""Feed generation for mdsite.

This module generates the cross-page artifacts, sitemap.xml and feed.xml,
from a page collection. Each generator fills a template (user supplied or
built in) by replacing one placeholder token with the rendered entries.
Interpolated values are XML-escaped.

Classes:
    FeedGenerator: Base class for aggregate emitters.
    SitemapGenerator: Generates sitemap.xml.
    RSSGenerator: Generates an RSS 2.0 feed.xml.
    FeedRegistry: Runs every registered generator.

Functions:
    create_feed_registry: Build the registry for a configuration.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .config import ConfigError, SiteConfig
from .html_utils import escape_html
from .protocols import FileStore
from .templates import replace_once
from .utils import format_iso

if TYPE_CHECKING:
    from .content import PageRecord

logger = logging.getLogger(__name__)

# Structural pages that are never syndicated.
FEED_EXCLUDED_FILENAMES = frozenset(
    {"home", "index", "privacy-policy", "about", "contact", "analytics", "missing", "404"}
)

SITEMAP_PRIORITY = "1.0"


class FeedGenerator(ABC):
    """Base class for aggregate emitters.

    Attributes:
        template: Custom template text, or None for the built-in one.
        placeholder: Token replaced with the rendered entries.
    """

    def __init__(self, placeholder: str, template: str | None = None):
        self.placeholder = placeholder
        self.template = template

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename for this feed."""
        ...

    @abstractmethod
    def default_template(self, config: SiteConfig) -> str:
        """Return the built-in template, containing the placeholder."""
        ...

    @abstractmethod
    def render_entries(self, pages: Iterable[PageRecord], config: SiteConfig) -> str:
        """Render the entries inserted at the placeholder."""
        ...

    def generate(self, pages: Iterable[PageRecord], config: SiteConfig) -> str:
        """Generate the document.

        Args:
            pages: Pages of the pass, newest first.
            config: Site configuration.

        Returns:
            XML document text.
        """
        template = self.template if self.template is not None else self.default_template(config)
        return replace_once(template, self.placeholder, self.render_entries(pages, config))

    def write(
        self,
        store: FileStore,
        output_dir: Path,
        pages: Iterable[PageRecord],
        config: SiteConfig,
    ) -> Path:
        """Generate the document and write it to the output directory.

        Returns:
            Path of the written file.
        """
        output_path = output_dir / self.filename
        store.write_text(output_path, self.generate(pages, config))
        logger.info("Wrote %s", output_path)
        return output_path


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml following the sitemaps.org protocol."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def default_template(self, config: SiteConfig) -> str:
        return (
            '<?xml version="1.0" encoding="utf-8" ?>\n'
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9" '
            'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
            'xsi:schemaLocation="http://www.sitemaps.org/schemas/sitemap/0.9 '
            'http://www.sitemaps.org/schemas/sitemap/0.9/sitemap.xsd">'
            f"{self.placeholder}\n"
            "</urlset>"
        )

    def render_entries(self, pages: Iterable[PageRecord], config: SiteConfig) -> str:
        return "".join(
            f"""
  <url>
    <loc>{escape_html(page.absolute_url)}</loc>
    <priority>{SITEMAP_PRIORITY}</priority>
    <lastmod>{format_iso(page.updated_at)}</lastmod>
  </url>"""
            for page in pages
        )


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of the syndicated pages.

    Channel values come from the configured defaults (``title``, ``author``,
    ``baseUrl``, ``description``). Structural pages and drafts are left out.
    """

    @property
    def filename(self) -> str:
        return "feed.xml"

    def default_template(self, config: SiteConfig) -> str:
        defaults = config.defaults
        base_url = _text(defaults.get("baseUrl"))
        return f"""<?xml version="1.0" encoding="utf-8" ?>
    <rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">
      <channel>
        <title>{_text(defaults.get("title"))}</title>
        <author>{_text(defaults.get("author"))}</author>
        <link>{base_url}</link>
        <description>{_text(defaults.get("description"))}</description>
        <atom:link href="{base_url}/feed.xml" rel="self" type="application/rss+xml"></atom:link>{self.placeholder}
      </channel>
    </rss>"""

    def render_entries(self, pages: Iterable[PageRecord], config: SiteConfig) -> str:
        defaults = config.defaults
        items = []
        for page in pages:
            if page.filename in FEED_EXCLUDED_FILENAMES or page.get("draft") is True:
                continue
            link = escape_html(page.absolute_url)
            items.append(
                f"""
      <item>
        <title>{_text(page.get("title"))}</title>
        <author>{_text(page.get("author") or defaults.get("author"))}</author>
        <pubDate>{format_iso(page.created_at)}</pubDate>
        <description>{_text(page.get("description") or defaults.get("description"))}</description>
        <link>{link}</link>
        <guid isPermaLink="true">{link}</guid>
      </item>"""
            )
        return "".join(items)


def _text(value: Any) -> str:
    return "" if value is None else escape_html(value)


class FeedRegistry:
    """Registry for managing feed generators.

    Attributes:
        _generators: List of registered feed generators.
    """

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    @property
    def generators(self) -> list[FeedGenerator]:
        return list(self._generators)

    def generate_all(
        self,
        store: FileStore,
        output_dir: Path,
        pages: Iterable[PageRecord],
        config: SiteConfig,
    ) -> list[Path]:
        """Generate and write all registered feeds.

        Returns:
            Paths of the written files.
        """
        # Convert to list to allow multiple iterations
        pages_list = list(pages)
        return [
            generator.write(store, output_dir, pages_list, config)
            for generator in self._generators
        ]


def create_feed_registry(config: SiteConfig, store: FileStore) -> FeedRegistry:
    """Create the registry of emitters enabled by a configuration.

    Custom templates are read here so that a missing template fails the run
    before any output is written.

    Raises:
        ConfigError: If a configured feed or sitemap template cannot be read.
    """
    registry = FeedRegistry()
    if not config.skip_sitemap:
        template = _read_template(store, config.sitemap_template, "sitemap_template")
        registry.register(SitemapGenerator(config.sitemap_content_placeholder, template))
    if not config.skip_feed:
        template = _read_template(store, config.feed_template, "feed_template")
        registry.register(RSSGenerator(config.feed_content_placeholder, template))
    return registry


def _read_template(store: FileStore, path: Path | None, field: str) -> str | None:
    if path is None:
        return None
    try:
        return store.read_text(path)
    except OSError as exc:
        raise ConfigError(field, f"cannot read template {path}: {exc}") from exc
