"""Configuration for mdsite.

Options come from an optional ``mdsite.yaml`` in the project root, merged with
caller overrides (CLI flags) and fixed defaults. The resolved ``SiteConfig`` is
frozen and shared read-only by every stage of a render pass.

Key objects:
- SiteConfig: Immutable resolved configuration.
- ConfigError: Fatal configuration problem, aborts the whole run.
- load_config: Read ``mdsite.yaml`` and build a SiteConfig.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any
from urllib.parse import urlparse

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "mdsite.yaml"

CONTENT_PLACEHOLDER = "<!--mdsite content-->"
META_PLACEHOLDER = "<!--mdsite meta-->"
FEED_PLACEHOLDER = "<!-- markdown items -->"
SITEMAP_PLACEHOLDER = "<!-- markdown items -->"

DEFAULT_OPTIONS: dict[str, Any] = {
    "input": "markdown",
    "output": "dist",
    "html_template": "index.html",
    "feed_template": None,
    "sitemap_template": None,
    "content_placeholder": CONTENT_PLACEHOLDER,
    "meta_placeholder": META_PLACEHOLDER,
    "feed_content_placeholder": FEED_PLACEHOLDER,
    "sitemap_content_placeholder": SITEMAP_PLACEHOLDER,
    "defaults": {},
    "words_per_minute": None,
    "do_not_render_feed": False,
    "do_not_render_sitemap": False,
    "highlight_code": False,
}


class ConfigError(Exception):
    """Invalid or missing configuration.

    Attributes:
        field: Name of the offending option.
        message: Human-readable error message.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


@dataclass(frozen=True)
class SiteConfig:
    """Resolved configuration for one invocation.

    Attributes:
        markdown_dir: Root directory of markdown sources.
        output_dir: Directory receiving rendered files.
        html_template: Page template path.
        feed_template: Optional custom feed template path.
        sitemap_template: Optional custom sitemap template path.
        content_placeholder: Token replaced by the data block.
        meta_placeholder: Token replaced by the meta-tag block.
        feed_content_placeholder: Token replaced by feed items.
        sitemap_content_placeholder: Token replaced by sitemap entries.
        defaults: Front-matter defaults, also the source of site-wide values.
        words_per_minute: Enables reading time when set.
        skip_feed: Suppress feed.xml.
        skip_sitemap: Suppress sitemap.xml.
        highlight_code: Highlight fenced code with Pygments.
    """

    markdown_dir: Path
    output_dir: Path
    html_template: Path
    feed_template: Path | None = None
    sitemap_template: Path | None = None
    content_placeholder: str = CONTENT_PLACEHOLDER
    meta_placeholder: str = META_PLACEHOLDER
    feed_content_placeholder: str = FEED_PLACEHOLDER
    sitemap_content_placeholder: str = SITEMAP_PLACEHOLDER
    defaults: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    words_per_minute: int | None = None
    skip_feed: bool = False
    skip_sitemap: bool = False
    highlight_code: bool = False

    @classmethod
    def from_options(
        cls, options: Mapping[str, Any] | None, project_root: Path
    ) -> SiteConfig:
        """Merge caller options with the fixed defaults.

        Args:
            options: Option mapping, keys as in ``DEFAULT_OPTIONS``.
            project_root: Base for relative paths.

        Returns:
            A frozen SiteConfig.

        Raises:
            ConfigError: If an option has an invalid value.
        """
        merged = dict(DEFAULT_OPTIONS)
        for key, value in (options or {}).items():
            if key not in DEFAULT_OPTIONS:
                logger.warning("Ignoring unknown option %r", key)
                continue
            if value is not None:
                merged[key] = value

        defaults = merged["defaults"]
        if not isinstance(defaults, Mapping):
            raise ConfigError("defaults", "expected a mapping of front-matter defaults")

        wpm = merged["words_per_minute"]
        if wpm is not None:
            if isinstance(wpm, bool) or not isinstance(wpm, int) or wpm <= 0:
                raise ConfigError("words_per_minute", f"expected a positive integer, got {wpm!r}")

        def resolve(value: Any) -> Path | None:
            if value is None:
                return None
            path = Path(value)
            return path if path.is_absolute() else project_root / path

        return cls(
            markdown_dir=resolve(merged["input"]),
            output_dir=resolve(merged["output"]),
            html_template=resolve(merged["html_template"]),
            feed_template=resolve(merged["feed_template"]),
            sitemap_template=resolve(merged["sitemap_template"]),
            content_placeholder=str(merged["content_placeholder"]),
            meta_placeholder=str(merged["meta_placeholder"]),
            feed_content_placeholder=str(merged["feed_content_placeholder"]),
            sitemap_content_placeholder=str(merged["sitemap_content_placeholder"]),
            defaults=MappingProxyType(dict(defaults)),
            words_per_minute=wpm,
            skip_feed=bool(merged["do_not_render_feed"]),
            skip_sitemap=bool(merged["do_not_render_sitemap"]),
            highlight_code=bool(merged["highlight_code"]),
        )

    def base_url(self) -> str:
        """Return the validated site base URL from ``defaults['baseUrl']``.

        Raises:
            ConfigError: If the base URL is missing or not absolute.
        """
        value = self.defaults.get("baseUrl")
        if not isinstance(value, str) or not value:
            raise ConfigError("defaults.baseUrl", "a base URL is required")
        parsed = urlparse(value)
        if not parsed.scheme or not parsed.netloc:
            raise ConfigError("defaults.baseUrl", f"malformed base URL {value!r}")
        return value


def load_config(
    project_root: Path, overrides: Mapping[str, Any] | None = None
) -> SiteConfig:
    """Load configuration from mdsite.yaml and apply overrides.

    Args:
        project_root: Root directory of the project.
        overrides: Options taking precedence over the file (None values ignored).

    Returns:
        Resolved SiteConfig.
    """
    config_path = project_root / CONFIG_FILENAME
    options: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(CONFIG_FILENAME, f"invalid YAML: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(CONFIG_FILENAME, "expected a mapping at the top level")
        options.update(loaded)
    for key, value in (overrides or {}).items():
        if value is not None:
            options[key] = value
    return SiteConfig.from_options(options, project_root)
