"""Content processing for mdsite.

This module discovers markdown documents and turns each into a PageRecord:
front matter is split from the body, the body is rendered to HTML, and URLs,
timestamps and reading time are derived.

Key classes:
- PageRecord: Read-only mapping holding every field of one page.
- MarkdownFileLoader: Lists markdown files below the source directory.
- PageBuilder: Derives a PageRecord from one source file.
- ContentProcessor: Facade collecting all non-draft pages, newest first.
- BuildError: A source document could not be turned into a page.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urljoin

from .collections import PageCollection
from .config import SiteConfig
from .extractors import FrontmatterError, YamlFrontmatterParser
from .protocols import ContentRenderer, FileStore, FrontmatterParser
from .renderers import MarkdownRenderer
from .storage import LocalFileStore
from .utils import json_safe, reading_time, to_epoch_ms

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class PageRecord(Mapping[str, Any]):
    """Resolved, render-ready representation of one source document.

    Field order is the merge order: defaults, then front matter, then the
    computed fields. Values are flat JSON-compatible data.
    """

    def __init__(self, fields: Mapping[str, Any]):
        self._fields = dict(fields)

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    @property
    def filename(self) -> str:
        return self._fields["filename"]

    @property
    def url(self) -> str:
        return self._fields["url"]

    @property
    def absolute_url(self) -> str:
        return self._fields["absolute_url"]

    @property
    def created_at(self) -> int:
        return self._fields["createdAt"]

    @property
    def updated_at(self) -> int:
        return self._fields["updatedAt"]

    @property
    def html(self) -> str:
        return self._fields["html"]

    @property
    def reading_time(self) -> int | None:
        return self._fields.get("readingTime")

    def to_dict(self) -> dict[str, Any]:
        return dict(self._fields)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PageRecord({self.filename!r})"


class MarkdownFileLoader:
    """Lists markdown source files.

    Attributes:
        markdown_dir: Root directory of markdown sources.
        store: File store used for the directory walk.
    """

    def __init__(self, markdown_dir: Path, store: FileStore):
        self.markdown_dir = markdown_dir
        self.store = store

    def iter_files(self) -> list[Path]:
        """Return every ``.md`` file below the markdown root, depth-first."""
        return [
            path
            for path in self.store.walk(self.markdown_dir)
            if path.suffix == MARKDOWN_SUFFIX
        ]


class PageBuilder:
    """Builds PageRecord objects from source files.

    Attributes:
        config: Resolved site configuration.
        store: File store for reads and modification times.
        renderer: Markdown renderer shared by every page of a pass.
        parser: Front-matter parser.
    """

    def __init__(
        self,
        config: SiteConfig,
        store: FileStore,
        renderer: ContentRenderer,
        parser: FrontmatterParser | None = None,
    ):
        self.config = config
        self.store = store
        self.renderer = renderer
        self.parser = parser or YamlFrontmatterParser()

    def build(self, path: Path) -> PageRecord | None:
        """Derive a page from a source file.

        Args:
            path: Markdown file below the markdown root.

        Returns:
            The PageRecord, or None when the document is a draft.

        Raises:
            BuildError: If the file cannot be read or its front matter is
                malformed or lacks a usable ``created`` date.
            ConfigError: If the configured base URL is missing or malformed.
        """
        try:
            raw = self.store.read_text(path)
            frontmatter, body = self.parser.parse(raw)
        except FrontmatterError as exc:
            raise BuildError(path, str(exc), exc) from exc
        except OSError as exc:
            raise BuildError(path, f"cannot read file: {exc}", exc) from exc

        if frontmatter.get("draft"):
            logger.debug("Skipping draft %s", path)
            return None

        if frontmatter.get("created") is None:
            raise BuildError(path, "missing required front-matter field 'created'")
        try:
            created_at = to_epoch_ms(frontmatter["created"])
            if frontmatter.get("updated"):
                updated_at = to_epoch_ms(frontmatter["updated"])
            else:
                updated_at = self.store.mtime_ms(path)
        except ValueError as exc:
            raise BuildError(path, f"invalid date in front matter: {exc}", exc) from exc

        filename = self._filename_for(path)
        html = self.renderer.render(body)
        explicit_url = frontmatter.get("url")
        absolute_url = urljoin(self.config.base_url(), explicit_url or filename)

        fields: dict[str, Any] = json_safe(dict(self.config.defaults))
        fields.update(json_safe(frontmatter))
        fields["updatedAt"] = updated_at
        fields["createdAt"] = created_at
        fields["absolute_url"] = absolute_url
        if self.config.words_per_minute:
            fields["readingTime"] = reading_time(html, self.config.words_per_minute)
        fields["filename"] = filename
        fields["url"] = explicit_url or f"/{filename}"
        fields["html"] = html

        logger.debug("Derived page %s from %s", filename, path)
        return PageRecord(fields)

    def _filename_for(self, path: Path) -> str:
        rel = path.relative_to(self.config.markdown_dir).as_posix()
        if rel.endswith(MARKDOWN_SUFFIX):
            rel = rel[: -len(MARKDOWN_SUFFIX)]
        return rel


class ContentProcessor:
    """Facade for collecting pages from the markdown directory.

    Attributes:
        config: Resolved site configuration.
    """

    def __init__(
        self,
        config: SiteConfig,
        store: FileStore | None = None,
        renderer: ContentRenderer | None = None,
        file_loader: MarkdownFileLoader | None = None,
        page_builder: PageBuilder | None = None,
    ):
        self.config = config
        store = store or LocalFileStore()
        renderer = renderer or MarkdownRenderer(highlight_code=config.highlight_code)
        self._file_loader = file_loader or MarkdownFileLoader(config.markdown_dir, store)
        self._page_builder = page_builder or PageBuilder(config, store, renderer)

    def load(self) -> PageCollection:
        """Derive every non-draft page.

        Returns:
            PageCollection ordered by ``createdAt``, newest first.

        Raises:
            BuildError: If the markdown directory or any document is unusable.
        """
        try:
            files = self._file_loader.iter_files()
        except OSError as exc:
            raise BuildError(
                self.config.markdown_dir, f"cannot list markdown directory: {exc}", exc
            ) from exc

        records = []
        for path in files:
            record = self._page_builder.build(path)
            if record is not None:
                records.append(record)
        return PageCollection(records)
