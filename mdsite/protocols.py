"""Protocol definitions for mdsite.

The page pipeline consumes three capabilities it does not implement itself:
a file store, a markdown renderer and a front-matter parser. These protocols
let the pipeline run against the local implementations or test doubles.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class FileStore(Protocol):
    """Protocol for file system access used by the pipeline."""

    @abstractmethod
    def walk(self, root: Path) -> list[Path]:
        """Return every file below ``root``, depth-first, in a stable order."""
        ...

    @abstractmethod
    def read_text(self, path: Path) -> str:
        """Read a text file."""
        ...

    @abstractmethod
    def write_text(self, path: Path, content: str) -> None:
        """Write a text file, creating parent directories."""
        ...

    @abstractmethod
    def mtime_ms(self, path: Path) -> int:
        """Return the last-modified time in epoch milliseconds."""
        ...


@runtime_checkable
class ContentRenderer(Protocol):
    """Protocol for converting markdown to HTML."""

    @abstractmethod
    def render(self, markdown: str) -> str:
        """Render markdown source to HTML.

        Args:
            markdown: Markdown body without front matter.

        Returns:
            Rendered HTML.
        """
        ...


@runtime_checkable
class FrontmatterParser(Protocol):
    """Protocol for splitting a document into metadata and body."""

    @abstractmethod
    def parse(self, text: str) -> tuple[dict[str, Any], str]:
        """Split raw text into (metadata, body)."""
        ...
