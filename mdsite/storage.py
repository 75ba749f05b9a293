"""Local file store for mdsite.

Implements the FileStore protocol on top of pathlib. Directory walks return a
fresh list on every call, depth-first with entries sorted by name, so two
walks of an unchanged tree always agree.
"""

from __future__ import annotations

from pathlib import Path


class LocalFileStore:
    """FileStore backed by the local file system."""

    def walk(self, root: Path) -> list[Path]:
        """List all files below a directory.

        Args:
            root: Directory to walk.

        Returns:
            File paths, depth-first, sorted by name within each directory.
        """
        files: list[Path] = []
        for entry in sorted(root.iterdir(), key=lambda p: p.name):
            if entry.is_dir():
                files.extend(self.walk(entry))
            else:
                files.append(entry)
        return files

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def write_text(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)

    def mtime_ms(self, path: Path) -> int:
        return path.stat().st_mtime_ns // 1_000_000
