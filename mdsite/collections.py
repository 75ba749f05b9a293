from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .content import PageRecord


class PageCollection(Sequence["PageRecord"]):
    """Pages of one render pass, newest ``createdAt`` first.

    The sort is stable, so pages created at the same instant keep their
    discovery order.
    """

    def __init__(self, pages: Iterable[PageRecord]):
        self._pages = sorted(pages, key=lambda p: p.created_at, reverse=True)

    def __iter__(self) -> Iterator[PageRecord]:
        return iter(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __getitem__(self, item):
        return self._pages[item]

    def find(self, filename: str) -> PageRecord | None:
        return next((p for p in self._pages if p.filename == filename), None)

    def to_list(self) -> list[dict[str, Any]]:
        return [p.to_dict() for p in self._pages]

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PageCollection({len(self._pages)} pages)"
