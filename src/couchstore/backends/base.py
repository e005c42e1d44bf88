"""Base document database — Abstract interface for document store connections.

A document database holds schema-free JSON documents addressed by id and
exposes them through two kinds of index:
  1. ``all_docs``: every document, ordered by id
  2. named views: precomputed map (and optional reduce) indexes

Backends translate their native failures into ``couchstore.exceptions``:
``DocumentNotFoundError`` for missing documents, views or databases,
``QueryError`` for rejected requests and ``ConnectionError`` when the
server cannot be reached.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from couchstore.models.view import BulkResult, ViewResponse


class DocumentDatabase(ABC):
    """A handle on one database of a document store."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Database name."""

    @abstractmethod
    async def all_docs(self, **options: Any) -> ViewResponse:
        """Fetch rows of the all-documents index.

        Args:
            **options: Index options, e.g. ``include_docs=True``, ``limit``,
                ``startkey``.

        Returns:
            The raw index response.
        """

    @abstractmethod
    async def query_view(self, view: str, **options: Any) -> ViewResponse:
        """Query a named view.

        Args:
            view: ``"design/view"`` or ``"_design/design/_view/view"``.
            **options: View options, e.g. ``key``, ``startkey``, ``endkey``,
                ``descending``, ``include_docs``.

        Returns:
            The raw view response.

        Raises:
            DocumentNotFoundError: If the view does not exist.
        """

    @abstractmethod
    async def get(self, doc_id: str) -> dict[str, Any]:
        """Retrieve a single document by id.

        Raises:
            DocumentNotFoundError: If the document does not exist.
        """

    @abstractmethod
    async def bulk_docs(self, docs: Sequence[dict[str, Any]]) -> list[BulkResult]:
        """Write several documents in one request.

        Returns:
            One result per input document, in input order. Per-document
            failures such as conflicts are reported in the results rather
            than raised.
        """

    @abstractmethod
    async def info(self) -> dict[str, Any]:
        """Return database metadata (name, document count, ...)."""

    async def close(self) -> None:
        """Release resources held by this handle."""


class DatabaseFactory(ABC):
    """Opens databases by name."""

    @abstractmethod
    def open(self, name: str) -> DocumentDatabase:
        """Return a handle on database ``name``.

        Opening performs no I/O; a missing database surfaces on first use.
        """

    async def close(self) -> None:
        """Release resources shared by the opened databases."""


def split_view_name(view: str) -> tuple[str, str]:
    """Split a view name into ``(design, view)``.

    Accepts ``"design/view"`` and ``"_design/design/_view/view"``.

    Raises:
        ValueError: If the name has neither form.
    """
    parts = view.strip("/").split("/")
    if len(parts) == 4 and parts[0] == "_design" and parts[2] == "_view":
        return parts[1], parts[3]
    if len(parts) == 2 and all(parts):
        return parts[0], parts[1]
    raise ValueError(f"Invalid view name '{view}'. Expected 'design/view'.")
