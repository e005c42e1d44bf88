"""In-memory backend — a document database living in the current process.

Mirrors the CouchDB contract closely enough to exercise stores without a
server: documents carry ``_id``/``_rev``, ``all_docs`` is ordered by id,
views are Python map functions whose rows are ordered by key using CouchDB
collation, and bulk writes report revision conflicts per document.

Usage::

    db = MemoryDatabase("articles")
    db.define_view("articles/by_author", lambda doc, emit: emit(doc.get("author"), doc.get("title")))
    await db.bulk_docs([{"_id": "a1", "author": "Jane", "title": "Nowcasting"}])
    response = await db.query_view("articles/by_author", key="Jane")
"""

from __future__ import annotations

import copy
import uuid
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from couchstore.backends.base import DatabaseFactory, DocumentDatabase, split_view_name
from couchstore.exceptions import DocumentNotFoundError, QueryError
from couchstore.models.view import BulkResult, ViewResponse, ViewRow

Emit = Callable[[Any, Any], None]
MapFunction = Callable[[dict[str, Any], Emit], None]


def collation_key(value: Any) -> tuple:
    """Sort key following CouchDB view collation.

    ``null < false < true < numbers < strings < arrays < objects``; arrays
    and objects compare element by element.
    """
    if value is None:
        return (0,)
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, str):
        return (3, value)
    if isinstance(value, (list, tuple)):
        return (4, tuple(collation_key(v) for v in value))
    if isinstance(value, dict):
        return (5, tuple((k, collation_key(v)) for k, v in value.items()))
    raise QueryError(f"Cannot collate value of type {type(value).__name__}")


class MemoryDatabase(DocumentDatabase):
    """A document database held in a dict.

    Args:
        name: Database name.
        docs: Documents to load initially, as if written with ``bulk_docs``.
    """

    def __init__(self, name: str = "memory", docs: Iterable[dict[str, Any]] | None = None) -> None:
        self._name = name
        self._docs: dict[str, dict[str, Any]] = {}
        self._views: dict[tuple[str, str], MapFunction] = {}
        for doc in docs or ():
            self._write(doc)

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"MemoryDatabase({self._name!r}, docs={len(self._docs)})"

    def define_view(self, view: str, map_fn: MapFunction) -> None:
        """Register a map function as view ``"design/view"``."""
        self._views[split_view_name(view)] = map_fn

    # ── Reads ────────────────────────────────────────────────────────────

    async def all_docs(self, **options: Any) -> ViewResponse:
        keys = options.pop("keys", None)
        if keys is not None:
            rows = [self._all_docs_row(key, options) for key in keys]
            return ViewResponse(total_rows=len(self._docs), offset=0, rows=rows)

        rows = [self._all_docs_row(doc_id, options) for doc_id in sorted(self._docs)]
        return self._select(rows, options)

    async def query_view(self, view: str, **options: Any) -> ViewResponse:
        try:
            design, view_name = split_view_name(view)
        except ValueError as e:
            raise QueryError(str(e)) from e

        map_fn = self._views.get((design, view_name))
        if map_fn is None:
            raise DocumentNotFoundError(f"View '{view}' not found: missing_named_view", reason="missing_named_view")

        include_docs = options.pop("include_docs", False)
        rows: list[ViewRow] = []
        for doc_id in sorted(self._docs):
            doc = self._docs[doc_id]

            def emit(key: Any, value: Any = None, _doc: dict[str, Any] = doc) -> None:
                rows.append(
                    ViewRow(
                        id=_doc["_id"],
                        key=copy.deepcopy(key),
                        value=copy.deepcopy(value),
                        doc=copy.deepcopy(_doc) if include_docs else None,
                    )
                )

            map_fn(copy.deepcopy(doc), emit)

        rows.sort(key=lambda row: (collation_key(row.key), row.id))

        keys = options.pop("keys", None)
        if keys is not None:
            rows = [row for key in keys for row in rows if collation_key(row.key) == collation_key(key)]
        return self._select(rows, options)

    async def get(self, doc_id: str) -> dict[str, Any]:
        doc = self._docs.get(doc_id)
        if doc is None:
            raise DocumentNotFoundError(f"Document '{doc_id}' not found: missing", doc_id=doc_id, reason="missing")
        return copy.deepcopy(doc)

    async def info(self) -> dict[str, Any]:
        return {"db_name": self._name, "doc_count": len(self._docs)}

    # ── Writes ───────────────────────────────────────────────────────────

    async def bulk_docs(self, docs: Sequence[dict[str, Any]]) -> list[BulkResult]:
        return [self._write(doc) for doc in docs]

    # ── Helpers ──────────────────────────────────────────────────────────

    def _write(self, doc: dict[str, Any]) -> BulkResult:
        doc = copy.deepcopy(dict(doc))
        doc_id = doc.get("_id") or uuid.uuid4().hex
        current = self._docs.get(doc_id)
        current_rev = current["_rev"] if current else None

        if doc.get("_rev") != current_rev:
            return BulkResult(id=doc_id, error="conflict", reason="Document update conflict.")

        generation = int(current_rev.split("-", 1)[0]) + 1 if current_rev else 1
        doc["_id"] = doc_id
        doc["_rev"] = f"{generation}-{uuid.uuid4().hex}"
        self._docs[doc_id] = doc
        return BulkResult(id=doc_id, rev=doc["_rev"], ok=True)

    def _all_docs_row(self, doc_id: str, options: dict[str, Any]) -> ViewRow:
        doc = self._docs.get(doc_id)
        if doc is None:
            return ViewRow(key=doc_id, error="not_found")
        return ViewRow(
            id=doc_id,
            key=doc_id,
            value={"rev": doc["_rev"]},
            doc=copy.deepcopy(doc) if options.get("include_docs") else None,
        )

    def _select(self, rows: list[ViewRow], options: dict[str, Any]) -> ViewResponse:
        """Apply key range, direction and paging options to ordered rows."""
        total_rows = len(rows)
        descending = bool(options.get("descending", False))
        inclusive_end = options.get("inclusive_end", True)
        if descending:
            rows = rows[::-1]

        if "key" in options:
            wanted = collation_key(options["key"])
            rows = [row for row in rows if collation_key(row.key) == wanted]

        start = options.get("startkey", options.get("start_key"))
        end = options.get("endkey", options.get("end_key"))

        def after_start(row: ViewRow) -> bool:
            key = collation_key(row.key)
            return key <= collation_key(start) if descending else key >= collation_key(start)

        def before_end(row: ViewRow) -> bool:
            key, bound = collation_key(row.key), collation_key(end)
            if descending:
                return key >= bound if inclusive_end else key > bound
            return key <= bound if inclusive_end else key < bound

        offset = 0
        if start is not None:
            offset = sum(1 for row in rows if not after_start(row))
            rows = [row for row in rows if after_start(row)]
        if end is not None:
            rows = [row for row in rows if before_end(row)]

        skip = int(options.get("skip", 0))
        limit = options.get("limit")
        rows = rows[skip:] if limit is None else rows[skip : skip + int(limit)]
        return ViewResponse(total_rows=total_rows, offset=offset + skip, rows=rows)


class MemoryServer(DatabaseFactory):
    """Opens in-memory databases, creating them on first use."""

    def __init__(self) -> None:
        self._databases: dict[str, MemoryDatabase] = {}

    def open(self, name: str) -> MemoryDatabase:
        if name not in self._databases:
            self._databases[name] = MemoryDatabase(name)
        return self._databases[name]
