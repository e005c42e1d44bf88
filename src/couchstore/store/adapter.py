"""Document store adapter — Query store backed by a document database.

Records are fetched either by scanning every document of the database or
by querying a named view, then filtered, sorted and paged in memory by a
pluggable query engine.

Usage::

    adapter = DocumentStoreAdapter(
        target="articles",
        factory=CouchServer("http://localhost:5984"),
        view_query={"view": "articles/by_year", "options": {"include_docs": True}},
        id_property="_id",
    )
    results = await adapter.query({"author": "Jane Doe"}, {"sort": ["-year"], "count": 10})
    same_view_for_2024 = await adapter.query(None, None, {"options": {"key": 2024}})
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from couchstore.backends.base import DatabaseFactory, DocumentDatabase
from couchstore.backends.couchdb import CouchServer
from couchstore.exceptions import ConfigurationError, QueryError
from couchstore.models.view import BulkResult, ViewQuery, ViewResponse, resolve_view_query
from couchstore.query.engine import QueryEngine, simple_query_engine
from couchstore.query.results import QueryResults
from couchstore.store.base import QueryStore

if TYPE_CHECKING:
    from couchstore.config.settings import Settings

logger = logging.getLogger(__name__)


class DocumentStoreAdapter(QueryStore):
    """Query store reading records from a document database.

    The adapter is in one of two query modes: with a view descriptor bound,
    queries run that view; without one, queries scan all documents.

    Args:
        target: Database name, opened through ``factory``, or an open
            ``DocumentDatabase``.
        view_query: View descriptor (``ViewQuery`` or ``{"view", "options"}``).
        id_property: Record field holding the identity.
        query_engine: Engine applied to fetched records.
        factory: Opens databases given by name.
    """

    def __init__(
        self,
        target: str | DocumentDatabase | None = None,
        view_query: ViewQuery | Mapping[str, Any] | None = None,
        id_property: str = "id",
        query_engine: QueryEngine = simple_query_engine,
        factory: DatabaseFactory | None = None,
    ) -> None:
        self.id_property = id_property
        self.query_engine = query_engine
        self._factory = factory
        self._database: DocumentDatabase | None = None
        self._view_query: ViewQuery | None = None
        self.bind_target(target)
        self.bind_view_query(view_query)

    @classmethod
    def from_settings(cls, settings: Settings, factory: DatabaseFactory | None = None) -> DocumentStoreAdapter:
        """Build an adapter from ``settings.store``, connecting to ``settings.couch``."""
        view_query = None
        if settings.store.view:
            view_query = ViewQuery(view=settings.store.view, options=settings.store.view_options)
        return cls(
            target=settings.store.database,
            view_query=view_query,
            id_property=settings.store.id_property,
            factory=factory or CouchServer.from_settings(settings.couch),
        )

    @property
    def database(self) -> DocumentDatabase | None:
        return self._database

    @property
    def view_query(self) -> ViewQuery | None:
        return self._view_query

    @property
    def factory(self) -> DatabaseFactory | None:
        return self._factory

    # ── Configuration ────────────────────────────────────────────────────

    def bind_target(self, target: str | DocumentDatabase | None) -> None:
        """Bind the database to read from.

        A name is opened through the factory; a database handle is used as
        is; a falsy target leaves the current binding alone.

        Raises:
            ConfigurationError: If a name is given but no factory is configured.
        """
        if not target:
            return
        if isinstance(target, str):
            if self._factory is None:
                raise ConfigurationError(f"Cannot open database '{target}': no database factory configured.")
            self._database = self._factory.open(target)
        else:
            self._database = target
        logger.debug("Bound store to database '%s'", self._database.name)

    def bind_view_query(self, view_query: ViewQuery | Mapping[str, Any] | None) -> None:
        """Route queries through a view; a falsy descriptor leaves the current one alone.

        Raises:
            ConfigurationError: If the descriptor is malformed.
        """
        try:
            descriptor = ViewQuery.coerce(view_query)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid view query: {e}") from e
        if descriptor is not None:
            self._view_query = descriptor
            logger.debug("Bound store to view '%s'", descriptor.view)

    # ── Query store interface ────────────────────────────────────────────

    def map_response(self, response: ViewResponse | Mapping[str, Any] | Any) -> list[Any]:
        """Map a raw index response to the records the query engine works on.

        Each row contributes its ``doc`` when the response includes
        documents, its ``value`` otherwise. Design documents and per-key
        error rows are skipped.

        Raises:
            QueryError: If the response has no ``rows``.
        """
        if not isinstance(response, ViewResponse):
            try:
                response = ViewResponse.model_validate(response, from_attributes=True)
            except ValidationError as e:
                raise QueryError(f"Malformed document database response: {e}") from e

        records: list[Any] = []
        for row in response.rows:
            if row.error or (row.id or "").startswith("_design/"):
                continue
            records.append(row.doc if row.doc is not None else row.value)
        return records

    async def query(
        self,
        query: Any = None,
        options: Any = None,
        view_overrides: ViewQuery | Mapping[str, Any] | None = None,
    ) -> QueryResults:
        """Fetch records and apply the query engine to them.

        Args:
            query: Filter expression understood by the query engine.
            options: Sort and paging options understood by the query engine.
            view_overrides: Per-call view descriptor changes. ``view``
                replaces the bound view; ``options`` are merged over the
                bound view options. The bound descriptor is not modified.

        Returns:
            The matching page of records. Empty when no database is bound.
        """
        if self._database is None:
            logger.debug("Query on store without database; returning no results")
            return QueryResults()

        try:
            view_query = resolve_view_query(self._view_query, view_overrides)
        except ValidationError as e:
            raise QueryError(f"Invalid view overrides: {e}") from e
        execute = self.query_engine(query, options)

        if view_query is None:
            response = await self._database.all_docs(include_docs=True)
        else:
            response = await self._database.query_view(view_query.view, **view_query.options)

        records = self.map_response(response)
        results = QueryResults.wrap(execute(records))
        logger.debug(
            "Queried '%s' via %s: %d records fetched, %d matched",
            self._database.name,
            f"view '{view_query.view}'" if view_query else "full scan",
            len(records),
            results.total,
        )
        return results

    async def get(self, id: str) -> dict[str, Any]:
        """Fetch one record by identity.

        Raises:
            DocumentNotFoundError: If the record does not exist.
        """
        return await self._require_database().get(id)

    async def set_data(self, records: Sequence[Mapping[str, Any]]) -> list[BulkResult]:
        """Insert records in bulk, returning the per-record outcome."""
        results = await self._require_database().bulk_docs([dict(record) for record in records])
        failed = [r.id for r in results if not r.ok]
        if failed:
            logger.warning("Bulk insert: %d of %d records rejected: %s", len(failed), len(results), failed)
        return results

    def _require_database(self) -> DocumentDatabase:
        if self._database is None:
            raise ConfigurationError("No database bound to this store. Call bind_target() first.")
        return self._database
