"""Base query store — Abstract interface consumed by UI and query layers.

A query store exposes a collection of records through four operations:
  1. query(): filter, sort and page records
  2. get(): fetch one record by identity
  3. get_identity(): read the identity of a record
  4. set_data(): load records in bulk
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from couchstore.query.results import QueryResults


class QueryStore(ABC):
    """Abstract base class for record stores."""

    id_property: str = "id"

    @abstractmethod
    async def query(self, query: Any = None, options: Any = None) -> QueryResults:
        """Return the records matching ``query``, sorted and paged per ``options``."""

    @abstractmethod
    async def get(self, id: str) -> Mapping[str, Any]:
        """Return the record with identity ``id``.

        Raises:
            DocumentNotFoundError: If no such record exists.
        """

    @abstractmethod
    async def set_data(self, records: Sequence[Mapping[str, Any]]) -> Any:
        """Load ``records`` into the store in bulk."""

    def get_identity(self, record: Mapping[str, Any]) -> Any:
        """Return the identity of ``record``."""
        return record[self.id_property]
