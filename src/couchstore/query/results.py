"""Paginated query results."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, overload


class QueryResults(Sequence[Any]):
    """A page of query matches.

    ``len()`` is the number of records on this page; ``total`` is the number
    of records that matched before paging was applied.
    """

    def __init__(self, records: Iterable[Any] = (), total: int | None = None) -> None:
        self._records = list(records)
        self.total = len(self._records) if total is None else total

    @classmethod
    def wrap(cls, value: Any) -> QueryResults:
        """Adapt whatever a query engine returned into ``QueryResults``."""
        if isinstance(value, QueryResults):
            return value
        return cls(value, total=getattr(value, "total", None))

    @overload
    def __getitem__(self, index: int) -> Any: ...

    @overload
    def __getitem__(self, index: slice) -> list[Any]: ...

    def __getitem__(self, index: int | slice) -> Any:
        return self._records[index]

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"QueryResults({self._records!r}, total={self.total})"
