"""Simple query engine — filter, sort and page plain records in memory.

A query engine is a callable ``engine(query, options)`` returning an
executor; the executor is called with the records to search and returns a
``QueryResults`` page. Any callable with that shape can be plugged into a
``DocumentStoreAdapter``.

Supported queries:
  - ``None`` or ``{}``: match every record
  - a mapping of field name to criterion, all of which must hold:
      * a compiled regex, searched in ``str(value)``
      * a callable predicate receiving the field value
      * any other value, compared with ``==``
  - a callable predicate receiving the whole record
"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from couchstore.exceptions import QueryError
from couchstore.models.query import QueryOptions, SortSpec
from couchstore.query.results import QueryResults

Record = Mapping[str, Any]
Query = Mapping[str, Any] | Callable[[Record], bool] | None
Executor = Callable[[Sequence[Record]], Any]
QueryEngine = Callable[[Query, Any], Executor]


def simple_query_engine(query: Query, options: QueryOptions | Mapping[str, Any] | None = None) -> Executor:
    """Build an executor applying ``query`` and ``options`` to a list of records.

    Args:
        query: Filter expression (see module docstring).
        options: Sorting and paging, as ``QueryOptions`` or an equivalent mapping.

    Returns:
        A callable taking the records and returning ``QueryResults``. Its
        ``matches`` attribute is the compiled record predicate.

    Raises:
        QueryError: If the query or options cannot be interpreted.
    """
    matches = _compile_query(query)
    opts = _coerce_options(options)

    def execute(records: Sequence[Record]) -> QueryResults:
        matched = [record for record in records if matches(record)]
        if opts.sort:
            matched.sort(key=functools.cmp_to_key(functools.partial(_compare_records, opts.sort)))
        total = len(matched)
        end = opts.start + opts.count if opts.count else None
        return QueryResults(matched[opts.start : end], total=total)

    execute.matches = matches  # type: ignore[attr-defined]
    return execute


def _coerce_options(options: QueryOptions | Mapping[str, Any] | None) -> QueryOptions:
    if options is None:
        return QueryOptions()
    if isinstance(options, QueryOptions):
        return options
    try:
        return QueryOptions.model_validate(dict(options))
    except ValidationError as e:
        raise QueryError(f"Invalid query options: {e}") from e


def _compile_query(query: Query) -> Callable[[Record], bool]:
    if query is None:
        return lambda record: True
    if isinstance(query, Mapping):
        criteria = [(field, _compile_criterion(criterion)) for field, criterion in query.items()]
        return lambda record: all(test(_field(record, field)) for field, test in criteria)
    if callable(query):
        return query
    raise QueryError(f"Unsupported query type: {type(query).__name__}")


def _compile_criterion(criterion: Any) -> Callable[[Any], bool]:
    if isinstance(criterion, re.Pattern):
        return lambda value: value is not None and criterion.search(str(value)) is not None
    if callable(criterion):
        return criterion
    return lambda value: value == criterion


def _field(record: Any, name: str) -> Any:
    """Read a field; records that are not mappings have no fields."""
    return record.get(name) if isinstance(record, Mapping) else None


def _compare_records(sort: list[SortSpec], a: Record, b: Record) -> int:
    for spec in sort:
        result = _compare_values(_field(a, spec.attribute), _field(b, spec.attribute))
        if result:
            return -result if spec.descending else result
    return 0


def _compare_values(a: Any, b: Any) -> int:
    """Three-way compare; ``None`` sorts first, incomparable types by type name."""
    if a is None or b is None:
        return (a is not None) - (b is not None)
    try:
        return (a > b) - (a < b)
    except TypeError:
        ta, tb = type(a).__name__, type(b).__name__
        return (ta > tb) - (ta < tb)
