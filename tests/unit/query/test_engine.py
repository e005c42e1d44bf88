"""Tests for the simple query engine and query results."""

from __future__ import annotations

import re
from typing import Any

import pytest

from couchstore.exceptions import QueryError
from couchstore.models.query import QueryOptions, SortSpec
from couchstore.query.engine import simple_query_engine
from couchstore.query.results import QueryResults


@pytest.fixture
def records() -> list[dict[str, Any]]:
    return [
        {"id": 1, "name": "ada", "team": "core", "score": 7},
        {"id": 2, "name": "bob", "team": "web", "score": None},
        {"id": 3, "name": "cy", "team": "core", "score": 9},
        {"id": 4, "name": "dee", "team": "web", "score": 7},
        {"id": 5, "name": "eve", "team": "core"},
    ]


def ids(results: QueryResults) -> list[int]:
    return [r["id"] for r in results]


# ── Filtering ────────────────────────────────────────────────────────────────


class TestFiltering:
    def test_none_matches_all(self, records: list[dict]) -> None:
        results = simple_query_engine(None)(records)
        assert ids(results) == [1, 2, 3, 4, 5]
        assert results.total == 5

    def test_empty_mapping_matches_all(self, records: list[dict]) -> None:
        assert ids(simple_query_engine({})(records)) == [1, 2, 3, 4, 5]

    def test_equality_on_every_field(self, records: list[dict]) -> None:
        results = simple_query_engine({"team": "core", "score": 9})(records)
        assert ids(results) == [3]

    def test_none_criterion_matches_missing_and_null(self, records: list[dict]) -> None:
        assert ids(simple_query_engine({"score": None})(records)) == [2, 5]

    def test_regex_criterion(self, records: list[dict]) -> None:
        assert ids(simple_query_engine({"name": re.compile("^[a-c]")})(records)) == [1, 2, 3]

    def test_regex_does_not_match_missing_field(self, records: list[dict]) -> None:
        assert ids(simple_query_engine({"score": re.compile(".*")})(records)) == [1, 3, 4]

    def test_callable_criterion(self, records: list[dict]) -> None:
        results = simple_query_engine({"score": lambda v: v is not None and v > 7})(records)
        assert ids(results) == [3]

    def test_callable_query(self, records: list[dict]) -> None:
        results = simple_query_engine(lambda r: r["id"] % 2 == 0)(records)
        assert ids(results) == [2, 4]

    def test_unsupported_query_type(self) -> None:
        with pytest.raises(QueryError, match="Unsupported query type: int"):
            simple_query_engine(42)  # type: ignore[arg-type]

    def test_scalar_records_have_no_fields(self) -> None:
        data = ["x", 3, None, {"title": "x"}]
        results = simple_query_engine({"title": "x"})(data)
        assert list(results) == [{"title": "x"}]
        assert results.total == 1

    def test_none_criterion_matches_scalar_records(self) -> None:
        assert list(simple_query_engine({"title": None})(["x", {"title": "y"}])) == ["x"]

    def test_executor_exposes_matches(self) -> None:
        execute = simple_query_engine({"team": "web"})
        assert execute.matches({"team": "web"}) is True  # type: ignore[attr-defined]
        assert execute.matches({"team": "core"}) is False  # type: ignore[attr-defined]


# ── Sorting ──────────────────────────────────────────────────────────────────


class TestSorting:
    def test_sort_ascending(self, records: list[dict]) -> None:
        results = simple_query_engine(None, {"sort": [{"attribute": "name"}]})(records)
        assert ids(results) == [1, 2, 3, 4, 5]

    def test_sort_descending_shorthand(self, records: list[dict]) -> None:
        results = simple_query_engine(None, {"sort": "-name"})(records)
        assert ids(results) == [5, 4, 3, 2, 1]

    def test_missing_values_sort_first(self, records: list[dict]) -> None:
        results = simple_query_engine(None, {"sort": ["score"]})(records)
        assert ids(results) == [2, 5, 1, 4, 3]

    def test_multi_key_sort_is_stable(self, records: list[dict]) -> None:
        options = QueryOptions(sort=[SortSpec(attribute="score", descending=True), SortSpec(attribute="name")])
        results = simple_query_engine({"team": re.compile("core|web")}, options)(records)
        assert ids(results) == [3, 1, 4, 2, 5]

    def test_mixed_types_do_not_raise(self) -> None:
        data = [{"id": 1, "v": "b"}, {"id": 2, "v": 3}, {"id": 3, "v": "a"}]
        results = simple_query_engine(None, {"sort": ["v"]})(data)
        assert ids(results) == [2, 3, 1]

    def test_scalar_records_sort_without_fields(self) -> None:
        data = ["b", None, 3]
        results = simple_query_engine(None, {"sort": ["title"]})(data)
        assert list(results) == ["b", None, 3]


# ── Paging ───────────────────────────────────────────────────────────────────


class TestPaging:
    def test_count_limits_page_and_keeps_total(self, records: list[dict]) -> None:
        results = simple_query_engine({"team": "core"}, {"count": 2})(records)
        assert ids(results) == [1, 3]
        assert len(results) == 2
        assert results.total == 3

    def test_start_and_count(self, records: list[dict]) -> None:
        results = simple_query_engine(None, {"start": 1, "count": 2, "sort": ["id"]})(records)
        assert ids(results) == [2, 3]
        assert results.total == 5

    def test_start_beyond_end(self, records: list[dict]) -> None:
        results = simple_query_engine(None, {"start": 10})(records)
        assert list(results) == []
        assert results.total == 5

    def test_count_zero_means_all(self, records: list[dict]) -> None:
        results = simple_query_engine(None, {"count": 0})(records)
        assert ids(results) == [1, 2, 3, 4, 5]
        assert results.total == 5

    def test_count_zero_with_start(self, records: list[dict]) -> None:
        results = simple_query_engine(None, {"start": 3, "count": 0})(records)
        assert ids(results) == [4, 5]
        assert results.total == 5

    def test_invalid_options(self) -> None:
        with pytest.raises(QueryError, match="Invalid query options"):
            simple_query_engine(None, {"start": -1})


# ── QueryResults ─────────────────────────────────────────────────────────────


class TestQueryResults:
    def test_sequence_behaviour(self) -> None:
        results = QueryResults([{"a": 1}, {"a": 2}], total=10)
        assert len(results) == 2
        assert results[1] == {"a": 2}
        assert results[:1] == [{"a": 1}]
        assert {"a": 1} in results
        assert results.total == 10

    def test_total_defaults_to_length(self) -> None:
        assert QueryResults([1, 2, 3]).total == 3
        assert QueryResults().total == 0

    def test_wrap_passes_instances_through(self) -> None:
        results = QueryResults([1])
        assert QueryResults.wrap(results) is results

    def test_wrap_plain_list(self) -> None:
        wrapped = QueryResults.wrap([1, 2])
        assert list(wrapped) == [1, 2]
        assert wrapped.total == 2
