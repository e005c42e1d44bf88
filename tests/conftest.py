"""Shared test fixtures and configuration."""

from __future__ import annotations

from typing import Any

import pytest

from couchstore.backends.memory import MemoryDatabase
from couchstore.config.settings import Settings


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance with defaults."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        couch={"url": "http://couch.test:5984"},
        store={"id_property": "_id"},
    )


@pytest.fixture
def sample_docs() -> list[dict[str, Any]]:
    """Articles used across store and backend tests."""
    return [
        {"_id": "a1", "type": "article", "title": "Solar Nowcasting", "author": "Jane Doe", "year": 2024},
        {"_id": "a2", "type": "article", "title": "Wind Forecasting", "author": "John Smith", "year": 2022},
        {"_id": "a3", "type": "article", "title": "Grid Storage", "author": "Jane Doe", "year": 2023},
        {"_id": "c1", "type": "comment", "article": "a1", "text": "Great read"},
    ]


@pytest.fixture
def memory_db(sample_docs: list[dict[str, Any]]) -> MemoryDatabase:
    """In-memory database seeded with ``sample_docs`` and two views."""
    db = MemoryDatabase("articles", docs=sample_docs)

    def by_author(doc: dict[str, Any], emit: Any) -> None:
        if doc.get("type") == "article":
            emit(doc["author"], {"title": doc["title"], "year": doc["year"]})

    def by_year(doc: dict[str, Any], emit: Any) -> None:
        if doc.get("type") == "article":
            emit(doc["year"], None)

    db.define_view("articles/by_author", by_author)
    db.define_view("articles/by_year", by_year)
    return db
