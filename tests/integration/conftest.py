"""Integration test fixtures — a live CouchDB server seeded with mock data.

Expects CouchDB to be running locally, e.g.:
    docker run -d -p 5984:5984 -e COUCHDB_USER=admin -e COUCHDB_PASSWORD=admin couchdb:3

Connection details can be changed with COUCHSTORE_TEST_URL, COUCHSTORE_TEST_USER
and COUCHSTORE_TEST_PASSWORD.
"""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest

from couchstore.backends.couchdb import CouchServer

COUCH_URL = os.environ.get("COUCHSTORE_TEST_URL", "http://localhost:5984")
COUCH_AUTH = (
    os.environ.get("COUCHSTORE_TEST_USER", "admin"),
    os.environ.get("COUCHSTORE_TEST_PASSWORD", "admin"),
)
TEST_DB = "couchstore-test"

MOCK_DOCUMENTS: list[dict[str, Any]] = [
    {"_id": "doc-001", "type": "article", "title": "Solar Nowcasting", "author": "Alice Johnson", "year": 2024},
    {"_id": "doc-002", "type": "article", "title": "Transformer Models for NLU", "author": "Bob Smith", "year": 2023},
    {"_id": "doc-003", "type": "article", "title": "Federated Imaging", "author": "Carol Zhang", "year": 2024},
    {"_id": "doc-004", "type": "article", "title": "Robot Learning", "author": "Alice Johnson", "year": 2022},
    {"_id": "doc-005", "type": "note", "text": "Reading list for Q3"},
]

DESIGN_DOC: dict[str, Any] = {
    "_id": "_design/articles",
    "views": {
        "by_author": {"map": "function (doc) { if (doc.type === 'article') emit(doc.author, doc.title); }"},
        "by_year": {"map": "function (doc) { if (doc.type === 'article') emit(doc.year, null); }"},
    },
}


def _wait_for_service(url: str, timeout: float = 30.0) -> bool:
    """Block until *url* returns HTTP 200, or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            r = httpx.get(url, timeout=5)
            if r.status_code == 200:
                return True
        except httpx.HTTPError:
            pass
        time.sleep(1)
    return False


async def _seed_couchdb(url: str, db: str) -> None:
    async with httpx.AsyncClient(base_url=url, auth=COUCH_AUTH, timeout=30) as client:
        await client.delete(f"/{db}")
        resp = await client.put(f"/{db}")
        resp.raise_for_status()
        resp = await client.post(f"/{db}/_bulk_docs", json={"docs": [DESIGN_DOC, *MOCK_DOCUMENTS]})
        resp.raise_for_status()


@pytest.fixture(scope="session")
def couchdb_ready() -> str:
    """Ensure CouchDB is running and seeded."""
    if not _wait_for_service(f"{COUCH_URL}/_up", timeout=10.0):
        pytest.skip(f"CouchDB not available at {COUCH_URL}")
    asyncio.run(_seed_couchdb(COUCH_URL, TEST_DB))
    return COUCH_URL


@pytest.fixture
def test_db_name() -> str:
    return TEST_DB


@pytest.fixture
async def couch_server(couchdb_ready: str) -> AsyncIterator[CouchServer]:
    """A CouchServer pointed at the seeded test server."""
    server = CouchServer(couchdb_ready, username=COUCH_AUTH[0], password=COUCH_AUTH[1])
    yield server
    await server.close()
