"""CouchDB backend — Document database access via the CouchDB HTTP API.

Connects to CouchDB (v2+), or anything speaking its HTTP API such as
PouchDB Server, using ``httpx`` (async).

Usage::

    server = CouchServer("http://localhost:5984")
    db = server.open("articles")
    response = await db.query_view("articles/by_author", key="Jane Doe", include_docs=True)
    await server.close()
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from couchstore.backends.base import DatabaseFactory, DocumentDatabase, split_view_name
from couchstore.exceptions import ConnectionError, DocumentNotFoundError, QueryError
from couchstore.models.view import BulkResult, ViewResponse

if TYPE_CHECKING:
    from couchstore.config.settings import CouchSettings

logger = logging.getLogger(__name__)

# View parameters CouchDB expects as JSON values.
JSON_PARAMS = frozenset(
    {
        "key",
        "keys",
        "startkey",
        "endkey",
        "start_key",
        "end_key",
        "startkey_docid",
        "endkey_docid",
        "start_key_doc_id",
        "end_key_doc_id",
    }
)


def encode_view_params(options: dict[str, Any]) -> dict[str, str]:
    """Encode view options as CouchDB query string parameters.

    Key-like options are JSON encoded, booleans become ``true``/``false``
    and ``None`` values are dropped.
    """
    params: dict[str, str] = {}
    for name, value in options.items():
        if value is None:
            continue
        if name in JSON_PARAMS:
            params[name] = json.dumps(value)
        elif isinstance(value, bool):
            params[name] = "true" if value else "false"
        else:
            params[name] = str(value)
    return params


def _quote_doc_id(doc_id: str) -> str:
    if doc_id.startswith("_design/"):
        return "_design/" + quote(doc_id[len("_design/") :], safe="")
    return quote(doc_id, safe="")


class CouchDatabase(DocumentDatabase):
    """Handle on one CouchDB database.

    Args:
        client: HTTP client whose ``base_url`` is the CouchDB server URL.
        name: Database name.
    """

    def __init__(self, client: httpx.AsyncClient, name: str) -> None:
        self._client = client
        self._name = name
        self._path = "/" + quote(name, safe="")

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"CouchDatabase({self._name!r})"

    # ── Reads ────────────────────────────────────────────────────────────

    async def all_docs(self, **options: Any) -> ViewResponse:
        """Fetch ``_all_docs``; ``keys`` are sent in a POST body."""
        data = await self._query_index(f"{self._path}/_all_docs", options)
        return self._parse_view_response(data)

    async def query_view(self, view: str, **options: Any) -> ViewResponse:
        try:
            design, view_name = split_view_name(view)
        except ValueError as e:
            raise QueryError(str(e)) from e

        path = f"{self._path}/_design/{quote(design, safe='')}/_view/{quote(view_name, safe='')}"
        data = await self._query_index(path, options)
        return self._parse_view_response(data)

    async def get(self, doc_id: str) -> dict[str, Any]:
        data = await self._request("GET", f"{self._path}/{_quote_doc_id(doc_id)}", doc_id=doc_id)
        return dict(data)

    async def info(self) -> dict[str, Any]:
        return dict(await self._request("GET", self._path))

    # ── Writes ───────────────────────────────────────────────────────────

    async def bulk_docs(self, docs: Sequence[dict[str, Any]]) -> list[BulkResult]:
        data = await self._request("POST", f"{self._path}/_bulk_docs", json={"docs": list(docs)})
        results = [BulkResult.model_validate(item) for item in data]
        failed = sum(1 for r in results if not r.ok)
        logger.debug("Bulk insert into '%s': %d written, %d failed", self._name, len(results) - failed, failed)
        return results

    # ── Helpers ──────────────────────────────────────────────────────────

    async def _query_index(self, path: str, options: dict[str, Any]) -> Any:
        options = dict(options)
        keys = options.pop("keys", None)
        params = encode_view_params(options)
        if keys is not None:
            return await self._request("POST", path, params=params, json={"keys": list(keys)})
        return await self._request("GET", path, params=params)

    @staticmethod
    def _parse_view_response(data: Any) -> ViewResponse:
        try:
            return ViewResponse.model_validate(data)
        except ValueError as e:
            raise QueryError(f"Unexpected CouchDB view response: {e}") from e

    async def _request(self, method: str, path: str, doc_id: str | None = None, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise ConnectionError(f"Failed to reach CouchDB database '{self._name}': {e}") from e

        if resp.status_code == 404:
            reason = self._error_body(resp).get("reason", "missing")
            target = f"Document '{doc_id}'" if doc_id is not None else f"'{path}'"
            raise DocumentNotFoundError(f"{target} not found: {reason}", doc_id=doc_id, reason=reason)

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            body = self._error_body(resp)
            detail = body.get("reason") or body.get("error") or str(e)
            raise QueryError(f"CouchDB request failed ({resp.status_code}): {detail}") from e

        return resp.json()

    @staticmethod
    def _error_body(resp: httpx.Response) -> dict[str, Any]:
        try:
            body = resp.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}


class CouchServer(DatabaseFactory):
    """Opens CouchDB databases on one server, sharing a single HTTP client.

    Args:
        url: CouchDB server URL.
        username: Optional basic-auth username.
        password: Optional basic-auth password.
        timeout: HTTP request timeout in seconds.
        client: Pre-built HTTP client (its ``base_url`` must be the server URL).
    """

    def __init__(
        self,
        url: str = "http://localhost:5984",
        username: str | None = None,
        password: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._username = username
        self._password = password
        self._timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: CouchSettings) -> CouchServer:
        return cls(
            url=settings.url,
            username=settings.username,
            password=settings.password,
            timeout=settings.timeout,
        )

    @property
    def url(self) -> str:
        return self._url

    @property
    def client(self) -> httpx.AsyncClient:
        """The shared HTTP client, created on first use."""
        if self._client is None:
            auth = None
            if self._username and self._password:
                auth = httpx.BasicAuth(self._username, self._password)
            self._client = httpx.AsyncClient(
                base_url=self._url,
                timeout=httpx.Timeout(self._timeout),
                auth=auth,
            )
            logger.info("Created CouchDB client for %s", self._url)
        return self._client

    def open(self, name: str) -> CouchDatabase:
        logger.debug("Opening CouchDB database '%s' at %s", name, self._url)
        return CouchDatabase(self.client, name)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
