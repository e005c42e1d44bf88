"""Data models shared by the store, backends and query engine."""

from couchstore.models.query import QueryOptions, SortSpec
from couchstore.models.view import BulkResult, ViewOverrides, ViewQuery, ViewResponse, ViewRow

__all__ = [
    "BulkResult",
    "QueryOptions",
    "SortSpec",
    "ViewOverrides",
    "ViewQuery",
    "ViewResponse",
    "ViewRow",
]
