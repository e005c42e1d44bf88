"""Query stores — the generic store interface and its document database adapter."""

from couchstore.store.adapter import DocumentStoreAdapter
from couchstore.store.base import QueryStore

__all__ = ["DocumentStoreAdapter", "QueryStore"]
