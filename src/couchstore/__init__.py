"""couchstore — A query store over CouchDB-style document databases.

Reads records through views or full scans and filters, sorts and pages
them with a pluggable in-memory query engine.
"""

from couchstore.backends import CouchServer, MemoryServer
from couchstore.query import QueryResults, simple_query_engine
from couchstore.store import DocumentStoreAdapter, QueryStore

__version__ = "0.1.0"

__all__ = [
    "CouchServer",
    "DocumentStoreAdapter",
    "MemoryServer",
    "QueryResults",
    "QueryStore",
    "__version__",
    "simple_query_engine",
]
