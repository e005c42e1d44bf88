"""In-memory query engine applied to records fetched from the document database."""

from couchstore.query.engine import QueryEngine, simple_query_engine
from couchstore.query.results import QueryResults

__all__ = ["QueryEngine", "QueryResults", "simple_query_engine"]
