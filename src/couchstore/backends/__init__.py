"""Document database backends.

Built-in backends:
  - couchdb: CouchDB (and PouchDB Server) over the HTTP API
  - memory: in-process database with Python map-function views

Implement ``DocumentDatabase`` and ``DatabaseFactory`` to plug in another
document store.
"""

from couchstore.backends.base import DatabaseFactory, DocumentDatabase
from couchstore.backends.couchdb import CouchDatabase, CouchServer
from couchstore.backends.memory import MemoryDatabase, MemoryServer

__all__ = [
    "CouchDatabase",
    "CouchServer",
    "DatabaseFactory",
    "DocumentDatabase",
    "MemoryDatabase",
    "MemoryServer",
]
