"""Graph Store contract and backends."""

from cigraph.store.base import BulkIngestStore, GraphStore, check_record, write_record
from cigraph.store.memory import InMemoryGraphStore
from cigraph.store.sql import SqlGraphStore

__all__ = [
    "BulkIngestStore",
    "GraphStore",
    "InMemoryGraphStore",
    "SqlGraphStore",
    "check_record",
    "write_record",
]
