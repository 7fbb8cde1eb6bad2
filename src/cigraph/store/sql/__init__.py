"""Relational Graph Store backend (SQLite via SQLModel)."""

from cigraph.store.sql.database import BulkWriter, Database
from cigraph.store.sql.store import SqlGraphStore

__all__ = ["BulkWriter", "Database", "SqlGraphStore"]
