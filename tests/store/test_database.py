"""Unit tests for the SQLite database layer.

Tests cover:
- Engine creation with correct pragmas (WAL, busy_timeout)
- Table creation via create_all()
- BulkWriter upsert, delete and rollback
"""

from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path

import pytest
from sqlalchemy import text
from sqlmodel import select

from cigraph.store.sql import Database
from cigraph.store.sql.models import GraphNodeRow


def _node_row(uid: str, summary: str) -> dict[str, object]:
    return {
        "tenant_id": "t",
        "repo_id": "r",
        "symbol_uid": uid,
        "node_type": "Function",
        "payload": json.dumps({"symbol_uid": uid, "summary": summary}),
    }


@pytest.fixture
def db(tmp_path: Path) -> Generator[Database, None, None]:
    database = Database(tmp_path / "nested" / "graph.db", busy_timeout_ms=1234)
    database.create_all()
    yield database
    database.dispose()


class TestDatabaseEngine:
    """Engine configuration."""

    def test_engine_created_with_wal_mode(self, db: Database) -> None:
        """Engine should use WAL journal mode."""
        with db.session() as session:
            row = session.execute(text("PRAGMA journal_mode")).fetchone()

        assert row is not None
        assert row[0] == "wal"

    def test_engine_created_with_configured_busy_timeout(self, db: Database) -> None:
        with db.session() as session:
            row = session.execute(text("PRAGMA busy_timeout")).fetchone()

        assert row is not None
        assert row[0] == 1234

    def test_create_all_creates_graph_tables(self, db: Database) -> None:
        """create_all() should create every graph table."""
        with db.session() as session:
            result = session.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
            tables = {row[0] for row in result}

        assert {
            "graph_nodes",
            "graph_edges",
            "graph_edge_occurrences",
            "flow_entrypoints",
            "flow_graphs",
            "dependency_manifests",
            "declared_dependencies",
            "observed_dependencies",
            "dependency_mismatches",
            "index_diagnostics",
            "unresolved_imports",
        }.issubset(tables)


class TestBulkWriter:
    """BulkWriter transactions."""

    def test_upsert_many_later_record_wins(self, db: Database) -> None:
        with db.bulk_writer() as writer:
            writer.upsert_many(
                GraphNodeRow,
                [_node_row("a", "first"), _node_row("a", "second")],
                conflict_columns=["tenant_id", "repo_id", "symbol_uid"],
                update_columns=["payload"],
            )

        with db.session() as session:
            rows = session.exec(select(GraphNodeRow)).all()

        assert len(rows) == 1
        assert rows[0].get_payload()["summary"] == "second"

    def test_select_payload_and_delete_where(self, db: Database) -> None:
        with db.bulk_writer() as writer:
            writer.insert_many(GraphNodeRow, [_node_row("a", "x"), _node_row("b", "y")])

        with db.bulk_writer() as writer:
            payload = writer.select_payload(GraphNodeRow, "symbol_uid = :uid", {"uid": "b"})
            deleted = writer.delete_where(GraphNodeRow, "symbol_uid = :uid", {"uid": "a"})

        assert payload is not None
        assert json.loads(payload)["summary"] == "y"
        assert deleted == 1

    def test_error_inside_writer_rolls_back(self, db: Database) -> None:
        class BoomError(Exception):
            pass

        with pytest.raises(BoomError), db.bulk_writer() as writer:
            writer.insert_many(GraphNodeRow, [_node_row("a", "x")])
            raise BoomError

        with db.session() as session:
            assert session.exec(select(GraphNodeRow)).all() == []

    def test_empty_batches_are_noops(self, db: Database) -> None:
        with db.bulk_writer() as writer:
            assert writer.insert_many(GraphNodeRow, []) == 0
            assert writer.upsert_many(GraphNodeRow, [], ["symbol_uid"], ["payload"]) == 0
