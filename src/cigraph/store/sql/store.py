"""Relational Graph Store on SQLite via SQLModel.

Tenant isolation is enforced in every statement: each read filters on
``tenant_id`` and ``repo_id`` and each unique key is prefixed by them.
Blocking database work runs in a worker thread so the event loop stays free;
writes from one process are serialized by a lock and each call is one
transaction.
"""

from __future__ import annotations

import asyncio
import json
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import structlog
from sqlmodel import SQLModel, or_, select

from cigraph.graph.records import (
    Direction,
    IngestRecord,
    Record,
    RecordKind,
    declared_key_of,
    manifest_key_of,
    mismatch_key_of,
    observed_key_of,
    unresolved_import_key_of,
)
from cigraph.store.base import GraphStore, check_direction, check_record
from cigraph.store.sql.database import BulkWriter, Database
from cigraph.store.sql.models import (
    DeclaredDependencyRow,
    DependencyManifestRow,
    DependencyMismatchRow,
    FlowEntrypointRow,
    FlowGraphRow,
    GraphEdgeOccurrenceRow,
    GraphEdgeRow,
    GraphNodeRow,
    IndexDiagnosticRow,
    ObservedDependencyRow,
    UnresolvedImportRow,
)

log = structlog.get_logger()

_SCOPE = ["tenant_id", "repo_id"]
_EDGE_KEY = ["source_symbol_uid", "edge_type", "target_symbol_uid"]


def _dumps(record: Record) -> str:
    return json.dumps(record, ensure_ascii=False, separators=(",", ":"))


class SqlGraphStore(GraphStore):
    """GraphStore backed by a SQLite database file."""

    def __init__(self, db: Database) -> None:
        self.db = db
        self._write_lock = threading.Lock()

    @classmethod
    def open(
        cls,
        db_path: Path,
        *,
        busy_timeout_ms: int = 30_000,
        max_retries: int = 3,
    ) -> SqlGraphStore:
        """Open (creating tables if needed) a store at ``db_path``."""
        db = Database(db_path, max_retries=max_retries, busy_timeout_ms=busy_timeout_ms)
        db.create_all()
        log.debug("sql_graph_store_opened", path=str(db_path))
        return cls(db)

    async def close(self) -> None:
        await asyncio.to_thread(self.db.dispose)

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def _apply(
        self, writer: BulkWriter, tenant_id: str, repo_id: str, kind: RecordKind, data: Record
    ) -> None:
        scope = {"tenant_id": tenant_id, "repo_id": repo_id}
        if kind is RecordKind.NODE:
            writer.upsert_many(
                GraphNodeRow,
                [
                    {
                        **scope,
                        "symbol_uid": data["symbol_uid"],
                        "node_type": str(data.get("node_type") or ""),
                        "qualified_name": data.get("qualified_name"),
                        "file_path": data.get("file_path"),
                        "language": data.get("language"),
                        "payload": _dumps(data),
                    }
                ],
                conflict_columns=[*_SCOPE, "symbol_uid"],
                update_columns=["node_type", "qualified_name", "file_path", "language", "payload"],
            )
        elif kind is RecordKind.EDGE:
            key = {k: data[k] for k in _EDGE_KEY}
            existing = writer.select_payload(
                GraphEdgeRow,
                "tenant_id = :tenant_id AND repo_id = :repo_id"
                " AND source_symbol_uid = :source_symbol_uid AND edge_type = :edge_type"
                " AND target_symbol_uid = :target_symbol_uid",
                {**scope, **key},
            )
            merged = {**json.loads(existing), **data} if existing else data
            writer.upsert_many(
                GraphEdgeRow,
                [{**scope, **key, "payload": _dumps(merged)}],
                conflict_columns=[*_SCOPE, *_EDGE_KEY],
                update_columns=["payload"],
            )
        elif kind is RecordKind.EDGE_OCCURRENCE:
            writer.insert_many(
                GraphEdgeOccurrenceRow,
                [
                    {
                        **scope,
                        **{k: data[k] for k in _EDGE_KEY},
                        "file_path": data["file_path"],
                        "line_start": data["line_start"],
                        "line_end": data["line_end"],
                        "occurrence_kind": data.get("occurrence_kind"),
                        "payload": _dumps(data),
                    }
                ],
            )
        elif kind is RecordKind.INDEX_DIAGNOSTIC:
            writer.insert_many(IndexDiagnosticRow, [{**scope, "payload": _dumps(data)}])
        else:
            model, key_column, columns = self._keyed_row(kind, data)
            writer.upsert_many(
                model,
                [{**scope, **columns, "payload": _dumps(data)}],
                conflict_columns=[*_SCOPE, key_column],
                update_columns=[*(c for c in columns if c != key_column), "payload"],
            )

    @staticmethod
    def _keyed_row(
        kind: RecordKind, data: Record
    ) -> tuple[type[SQLModel], str, dict[str, Any]]:
        if kind is RecordKind.FLOW_ENTRYPOINT:
            return FlowEntrypointRow, "entrypoint_key", {"entrypoint_key": data["entrypoint_key"]}
        if kind is RecordKind.FLOW_GRAPH:
            return FlowGraphRow, "flow_graph_key", {"flow_graph_key": data["flow_graph_key"]}
        if kind is RecordKind.DEPENDENCY_MANIFEST:
            return DependencyManifestRow, "manifest_key", {"manifest_key": manifest_key_of(data)}
        if kind is RecordKind.DECLARED_DEPENDENCY:
            return (
                DeclaredDependencyRow,
                "dep_key",
                {"dep_key": declared_key_of(data), "package_key": data["package_key"]},
            )
        if kind is RecordKind.OBSERVED_DEPENDENCY:
            return (
                ObservedDependencyRow,
                "dep_key",
                {"dep_key": observed_key_of(data), "package_key": data["package_key"]},
            )
        if kind is RecordKind.DEPENDENCY_MISMATCH:
            return (
                DependencyMismatchRow,
                "mismatch_key",
                {"mismatch_key": mismatch_key_of(data), "mismatch_type": data["mismatch_type"]},
            )
        if kind is RecordKind.UNRESOLVED_IMPORT:
            return UnresolvedImportRow, "import_key", {"import_key": unresolved_import_key_of(data)}
        raise AssertionError(f"unhandled record kind {kind}")

    def _write_sync(
        self, tenant_id: str, repo_id: str, items: Sequence[tuple[RecordKind, Record]]
    ) -> None:
        with self._write_lock, self.db.bulk_writer() as writer:
            for kind, data in items:
                self._apply(writer, tenant_id, repo_id, kind, data)

    async def _write(self, tenant_id: str, repo_id: str, kind: RecordKind, data: Record) -> None:
        check_record(kind, data)
        await asyncio.to_thread(self._write_sync, tenant_id, repo_id, [(kind, data)])

    async def ingest_records(
        self, *, tenant_id: str, repo_id: str, records: Sequence[IngestRecord]
    ) -> None:
        """Apply a flushed batch in one transaction, in order."""
        items = [(r.kind, check_record(r.kind, r.data)) for r in records]
        await asyncio.to_thread(self._write_sync, tenant_id, repo_id, items)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def _select_payloads(self, model: Any, tenant_id: str, repo_id: str, *conds: Any) -> list[Record]:
        with self.db.session() as session:
            stmt = (
                select(model)
                .where(model.tenant_id == tenant_id, model.repo_id == repo_id, *conds)
                .order_by(model.id)
            )
            return [row.get_payload() for row in session.exec(stmt).all()]

    async def _read(self, model: Any, tenant_id: str, repo_id: str, *conds: Any) -> list[Record]:
        return await asyncio.to_thread(self._select_payloads, model, tenant_id, repo_id, *conds)

    async def _read_one(
        self, model: Any, tenant_id: str, repo_id: str, *conds: Any
    ) -> Record | None:
        rows = await self._read(model, tenant_id, repo_id, *conds)
        return rows[0] if rows else None

    # ------------------------------------------------------------------
    # GraphStore
    # ------------------------------------------------------------------

    async def upsert_node(self, *, tenant_id: str, repo_id: str, node: Record) -> None:
        await self._write(tenant_id, repo_id, RecordKind.NODE, node)

    async def get_node_by_symbol_uid(
        self, *, tenant_id: str, repo_id: str, symbol_uid: str
    ) -> Record | None:
        return await self._read_one(
            GraphNodeRow, tenant_id, repo_id, GraphNodeRow.symbol_uid == symbol_uid
        )

    async def list_nodes(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return await self._read(GraphNodeRow, tenant_id, repo_id)

    async def upsert_edge(self, *, tenant_id: str, repo_id: str, edge: Record) -> None:
        await self._write(tenant_id, repo_id, RecordKind.EDGE, edge)

    async def list_edges(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return await self._read(GraphEdgeRow, tenant_id, repo_id)

    async def list_edges_by_node(
        self,
        *,
        tenant_id: str,
        repo_id: str,
        symbol_uid: str,
        direction: Direction = "both",
    ) -> list[Record]:
        check_direction(direction)
        if direction == "out":
            cond = GraphEdgeRow.source_symbol_uid == symbol_uid
        elif direction == "in":
            cond = GraphEdgeRow.target_symbol_uid == symbol_uid
        else:
            cond = or_(
                GraphEdgeRow.source_symbol_uid == symbol_uid,
                GraphEdgeRow.target_symbol_uid == symbol_uid,
            )
        return await self._read(GraphEdgeRow, tenant_id, repo_id, cond)

    async def add_edge_occurrence(
        self, *, tenant_id: str, repo_id: str, occurrence: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.EDGE_OCCURRENCE, occurrence)

    async def list_edge_occurrences(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return await self._read(GraphEdgeOccurrenceRow, tenant_id, repo_id)

    async def list_edge_occurrences_for_edge(
        self,
        *,
        tenant_id: str,
        repo_id: str,
        source_symbol_uid: str,
        edge_type: str,
        target_symbol_uid: str,
    ) -> list[Record]:
        return await self._read(
            GraphEdgeOccurrenceRow,
            tenant_id,
            repo_id,
            GraphEdgeOccurrenceRow.source_symbol_uid == source_symbol_uid,
            GraphEdgeOccurrenceRow.edge_type == edge_type,
            GraphEdgeOccurrenceRow.target_symbol_uid == target_symbol_uid,
        )

    async def upsert_flow_entrypoint(
        self, *, tenant_id: str, repo_id: str, entrypoint: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.FLOW_ENTRYPOINT, entrypoint)

    async def get_flow_entrypoint(
        self, *, tenant_id: str, repo_id: str, entrypoint_key: str
    ) -> Record | None:
        return await self._read_one(
            FlowEntrypointRow,
            tenant_id,
            repo_id,
            FlowEntrypointRow.entrypoint_key == entrypoint_key,
        )

    async def list_flow_entrypoints(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return await self._read(FlowEntrypointRow, tenant_id, repo_id)

    async def upsert_flow_graph(
        self, *, tenant_id: str, repo_id: str, flow_graph: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.FLOW_GRAPH, flow_graph)

    async def get_flow_graph(
        self, *, tenant_id: str, repo_id: str, flow_graph_key: str
    ) -> Record | None:
        return await self._read_one(
            FlowGraphRow, tenant_id, repo_id, FlowGraphRow.flow_graph_key == flow_graph_key
        )

    async def list_flow_graphs(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return await self._read(FlowGraphRow, tenant_id, repo_id)

    async def add_dependency_manifest(
        self, *, tenant_id: str, repo_id: str, manifest: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.DEPENDENCY_MANIFEST, manifest)

    async def list_dependency_manifests(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return await self._read(DependencyManifestRow, tenant_id, repo_id)

    async def add_declared_dependency(
        self, *, tenant_id: str, repo_id: str, declared: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.DECLARED_DEPENDENCY, declared)

    async def list_declared_dependencies(
        self, *, tenant_id: str, repo_id: str
    ) -> list[Record]:
        return await self._read(DeclaredDependencyRow, tenant_id, repo_id)

    async def add_observed_dependency(
        self, *, tenant_id: str, repo_id: str, observed: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.OBSERVED_DEPENDENCY, observed)

    async def list_observed_dependencies(
        self, *, tenant_id: str, repo_id: str
    ) -> list[Record]:
        return await self._read(ObservedDependencyRow, tenant_id, repo_id)

    async def add_dependency_mismatch(
        self, *, tenant_id: str, repo_id: str, mismatch: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.DEPENDENCY_MISMATCH, mismatch)

    def _replace_mismatches_sync(
        self, tenant_id: str, repo_id: str, mismatches: Sequence[Record]
    ) -> None:
        with self._write_lock, self.db.bulk_writer() as writer:
            writer.delete_where(
                DependencyMismatchRow,
                "tenant_id = :tenant_id AND repo_id = :repo_id",
                {"tenant_id": tenant_id, "repo_id": repo_id},
            )
            for mismatch in mismatches:
                self._apply(writer, tenant_id, repo_id, RecordKind.DEPENDENCY_MISMATCH, mismatch)

    async def replace_dependency_mismatches(
        self, *, tenant_id: str, repo_id: str, mismatches: Sequence[Record]
    ) -> None:
        for mismatch in mismatches:
            check_record(RecordKind.DEPENDENCY_MISMATCH, mismatch)
        await asyncio.to_thread(self._replace_mismatches_sync, tenant_id, repo_id, list(mismatches))

    async def list_dependency_mismatches(
        self, *, tenant_id: str, repo_id: str
    ) -> list[Record]:
        return await self._read(DependencyMismatchRow, tenant_id, repo_id)

    async def add_index_diagnostic(
        self, *, tenant_id: str, repo_id: str, diagnostic: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.INDEX_DIAGNOSTIC, diagnostic)

    async def list_index_diagnostics(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return await self._read(IndexDiagnosticRow, tenant_id, repo_id)

    async def add_unresolved_import(
        self, *, tenant_id: str, repo_id: str, unresolved_import: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.UNRESOLVED_IMPORT, unresolved_import)

    async def list_unresolved_imports(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return await self._read(UnresolvedImportRow, tenant_id, repo_id)

