"""In-memory Graph Store: the reference implementation for tests and dev.

State is partitioned into one ``_Scope`` per ``(tenant_id, repo_id)``; writes
to a scope are serialized by that scope's asyncio lock.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Sequence
from dataclasses import dataclass, field

from cigraph.graph.records import (
    Direction,
    IngestRecord,
    Record,
    RecordKind,
    declared_key_of,
    edge_key_of,
    make_edge_key,
    manifest_key_of,
    mismatch_key_of,
    observed_key_of,
    unresolved_import_key_of,
)
from cigraph.store.base import GraphStore, check_direction, check_record


@dataclass
class _Scope:
    nodes: dict[str, Record] = field(default_factory=dict)
    edges: dict[str, Record] = field(default_factory=dict)
    # symbol_uid -> edge keys, insertion-ordered
    edges_out: dict[str, dict[str, None]] = field(default_factory=dict)
    edges_in: dict[str, dict[str, None]] = field(default_factory=dict)
    occurrences: dict[str, list[Record]] = field(default_factory=dict)
    entrypoints: dict[str, Record] = field(default_factory=dict)
    flow_graphs: dict[str, Record] = field(default_factory=dict)
    manifests: dict[str, Record] = field(default_factory=dict)
    declared: dict[str, Record] = field(default_factory=dict)
    observed: dict[str, Record] = field(default_factory=dict)
    mismatches: dict[str, Record] = field(default_factory=dict)
    diagnostics: list[Record] = field(default_factory=list)
    unresolved_imports: dict[str, Record] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def apply(self, kind: RecordKind, data: Record) -> None:
        record = copy.deepcopy(data)
        if kind is RecordKind.NODE:
            self.nodes[record["symbol_uid"]] = record
        elif kind is RecordKind.EDGE:
            key = edge_key_of(record)
            existing = self.edges.get(key)
            self.edges[key] = {**existing, **record} if existing else record
            self.edges_out.setdefault(record["source_symbol_uid"], {})[key] = None
            self.edges_in.setdefault(record["target_symbol_uid"], {})[key] = None
        elif kind is RecordKind.EDGE_OCCURRENCE:
            self.occurrences.setdefault(edge_key_of(record), []).append(record)
        elif kind is RecordKind.FLOW_ENTRYPOINT:
            self.entrypoints[record["entrypoint_key"]] = record
        elif kind is RecordKind.FLOW_GRAPH:
            self.flow_graphs[record["flow_graph_key"]] = record
        elif kind is RecordKind.DEPENDENCY_MANIFEST:
            self.manifests[manifest_key_of(record)] = record
        elif kind is RecordKind.DECLARED_DEPENDENCY:
            self.declared[declared_key_of(record)] = record
        elif kind is RecordKind.OBSERVED_DEPENDENCY:
            self.observed[observed_key_of(record)] = record
        elif kind is RecordKind.DEPENDENCY_MISMATCH:
            self.mismatches[mismatch_key_of(record)] = record
        elif kind is RecordKind.INDEX_DIAGNOSTIC:
            self.diagnostics.append(record)
        elif kind is RecordKind.UNRESOLVED_IMPORT:
            self.unresolved_imports[unresolved_import_key_of(record)] = record


def _copies(records: Sequence[Record]) -> list[Record]:
    return [copy.deepcopy(r) for r in records]


class InMemoryGraphStore(GraphStore):
    """Dict-backed store; returned records are deep copies."""

    def __init__(self) -> None:
        self._scopes: dict[tuple[str, str], _Scope] = {}

    def _scope(self, tenant_id: str, repo_id: str) -> _Scope:
        key = (tenant_id, repo_id)
        scope = self._scopes.get(key)
        if scope is None:
            scope = self._scopes[key] = _Scope()
        return scope

    def _peek(self, tenant_id: str, repo_id: str) -> _Scope:
        # Reads never create scopes
        return self._scopes.get((tenant_id, repo_id)) or _EMPTY_SCOPE

    async def _write(self, tenant_id: str, repo_id: str, kind: RecordKind, data: Record) -> None:
        check_record(kind, data)
        scope = self._scope(tenant_id, repo_id)
        async with scope.lock:
            scope.apply(kind, data)

    async def ingest_records(
        self, *, tenant_id: str, repo_id: str, records: Sequence[IngestRecord]
    ) -> None:
        """Apply a batch under a single lock acquisition, in order."""
        for record in records:
            check_record(record.kind, record.data)
        scope = self._scope(tenant_id, repo_id)
        async with scope.lock:
            for record in records:
                scope.apply(record.kind, record.data)

    async def upsert_node(self, *, tenant_id: str, repo_id: str, node: Record) -> None:
        await self._write(tenant_id, repo_id, RecordKind.NODE, node)

    async def get_node_by_symbol_uid(
        self, *, tenant_id: str, repo_id: str, symbol_uid: str
    ) -> Record | None:
        node = self._peek(tenant_id, repo_id).nodes.get(symbol_uid)
        return copy.deepcopy(node) if node is not None else None

    async def list_nodes(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return _copies(list(self._peek(tenant_id, repo_id).nodes.values()))

    async def upsert_edge(self, *, tenant_id: str, repo_id: str, edge: Record) -> None:
        await self._write(tenant_id, repo_id, RecordKind.EDGE, edge)

    async def list_edges(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return _copies(list(self._peek(tenant_id, repo_id).edges.values()))

    async def list_edges_by_node(
        self,
        *,
        tenant_id: str,
        repo_id: str,
        symbol_uid: str,
        direction: Direction = "both",
    ) -> list[Record]:
        check_direction(direction)
        scope = self._peek(tenant_id, repo_id)
        keys: dict[str, None] = {}
        if direction in ("out", "both"):
            keys.update(scope.edges_out.get(symbol_uid, {}))
        if direction in ("in", "both"):
            keys.update(scope.edges_in.get(symbol_uid, {}))
        return [copy.deepcopy(scope.edges[k]) for k in keys]

    async def add_edge_occurrence(
        self, *, tenant_id: str, repo_id: str, occurrence: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.EDGE_OCCURRENCE, occurrence)

    async def list_edge_occurrences(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        scope = self._peek(tenant_id, repo_id)
        return [copy.deepcopy(o) for occs in scope.occurrences.values() for o in occs]

    async def list_edge_occurrences_for_edge(
        self,
        *,
        tenant_id: str,
        repo_id: str,
        source_symbol_uid: str,
        edge_type: str,
        target_symbol_uid: str,
    ) -> list[Record]:
        key = make_edge_key(source_symbol_uid, edge_type, target_symbol_uid)
        return _copies(self._peek(tenant_id, repo_id).occurrences.get(key, []))

    async def upsert_flow_entrypoint(
        self, *, tenant_id: str, repo_id: str, entrypoint: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.FLOW_ENTRYPOINT, entrypoint)

    async def get_flow_entrypoint(
        self, *, tenant_id: str, repo_id: str, entrypoint_key: str
    ) -> Record | None:
        ep = self._peek(tenant_id, repo_id).entrypoints.get(entrypoint_key)
        return copy.deepcopy(ep) if ep is not None else None

    async def list_flow_entrypoints(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return _copies(list(self._peek(tenant_id, repo_id).entrypoints.values()))

    async def upsert_flow_graph(
        self, *, tenant_id: str, repo_id: str, flow_graph: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.FLOW_GRAPH, flow_graph)

    async def get_flow_graph(
        self, *, tenant_id: str, repo_id: str, flow_graph_key: str
    ) -> Record | None:
        fg = self._peek(tenant_id, repo_id).flow_graphs.get(flow_graph_key)
        return copy.deepcopy(fg) if fg is not None else None

    async def list_flow_graphs(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return _copies(list(self._peek(tenant_id, repo_id).flow_graphs.values()))

    async def add_dependency_manifest(
        self, *, tenant_id: str, repo_id: str, manifest: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.DEPENDENCY_MANIFEST, manifest)

    async def list_dependency_manifests(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return _copies(list(self._peek(tenant_id, repo_id).manifests.values()))

    async def add_declared_dependency(
        self, *, tenant_id: str, repo_id: str, declared: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.DECLARED_DEPENDENCY, declared)

    async def list_declared_dependencies(
        self, *, tenant_id: str, repo_id: str
    ) -> list[Record]:
        return _copies(list(self._peek(tenant_id, repo_id).declared.values()))

    async def add_observed_dependency(
        self, *, tenant_id: str, repo_id: str, observed: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.OBSERVED_DEPENDENCY, observed)

    async def list_observed_dependencies(
        self, *, tenant_id: str, repo_id: str
    ) -> list[Record]:
        return _copies(list(self._peek(tenant_id, repo_id).observed.values()))

    async def add_dependency_mismatch(
        self, *, tenant_id: str, repo_id: str, mismatch: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.DEPENDENCY_MISMATCH, mismatch)

    async def replace_dependency_mismatches(
        self, *, tenant_id: str, repo_id: str, mismatches: Sequence[Record]
    ) -> None:
        for mismatch in mismatches:
            check_record(RecordKind.DEPENDENCY_MISMATCH, mismatch)
        scope = self._scope(tenant_id, repo_id)
        async with scope.lock:
            scope.mismatches = {}
            for mismatch in mismatches:
                scope.apply(RecordKind.DEPENDENCY_MISMATCH, mismatch)

    async def list_dependency_mismatches(
        self, *, tenant_id: str, repo_id: str
    ) -> list[Record]:
        return _copies(list(self._peek(tenant_id, repo_id).mismatches.values()))

    async def add_index_diagnostic(
        self, *, tenant_id: str, repo_id: str, diagnostic: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.INDEX_DIAGNOSTIC, diagnostic)

    async def list_index_diagnostics(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return _copies(self._peek(tenant_id, repo_id).diagnostics)

    async def add_unresolved_import(
        self, *, tenant_id: str, repo_id: str, unresolved_import: Record
    ) -> None:
        await self._write(tenant_id, repo_id, RecordKind.UNRESOLVED_IMPORT, unresolved_import)

    async def list_unresolved_imports(self, *, tenant_id: str, repo_id: str) -> list[Record]:
        return _copies(list(self._peek(tenant_id, repo_id).unresolved_imports.values()))


_EMPTY_SCOPE = _Scope()
