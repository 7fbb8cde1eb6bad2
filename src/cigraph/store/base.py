"""Graph Store contract.

Every operation is scoped by ``(tenant_id, repo_id)``; an implementation must
never let a call scoped to one pair observe data written under another.

Write semantics shared by all backends:
- nodes upsert by ``symbol_uid`` (full overwrite)
- edges upsert by ``source::type::target`` (fields merged, latest write wins)
- edge occurrences and index diagnostics are append-only
- entrypoints, flow graphs, manifests, declared/observed dependencies,
  mismatches and unresolved imports upsert by their composite keys
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from cigraph.core.errors import StoreError
from cigraph.graph.records import (
    DIRECTIONS,
    Direction,
    IngestRecord,
    Record,
    RecordKind,
    is_non_empty_str,
)
from cigraph.graph.validate import validate_edge, validate_edge_occurrence


def _require_str(entity: str, record: Record, field: str) -> None:
    if not is_non_empty_str(record.get(field)):
        raise StoreError.contract_violation(entity, f"{field} required")


def check_record(kind: RecordKind, data: Any) -> Record:
    """Enforce the key fields a store needs to place a record.

    Raises:
        StoreError: If the record cannot be keyed.
    """
    entity = kind.value
    if not isinstance(data, dict):
        raise StoreError.contract_violation(entity, "must be an object")
    if kind is RecordKind.NODE:
        _require_str(entity, data, "symbol_uid")
    elif kind is RecordKind.EDGE:
        result = validate_edge(data)
        if not result.ok:
            raise StoreError.contract_violation(entity, str(result.reason.value))  # type: ignore[union-attr]
    elif kind is RecordKind.EDGE_OCCURRENCE:
        result = validate_edge_occurrence(data)
        if not result.ok:
            raise StoreError.contract_violation(entity, str(result.reason.value))  # type: ignore[union-attr]
    elif kind is RecordKind.FLOW_ENTRYPOINT:
        _require_str(entity, data, "entrypoint_key")
    elif kind is RecordKind.FLOW_GRAPH:
        _require_str(entity, data, "flow_graph_key")
    elif kind is RecordKind.DEPENDENCY_MANIFEST:
        _require_str(entity, data, "file_path")
        _require_str(entity, data, "sha")
    elif kind in (RecordKind.DECLARED_DEPENDENCY, RecordKind.OBSERVED_DEPENDENCY):
        _require_str(entity, data, "package_key")
    elif kind is RecordKind.DEPENDENCY_MISMATCH:
        _require_str(entity, data, "mismatch_type")
    elif kind is RecordKind.UNRESOLVED_IMPORT:
        _require_str(entity, data, "file_path")
        _require_str(entity, data, "spec")
    return data


def check_direction(direction: str) -> Direction:
    if direction not in DIRECTIONS:
        raise StoreError.contract_violation("edge", f"unknown direction {direction!r}")
    return direction  # type: ignore[return-value]


class GraphStore(ABC):
    """Persistence boundary for the code intelligence graph."""

    # Nodes

    @abstractmethod
    async def upsert_node(self, *, tenant_id: str, repo_id: str, node: Record) -> None: ...

    @abstractmethod
    async def get_node_by_symbol_uid(
        self, *, tenant_id: str, repo_id: str, symbol_uid: str
    ) -> Record | None: ...

    @abstractmethod
    async def list_nodes(self, *, tenant_id: str, repo_id: str) -> list[Record]: ...

    # Edges and evidence

    @abstractmethod
    async def upsert_edge(self, *, tenant_id: str, repo_id: str, edge: Record) -> None: ...

    @abstractmethod
    async def list_edges(self, *, tenant_id: str, repo_id: str) -> list[Record]: ...

    @abstractmethod
    async def list_edges_by_node(
        self,
        *,
        tenant_id: str,
        repo_id: str,
        symbol_uid: str,
        direction: Direction = "both",
    ) -> list[Record]: ...

    @abstractmethod
    async def add_edge_occurrence(
        self, *, tenant_id: str, repo_id: str, occurrence: Record
    ) -> None: ...

    @abstractmethod
    async def list_edge_occurrences(self, *, tenant_id: str, repo_id: str) -> list[Record]: ...

    @abstractmethod
    async def list_edge_occurrences_for_edge(
        self,
        *,
        tenant_id: str,
        repo_id: str,
        source_symbol_uid: str,
        edge_type: str,
        target_symbol_uid: str,
    ) -> list[Record]: ...

    # Flows

    @abstractmethod
    async def upsert_flow_entrypoint(
        self, *, tenant_id: str, repo_id: str, entrypoint: Record
    ) -> None: ...

    @abstractmethod
    async def get_flow_entrypoint(
        self, *, tenant_id: str, repo_id: str, entrypoint_key: str
    ) -> Record | None: ...

    @abstractmethod
    async def list_flow_entrypoints(self, *, tenant_id: str, repo_id: str) -> list[Record]: ...

    @abstractmethod
    async def upsert_flow_graph(
        self, *, tenant_id: str, repo_id: str, flow_graph: Record
    ) -> None: ...

    @abstractmethod
    async def get_flow_graph(
        self, *, tenant_id: str, repo_id: str, flow_graph_key: str
    ) -> Record | None: ...

    @abstractmethod
    async def list_flow_graphs(self, *, tenant_id: str, repo_id: str) -> list[Record]: ...

    # Dependency facts

    @abstractmethod
    async def add_dependency_manifest(
        self, *, tenant_id: str, repo_id: str, manifest: Record
    ) -> None: ...

    @abstractmethod
    async def list_dependency_manifests(self, *, tenant_id: str, repo_id: str) -> list[Record]: ...

    @abstractmethod
    async def add_declared_dependency(
        self, *, tenant_id: str, repo_id: str, declared: Record
    ) -> None: ...

    @abstractmethod
    async def list_declared_dependencies(
        self, *, tenant_id: str, repo_id: str
    ) -> list[Record]: ...

    @abstractmethod
    async def add_observed_dependency(
        self, *, tenant_id: str, repo_id: str, observed: Record
    ) -> None: ...

    @abstractmethod
    async def list_observed_dependencies(
        self, *, tenant_id: str, repo_id: str
    ) -> list[Record]: ...

    @abstractmethod
    async def add_dependency_mismatch(
        self, *, tenant_id: str, repo_id: str, mismatch: Record
    ) -> None: ...

    @abstractmethod
    async def replace_dependency_mismatches(
        self, *, tenant_id: str, repo_id: str, mismatches: Sequence[Record]
    ) -> None:
        """Atomically swap the scope's whole mismatch set for ``mismatches``."""

    @abstractmethod
    async def list_dependency_mismatches(
        self, *, tenant_id: str, repo_id: str
    ) -> list[Record]: ...

    # Audit

    @abstractmethod
    async def add_index_diagnostic(
        self, *, tenant_id: str, repo_id: str, diagnostic: Record
    ) -> None: ...

    @abstractmethod
    async def list_index_diagnostics(self, *, tenant_id: str, repo_id: str) -> list[Record]: ...

    @abstractmethod
    async def add_unresolved_import(
        self, *, tenant_id: str, repo_id: str, unresolved_import: Record
    ) -> None: ...

    @abstractmethod
    async def list_unresolved_imports(self, *, tenant_id: str, repo_id: str) -> list[Record]: ...

    async def close(self) -> None:  # noqa: B027
        """Release backend resources. No-op by default."""


@runtime_checkable
class BulkIngestStore(Protocol):
    """Stores that accept a whole flushed batch in one call."""

    async def ingest_records(
        self, *, tenant_id: str, repo_id: str, records: Sequence[IngestRecord]
    ) -> None: ...


_WRITE_METHODS: dict[RecordKind, tuple[str, str]] = {
    RecordKind.NODE: ("upsert_node", "node"),
    RecordKind.EDGE: ("upsert_edge", "edge"),
    RecordKind.EDGE_OCCURRENCE: ("add_edge_occurrence", "occurrence"),
    RecordKind.FLOW_ENTRYPOINT: ("upsert_flow_entrypoint", "entrypoint"),
    RecordKind.FLOW_GRAPH: ("upsert_flow_graph", "flow_graph"),
    RecordKind.DEPENDENCY_MANIFEST: ("add_dependency_manifest", "manifest"),
    RecordKind.DECLARED_DEPENDENCY: ("add_declared_dependency", "declared"),
    RecordKind.OBSERVED_DEPENDENCY: ("add_observed_dependency", "observed"),
    RecordKind.DEPENDENCY_MISMATCH: ("add_dependency_mismatch", "mismatch"),
    RecordKind.INDEX_DIAGNOSTIC: ("add_index_diagnostic", "diagnostic"),
    RecordKind.UNRESOLVED_IMPORT: ("add_unresolved_import", "unresolved_import"),
}


async def write_record(
    store: GraphStore, *, tenant_id: str, repo_id: str, record: IngestRecord
) -> None:
    """Route one known record to the matching single-entity store method."""
    method_name, arg_name = _WRITE_METHODS[record.kind]
    method = getattr(store, method_name)
    await method(tenant_id=tenant_id, repo_id=repo_id, **{arg_name: record.data})
