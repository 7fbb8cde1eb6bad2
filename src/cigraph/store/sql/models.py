"""SQLModel table definitions for the relational Graph Store.

Every table carries ``tenant_id`` and ``repo_id``; uniqueness constraints are
always prefixed by that pair so one scope's keys never collide with another's.
Each row keeps the full sanitized record as JSON in ``payload`` next to the
columns the store filters on.
"""

import json
from typing import Any

from sqlalchemy import Index, UniqueConstraint
from sqlmodel import Field, SQLModel


class _PayloadMixin:
    def get_payload(self) -> dict[str, Any]:
        """Parse payload JSON to a record dict."""
        result: dict[str, Any] = json.loads(self.payload)  # type: ignore[attr-defined]
        return result


class GraphNodeRow(_PayloadMixin, SQLModel, table=True):
    """Symbol node, unique per scope by symbol_uid."""

    __tablename__ = "graph_nodes"
    __table_args__ = (UniqueConstraint("tenant_id", "repo_id", "symbol_uid"),)

    id: int | None = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    repo_id: str = Field(index=True)
    symbol_uid: str
    node_type: str
    qualified_name: str | None = None
    file_path: str | None = Field(default=None, index=True)
    language: str | None = None
    payload: str


class GraphEdgeRow(_PayloadMixin, SQLModel, table=True):
    """Edge, unique per scope by (source, edge_type, target)."""

    __tablename__ = "graph_edges"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "repo_id", "source_symbol_uid", "edge_type", "target_symbol_uid"
        ),
        Index("ix_graph_edges_source", "tenant_id", "repo_id", "source_symbol_uid"),
        Index("ix_graph_edges_target", "tenant_id", "repo_id", "target_symbol_uid"),
    )

    id: int | None = Field(default=None, primary_key=True)
    tenant_id: str
    repo_id: str
    source_symbol_uid: str
    edge_type: str
    target_symbol_uid: str
    payload: str


class GraphEdgeOccurrenceRow(_PayloadMixin, SQLModel, table=True):
    """Edge evidence. No uniqueness: every observation is its own row."""

    __tablename__ = "graph_edge_occurrences"
    __table_args__ = (
        Index(
            "ix_graph_edge_occurrences_edge",
            "tenant_id",
            "repo_id",
            "source_symbol_uid",
            "edge_type",
            "target_symbol_uid",
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    tenant_id: str
    repo_id: str
    source_symbol_uid: str
    edge_type: str
    target_symbol_uid: str
    file_path: str
    line_start: int
    line_end: int
    occurrence_kind: str | None = None
    payload: str


class FlowEntrypointRow(_PayloadMixin, SQLModel, table=True):
    __tablename__ = "flow_entrypoints"
    __table_args__ = (UniqueConstraint("tenant_id", "repo_id", "entrypoint_key"),)

    id: int | None = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    repo_id: str = Field(index=True)
    entrypoint_key: str
    payload: str


class FlowGraphRow(_PayloadMixin, SQLModel, table=True):
    __tablename__ = "flow_graphs"
    __table_args__ = (UniqueConstraint("tenant_id", "repo_id", "flow_graph_key"),)

    id: int | None = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    repo_id: str = Field(index=True)
    flow_graph_key: str
    payload: str


class DependencyManifestRow(_PayloadMixin, SQLModel, table=True):
    __tablename__ = "dependency_manifests"
    __table_args__ = (UniqueConstraint("tenant_id", "repo_id", "manifest_key"),)

    id: int | None = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    repo_id: str = Field(index=True)
    manifest_key: str  # file_path::sha
    payload: str


class DeclaredDependencyRow(_PayloadMixin, SQLModel, table=True):
    __tablename__ = "declared_dependencies"
    __table_args__ = (UniqueConstraint("tenant_id", "repo_id", "dep_key"),)

    id: int | None = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    repo_id: str = Field(index=True)
    dep_key: str  # manifest_key::package_key::scope
    package_key: str
    payload: str


class ObservedDependencyRow(_PayloadMixin, SQLModel, table=True):
    __tablename__ = "observed_dependencies"
    __table_args__ = (UniqueConstraint("tenant_id", "repo_id", "dep_key"),)

    id: int | None = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    repo_id: str = Field(index=True)
    dep_key: str  # source_symbol_uid::package_key
    package_key: str
    payload: str


class DependencyMismatchRow(_PayloadMixin, SQLModel, table=True):
    __tablename__ = "dependency_mismatches"
    __table_args__ = (UniqueConstraint("tenant_id", "repo_id", "mismatch_key"),)

    id: int | None = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    repo_id: str = Field(index=True)
    mismatch_key: str  # mismatch_type::package_key::sha
    mismatch_type: str
    payload: str


class IndexDiagnosticRow(_PayloadMixin, SQLModel, table=True):
    """Append-only audit trail of indexing runs."""

    __tablename__ = "index_diagnostics"

    id: int | None = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    repo_id: str = Field(index=True)
    payload: str


class UnresolvedImportRow(_PayloadMixin, SQLModel, table=True):
    __tablename__ = "unresolved_imports"
    __table_args__ = (UniqueConstraint("tenant_id", "repo_id", "import_key"),)

    id: int | None = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    repo_id: str = Field(index=True)
    import_key: str  # file_path::line::spec::sha
    payload: str
