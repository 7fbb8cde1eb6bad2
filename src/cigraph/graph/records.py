"""Record kinds and key helpers for the code intelligence graph.

Graph entities travel as plain JSON objects with snake_case keys (the same
shape the indexer writes to NDJSON). This module names the closed set of
record kinds the pipeline understands and the composite keys the store uses
to deduplicate them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from cigraph.config.constants import KEY_SEPARATOR

Direction = Literal["in", "out", "both"]
DIRECTIONS: frozenset[str] = frozenset({"in", "out", "both"})

Record = dict[str, Any]


class RecordKind(str, Enum):
    """Known NDJSON record types."""

    NODE = "node"
    EDGE = "edge"
    EDGE_OCCURRENCE = "edge_occurrence"
    FLOW_ENTRYPOINT = "flow_entrypoint"
    FLOW_GRAPH = "flow_graph"
    DEPENDENCY_MANIFEST = "dependency_manifest"
    DECLARED_DEPENDENCY = "declared_dependency"
    OBSERVED_DEPENDENCY = "observed_dependency"
    DEPENDENCY_MISMATCH = "dependency_mismatch"
    INDEX_DIAGNOSTIC = "index_diagnostic"
    UNRESOLVED_IMPORT = "unresolved_import"

    @classmethod
    def dependency_facts(cls) -> frozenset[RecordKind]:
        """Kinds whose arrival invalidates the stored mismatch set."""
        return frozenset(
            {cls.DEPENDENCY_MANIFEST, cls.DECLARED_DEPENDENCY, cls.OBSERVED_DEPENDENCY}
        )

    @property
    def is_dependency_fact(self) -> bool:
        return self in self.dependency_facts()


class MismatchType(str, Enum):
    """Kinds of declared-vs-observed dependency divergence."""

    DECLARED_NOT_OBSERVED = "declared_not_observed"
    OBSERVED_NOT_DECLARED = "observed_not_declared"
    VERSION_CONFLICT = "version_conflict"


@dataclass(frozen=True, slots=True)
class IngestRecord:
    """A parsed record of a known kind."""

    kind: RecordKind
    data: Any
    line: int | None = None

    @property
    def type(self) -> str:
        return self.kind.value


@dataclass(frozen=True, slots=True)
class UnrecognizedRecord:
    """A well-formed record whose type this version does not know.

    Parsed so the stream stays aligned, then skipped.
    """

    type: str
    data: Any
    line: int | None = None


ParsedRecord = IngestRecord | UnrecognizedRecord


def is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def make_edge_key(source_symbol_uid: str, edge_type: str, target_symbol_uid: str) -> str:
    """``source::type::target`` deduplication key for edges."""
    return KEY_SEPARATOR.join((source_symbol_uid, edge_type, target_symbol_uid))


def edge_key_of(record: Record) -> str:
    return make_edge_key(
        record["source_symbol_uid"], record["edge_type"], record["target_symbol_uid"]
    )


def manifest_key_of(manifest: Record) -> str:
    return KEY_SEPARATOR.join((manifest["file_path"], manifest["sha"]))


def declared_key_of(declared: Record) -> str:
    return KEY_SEPARATOR.join(
        (
            str(declared.get("manifest_key") or "unknown"),
            declared["package_key"],
            str(declared.get("scope") or "unknown"),
        )
    )


def observed_key_of(observed: Record) -> str:
    return KEY_SEPARATOR.join(
        (str(observed.get("source_symbol_uid") or "unknown"), observed["package_key"])
    )


def mismatch_key_of(mismatch: Record) -> str:
    return KEY_SEPARATOR.join(
        (
            mismatch["mismatch_type"],
            str(mismatch.get("package_key") or "unknown"),
            str(mismatch.get("sha") or "unknown"),
        )
    )


def unresolved_import_key_of(record: Record) -> str:
    line = record.get("line") or 0
    return KEY_SEPARATOR.join(
        (record["file_path"], str(line), record["spec"], str(record.get("sha") or "unknown"))
    )


def file_path_from_manifest_key(manifest_key: Any) -> str | None:
    """Leading file path of a ``file_path::sha`` manifest key, if present."""
    key = str(manifest_key or "")
    idx = key.rfind(KEY_SEPARATOR)
    if idx <= 0:
        return None
    return key[:idx]
