"""Changed-file impact: which symbols and files a change set touches."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from cigraph.config.constants import (
    BLAST_RADIUS_MAX_DEPTH,
    IMPACT_IMPORTER_MAX_DEPTH,
    IMPACT_MAX_FILES,
)
from cigraph.graph.records import Record
from cigraph.query._args import require_depth
from cigraph.query.blast_radius import blast_radius
from cigraph.store.base import GraphStore

IMPORT_EDGE_TYPE = "Imports"


@dataclass
class ImpactResult:
    changed_files: list[str] = field(default_factory=list)
    changed_symbol_uids: list[str] = field(default_factory=list)
    impacted_symbol_uids: list[str] = field(default_factory=list)
    impacted_files: list[str] = field(default_factory=list)
    reparsed_files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "changed_files": self.changed_files,
            "changed_symbol_uids": self.changed_symbol_uids,
            "impacted_symbol_uids": self.impacted_symbol_uids,
            "impacted_files": self.impacted_files,
            "reparsed_files": self.reparsed_files,
        }


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _reverse_importers(
    nodes: Sequence[Record], edges: Sequence[Record]
) -> dict[str, dict[str, None]]:
    """Imported file path -> paths of files that import it."""
    file_of = {n["symbol_uid"]: n.get("file_path") for n in nodes}
    importers: dict[str, dict[str, None]] = {}
    for edge in edges:
        if edge.get("edge_type") != IMPORT_EDGE_TYPE:
            continue
        src_file = file_of.get(edge["source_symbol_uid"])
        dst_file = file_of.get(edge["target_symbol_uid"])
        if src_file and dst_file and src_file != dst_file:
            importers.setdefault(dst_file, {})[src_file] = None
    return importers


def expand_importers(
    importers: dict[str, dict[str, None]],
    start_files: Sequence[str],
    max_depth: int = IMPACT_IMPORTER_MAX_DEPTH,
    max_files: int = IMPACT_MAX_FILES,
) -> list[str]:
    """Start files plus files importing them, transitively, up to ``max_depth`` hops."""
    seen: dict[str, None] = dict.fromkeys(start_files)
    frontier = list(seen)
    for _ in range(max_depth):
        if not frontier:
            break
        discovered: list[str] = []
        for path in frontier:
            for importer in importers.get(path, {}):
                if importer in seen:
                    continue
                seen[importer] = None
                discovered.append(importer)
                if len(seen) >= max_files:
                    return list(seen)
        frontier = discovered
    return list(seen)


async def compute_impact(
    store: GraphStore,
    tenant_id: str,
    repo_id: str,
    changed_files: Sequence[str] = (),
    removed_files: Sequence[str] = (),
    depth: int = 2,
) -> ImpactResult:
    """Symbols and files affected by a set of changed or removed files.

    Changed symbols are the nodes living in changed or removed files; impacted
    symbols add everything within ``depth`` hops of them. Impacted files are
    the files of impacted symbols plus reverse importers of the change set.
    Removed files are never scheduled for reparsing.
    """
    depth = require_depth(depth, BLAST_RADIUS_MAX_DEPTH)
    change_set = _unique([*changed_files, *removed_files])

    nodes = await store.list_nodes(tenant_id=tenant_id, repo_id=repo_id)
    edges = await store.list_edges(tenant_id=tenant_id, repo_id=repo_id)
    by_importers = expand_importers(_reverse_importers(nodes, edges), change_set)

    change_paths = set(change_set)
    changed_uids = [n["symbol_uid"] for n in nodes if n.get("file_path") in change_paths]

    impacted: dict[str, None] = dict.fromkeys(changed_uids)
    for uid in changed_uids:
        for other in await blast_radius(store, tenant_id, repo_id, uid, depth, "both"):
            impacted[other] = None

    removed = set(removed_files)
    file_of = {n["symbol_uid"]: n.get("file_path") for n in nodes}
    files_from_symbols = [f for f in (file_of.get(uid) for uid in impacted) if f]
    impacted_files = _unique([*by_importers, *files_from_symbols])

    return ImpactResult(
        changed_files=list(changed_files),
        changed_symbol_uids=changed_uids,
        impacted_symbol_uids=list(impacted),
        impacted_files=impacted_files,
        reparsed_files=[
            f for f in _unique([*changed_files, *impacted_files]) if f not in removed
        ],
    )
