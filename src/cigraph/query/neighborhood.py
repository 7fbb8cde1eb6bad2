"""One-hop neighborhood with per-edge evidence counts."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from cigraph.graph.records import Direction, Record
from cigraph.query._args import edge_type_filter, require_direction, require_positive, require_uid
from cigraph.store.base import GraphStore


@dataclass(frozen=True, slots=True)
class EdgeOccurrenceCount:
    """How many occurrence rows back one edge."""

    source_symbol_uid: str
    edge_type: str
    target_symbol_uid: str
    occurrences: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_symbol_uid": self.source_symbol_uid,
            "edge_type": self.edge_type,
            "target_symbol_uid": self.target_symbol_uid,
            "occurrences": self.occurrences,
        }


@dataclass
class Neighborhood:
    nodes: list[Record] = field(default_factory=list)
    edges: list[Record] = field(default_factory=list)
    edge_occurrence_counts: list[EdgeOccurrenceCount] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": self.nodes,
            "edges": self.edges,
            "edge_occurrence_counts": [c.to_dict() for c in self.edge_occurrence_counts],
        }


async def neighborhood(
    store: GraphStore,
    tenant_id: str,
    repo_id: str,
    symbol_uid: str,
    direction: Direction = "both",
    edge_types: Iterable[str] | None = None,
    limit_edges: int = 200,
) -> Neighborhood:
    """Edges touching ``symbol_uid`` plus their endpoint nodes.

    Edges are filtered to ``edge_types`` when given, then capped at
    ``limit_edges``. Endpoints missing from the store are omitted from
    ``nodes``; the seed node comes first when present.
    """
    symbol_uid = require_uid("symbol_uid", symbol_uid)
    direction = require_direction(direction)
    limit_edges = require_positive("limit_edges", limit_edges)
    allowed = edge_type_filter(edge_types)

    edges = await store.list_edges_by_node(
        tenant_id=tenant_id, repo_id=repo_id, symbol_uid=symbol_uid, direction=direction
    )
    if allowed is not None:
        edges = [e for e in edges if e.get("edge_type") in allowed]
    edges = edges[:limit_edges]

    endpoints = [symbol_uid]
    for edge in edges:
        endpoints.extend((edge["source_symbol_uid"], edge["target_symbol_uid"]))

    nodes_by_uid: dict[str, Record] = {}
    for uid in endpoints:
        if uid in nodes_by_uid:
            continue
        node = await store.get_node_by_symbol_uid(
            tenant_id=tenant_id, repo_id=repo_id, symbol_uid=uid
        )
        if node is not None:
            nodes_by_uid[uid] = node

    async def count(edge: Record) -> EdgeOccurrenceCount:
        occurrences = await store.list_edge_occurrences_for_edge(
            tenant_id=tenant_id,
            repo_id=repo_id,
            source_symbol_uid=edge["source_symbol_uid"],
            edge_type=edge["edge_type"],
            target_symbol_uid=edge["target_symbol_uid"],
        )
        return EdgeOccurrenceCount(
            source_symbol_uid=edge["source_symbol_uid"],
            edge_type=edge["edge_type"],
            target_symbol_uid=edge["target_symbol_uid"],
            occurrences=len(occurrences),
        )

    counts = await asyncio.gather(*(count(e) for e in edges))
    return Neighborhood(
        nodes=list(nodes_by_uid.values()), edges=edges, edge_occurrence_counts=list(counts)
    )
