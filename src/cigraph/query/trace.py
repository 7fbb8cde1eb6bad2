"""Flow tracing along execution-relevant edges."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from cigraph.config.constants import FLOW_MAX_DEPTH
from cigraph.core.errors import QueryError
from cigraph.graph.records import Record
from cigraph.query._args import edge_type_filter, require_uid
from cigraph.store.base import GraphStore

FLOW_EDGE_TYPES: tuple[str, ...] = ("ControlFlow", "Calls")


@dataclass
class FlowTrace:
    start_symbol_uid: str
    depth: int
    nodes: list[Record] = field(default_factory=list)
    edges: list[Record] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_symbol_uid": self.start_symbol_uid,
            "depth": self.depth,
            "nodes": self.nodes,
            "edges": self.edges,
        }


def clamp_flow_depth(depth: int) -> int:
    if isinstance(depth, bool) or not isinstance(depth, int):
        raise QueryError.invalid_argument("depth", depth, "must be an integer")
    return max(0, min(FLOW_MAX_DEPTH, depth))


async def trace_flow(
    store: GraphStore,
    tenant_id: str,
    repo_id: str,
    start_symbol_uid: str,
    depth: int = 2,
    edge_types: Iterable[str] | None = FLOW_EDGE_TYPES,
) -> FlowTrace:
    """Walk outgoing edges from ``start_symbol_uid`` up to ``depth`` hops.

    Only edges whose type is in ``edge_types`` are followed (None follows
    every type). Depth is clamped to 0..10. The walk continues only through
    nodes present in the store; each edge is reported once.
    """
    start_symbol_uid = require_uid("start_symbol_uid", start_symbol_uid)
    depth = clamp_flow_depth(depth)
    allowed = edge_type_filter(edge_types)

    nodes: dict[str, Record] = {}
    edges: dict[tuple[str, str, str], Record] = {}

    async def add_node(uid: str) -> bool:
        if uid not in nodes:
            node = await store.get_node_by_symbol_uid(
                tenant_id=tenant_id, repo_id=repo_id, symbol_uid=uid
            )
            if node is None:
                return False
            nodes[uid] = node
        return True

    await add_node(start_symbol_uid)
    expanded: set[str] = set()
    frontier = [start_symbol_uid]
    for _ in range(depth):
        discovered: dict[str, None] = {}
        for uid in frontier:
            if uid in expanded:
                continue
            expanded.add(uid)
            out_edges = await store.list_edges_by_node(
                tenant_id=tenant_id, repo_id=repo_id, symbol_uid=uid, direction="out"
            )
            for edge in out_edges:
                if allowed is not None and edge.get("edge_type") not in allowed:
                    continue
                key = (edge["source_symbol_uid"], edge["edge_type"], edge["target_symbol_uid"])
                edges.setdefault(key, edge)
                target = edge["target_symbol_uid"]
                if await add_node(target) and target not in expanded:
                    discovered[target] = None
        frontier = list(discovered)
        if not frontier:
            break

    return FlowTrace(
        start_symbol_uid=start_symbol_uid,
        depth=depth,
        nodes=list(nodes.values()),
        edges=list(edges.values()),
    )
