"""Blast radius: every symbol within N hops of a seed."""

from __future__ import annotations

from cigraph.config.constants import BLAST_RADIUS_MAX_DEPTH
from cigraph.graph.records import Direction
from cigraph.query._args import require_depth, require_direction, require_uid
from cigraph.store.base import GraphStore


async def blast_radius(
    store: GraphStore,
    tenant_id: str,
    repo_id: str,
    symbol_uid: str,
    depth: int = 1,
    direction: Direction = "both",
) -> list[str]:
    """Breadth-first expansion from ``symbol_uid``.

    Each round examines the edges touching the current frontier, following
    source to target for ``out`` and target to source for ``in``. A visited
    node never re-enters the frontier, so cycles terminate.

    Returns:
        Visited symbol uids in discovery order, seed first.

    Raises:
        QueryError: On an empty uid, depth outside 0..5 or unknown direction.
    """
    symbol_uid = require_uid("symbol_uid", symbol_uid)
    depth = require_depth(depth, BLAST_RADIUS_MAX_DEPTH)
    direction = require_direction(direction)

    visited: dict[str, None] = {symbol_uid: None}
    frontier = [symbol_uid]
    for _ in range(depth):
        discovered: dict[str, None] = {}
        for current in frontier:
            edges = await store.list_edges_by_node(
                tenant_id=tenant_id, repo_id=repo_id, symbol_uid=current, direction=direction
            )
            for edge in edges:
                source, target = edge["source_symbol_uid"], edge["target_symbol_uid"]
                if direction in ("out", "both") and source == current and target not in visited:
                    discovered[target] = None
                if direction in ("in", "both") and target == current and source not in visited:
                    discovered[source] = None
        visited.update(discovered)
        frontier = list(discovered)
        if not frontier:
            break
    return list(visited)
