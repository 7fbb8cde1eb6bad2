"""Materialized flow graphs: a cached trace shape per (entrypoint, sha, depth)."""

from __future__ import annotations

from typing import Any

from cigraph.config.constants import FLOW_MAX_DEPTH, KEY_SEPARATOR
from cigraph.core.errors import QueryError
from cigraph.graph.records import Record, edge_key_of, is_non_empty_str
from cigraph.query._args import require_depth, require_uid
from cigraph.query.trace import trace_flow
from cigraph.store.base import GraphStore


def make_flow_graph_key(entrypoint_key: str, sha: str, depth: int) -> str:
    """``entrypoint_key::sha::depth``.

    Raises:
        QueryError: On an empty key or sha, or depth outside 0..10.
    """
    require_uid("entrypoint_key", entrypoint_key)
    require_uid("sha", sha)
    require_depth(depth, FLOW_MAX_DEPTH)
    return KEY_SEPARATOR.join((entrypoint_key, sha, str(depth)))


def entrypoint_start_uid(entrypoint: Record) -> Any:
    """Symbol a flow starts from: the bound entrypoint symbol, else ``symbol_uid``."""
    return entrypoint.get("entrypoint_symbol_uid") or entrypoint.get("symbol_uid")


async def materialize_flow_graph(
    store: GraphStore,
    tenant_id: str,
    repo_id: str,
    entrypoint: Record,
    sha: str,
    depth: int = 3,
    *,
    persist: bool = True,
) -> Record:
    """Trace from ``entrypoint`` and keep only the node uids and edge keys.

    The result is stored with ``upsert_flow_graph`` unless ``persist`` is
    false, so re-materializing the same triple overwrites in place.
    """
    if not isinstance(entrypoint, dict):
        raise QueryError.invalid_argument("entrypoint", entrypoint, "must be an object")
    entrypoint_key = entrypoint.get("entrypoint_key")
    flow_graph_key = make_flow_graph_key(entrypoint_key, sha, depth)  # type: ignore[arg-type]
    start_uid = entrypoint_start_uid(entrypoint)
    if not is_non_empty_str(start_uid):
        raise QueryError.invalid_argument(
            "entrypoint", entrypoint_key, "has no entrypoint_symbol_uid or symbol_uid"
        )

    trace = await trace_flow(store, tenant_id, repo_id, start_uid, depth=depth)
    flow_graph: Record = {
        "flow_graph_key": flow_graph_key,
        "entrypoint_key": entrypoint_key,
        "start_symbol_uid": start_uid,
        "sha": sha,
        "depth": depth,
        "node_uids": [n["symbol_uid"] for n in trace.nodes],
        "edge_keys": [edge_key_of(e) for e in trace.edges],
    }
    if persist:
        await store.upsert_flow_graph(tenant_id=tenant_id, repo_id=repo_id, flow_graph=flow_graph)
    return flow_graph


async def materialize_flow_graph_for_key(
    store: GraphStore,
    tenant_id: str,
    repo_id: str,
    entrypoint_key: str,
    sha: str,
    depth: int = 3,
) -> Record:
    """Look up a stored entrypoint by key and materialize its flow graph.

    Raises:
        QueryError: If no entrypoint is stored under ``entrypoint_key``.
    """
    require_uid("entrypoint_key", entrypoint_key)
    entrypoint = await store.get_flow_entrypoint(
        tenant_id=tenant_id, repo_id=repo_id, entrypoint_key=entrypoint_key
    )
    if entrypoint is None:
        raise QueryError.not_found("flow_entrypoint", entrypoint_key)
    return await materialize_flow_graph(store, tenant_id, repo_id, entrypoint, sha, depth)
