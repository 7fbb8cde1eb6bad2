"""Fixtures for query tests: a small call chain A -> B -> C -> D."""

import pytest_asyncio

from cigraph.store.base import GraphStore

A = "py::pkg.a::nosig"
B = "py::pkg.b::nosig"
C = "py::pkg.c::nosig"
D = "py::pkg.d::nosig"


def node(uid: str, **extra: object) -> dict[str, object]:
    name = uid.split("::")[1]
    return {
        "symbol_uid": uid,
        "node_type": "Function",
        "qualified_name": name,
        "name": name.rsplit(".", 1)[-1],
        "file_path": f"src/{name.rsplit('.', 1)[-1]}.py",
        **extra,
    }


def edge(src: str, dst: str, edge_type: str = "Calls") -> dict[str, object]:
    return {"source_symbol_uid": src, "target_symbol_uid": dst, "edge_type": edge_type}


@pytest_asyncio.fixture
async def chain(store: GraphStore, scope: dict[str, str]) -> GraphStore:
    """Store seeded with nodes A..D and Calls edges A->B->C->D."""
    for uid in (A, B, C, D):
        await store.upsert_node(**scope, node=node(uid))
    for src, dst in ((A, B), (B, C), (C, D)):
        await store.upsert_edge(**scope, edge=edge(src, dst))
    return store
