"""Text and semantic search over stored nodes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from cigraph.config.constants import EMBEDDING_DIM
from cigraph.graph.embedding import Embedder, check_embedding, deterministic_embedder
from cigraph.graph.records import Record
from cigraph.query._args import require_positive
from cigraph.store.base import GraphStore


@dataclass(frozen=True, slots=True)
class SearchHit:
    node: Record
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {"node": self.node, "score": self.score}


async def text_search(
    store: GraphStore,
    tenant_id: str,
    repo_id: str,
    query: str,
    limit: int = 10,
) -> list[SearchHit]:
    """Case-insensitive substring match on ``qualified_name`` and ``name``.

    Every match scores 1.0; hits keep store order. Blank queries match nothing.
    """
    limit = require_positive("limit", limit)
    needle = (query or "").strip().lower()
    if not needle:
        return []
    hits: list[SearchHit] = []
    for node in await store.list_nodes(tenant_id=tenant_id, repo_id=repo_id):
        haystack = f"{node.get('qualified_name') or ''} {node.get('name') or ''}".lower()
        if needle in haystack:
            hits.append(SearchHit(node=node, score=1.0))
            if len(hits) >= limit:
                break
    return hits


async def semantic_search(
    store: GraphStore,
    tenant_id: str,
    repo_id: str,
    query: str,
    limit: int = 10,
    embedder: Embedder | None = None,
) -> list[SearchHit]:
    """Rank nodes carrying a valid embedding by cosine similarity to the query.

    The query is embedded with ``embedder`` (deterministic by default); ties
    keep store order.
    """
    limit = require_positive("limit", limit)
    text = (query or "").strip()
    if not text:
        return []

    candidates = [
        n
        for n in await store.list_nodes(tenant_id=tenant_id, repo_id=repo_id)
        if check_embedding(n.get("embedding"), EMBEDDING_DIM) is None
    ]
    if not candidates:
        return []

    query_vec = np.asarray(await (embedder or deterministic_embedder)(text), dtype=np.float64)
    matrix = np.asarray([n["embedding"] for n in candidates], dtype=np.float64)
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query_vec)
    dots = matrix @ query_vec
    scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

    order = np.argsort(-scores, kind="stable")[:limit]
    return [SearchHit(node=candidates[i], score=float(scores[i])) for i in order]
