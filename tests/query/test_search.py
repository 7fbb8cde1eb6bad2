"""Tests for text and semantic search."""

import pytest

from cigraph.core.errors import QueryError
from cigraph.graph.embedding import embed_text_deterministic
from cigraph.query import semantic_search, text_search
from cigraph.store.base import GraphStore

A = "py::pkg.a::nosig"
B = "py::pkg.b::nosig"


class TestTextSearch:
    """Substring search on names."""

    @pytest.mark.asyncio
    async def test_given_qualified_name_fragment_when_searched_then_match(
        self, chain: GraphStore, scope: dict[str, str]
    ) -> None:
        hits = await text_search(chain, **scope, query="PKG.B")

        assert [h.node["symbol_uid"] for h in hits] == [B]
        assert hits[0].score == 1.0

    @pytest.mark.asyncio
    async def test_given_limit_when_searched_then_capped(
        self, chain: GraphStore, scope: dict[str, str]
    ) -> None:
        hits = await text_search(chain, **scope, query="pkg", limit=2)

        assert len(hits) == 2

    @pytest.mark.asyncio
    async def test_given_blank_query_when_searched_then_empty(
        self, chain: GraphStore, scope: dict[str, str]
    ) -> None:
        assert await text_search(chain, **scope, query="   ") == []

    @pytest.mark.asyncio
    async def test_given_zero_limit_when_searched_then_query_error(
        self, chain: GraphStore, scope: dict[str, str]
    ) -> None:
        with pytest.raises(QueryError):
            await text_search(chain, **scope, query="pkg", limit=0)


class TestSemanticSearch:
    """Cosine ranking over stored embeddings."""

    @pytest.mark.asyncio
    async def test_given_embedded_nodes_when_searched_then_best_match_first(
        self, store: GraphStore, scope: dict[str, str]
    ) -> None:
        for uid, text in ((A, "parse configuration files"), (B, "send email notifications")):
            await store.upsert_node(
                **scope,
                node={
                    "symbol_uid": uid,
                    "node_type": "Function",
                    "embedding": embed_text_deterministic(text),
                },
            )
        await store.upsert_node(**scope, node={"symbol_uid": "py::x::nosig", "node_type": "Class"})

        hits = await semantic_search(store, **scope, query="send email notifications")

        assert len(hits) == 2
        assert hits[0].node["symbol_uid"] == B
        assert hits[0].score == pytest.approx(1.0)
        assert hits[0].score >= hits[1].score

    @pytest.mark.asyncio
    async def test_given_custom_embedder_when_searched_then_used_for_query(
        self, store: GraphStore, scope: dict[str, str]
    ) -> None:
        vector = [1.0] + [0.0] * 383
        await store.upsert_node(
            **scope, node={"symbol_uid": A, "node_type": "Function", "embedding": vector}
        )
        queries: list[str] = []

        async def embedder(text: str) -> list[float]:
            queries.append(text)
            return vector

        hits = await semantic_search(store, **scope, query="anything", embedder=embedder)

        assert queries == ["anything"]
        assert hits[0].to_dict()["score"] == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_given_no_embeddings_when_searched_then_empty(
        self, chain: GraphStore, scope: dict[str, str]
    ) -> None:
        assert await semantic_search(chain, **scope, query="anything") == []
