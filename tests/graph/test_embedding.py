"""Tests for embedding helpers."""

import math

import pytest

from cigraph.config.constants import EMBEDDING_DIM
from cigraph.graph.embedding import (
    check_embedding,
    cosine_similarity,
    deterministic_embedder,
    embed_text_deterministic,
)


class TestDeterministicEmbedding:
    """embed_text_deterministic behavior."""

    def test_given_text_when_embedded_then_dim_and_range(self) -> None:
        vector = embed_text_deterministic("parse config file")

        assert len(vector) == EMBEDDING_DIM
        assert all(-1.0 <= x <= 1.0 for x in vector)

    def test_given_same_text_when_embedded_twice_then_identical(self) -> None:
        assert embed_text_deterministic("abc") == embed_text_deterministic("abc")

    def test_given_different_text_when_embedded_then_differs(self) -> None:
        assert embed_text_deterministic("abc") != embed_text_deterministic("abd")

    def test_given_none_when_embedded_then_matches_empty(self) -> None:
        assert embed_text_deterministic(None) == embed_text_deterministic("")

    @pytest.mark.asyncio
    async def test_given_async_embedder_when_called_then_valid_vector(self) -> None:
        vector = await deterministic_embedder("hello")

        assert check_embedding(vector) is None


class TestCheckEmbedding:
    """check_embedding rules."""

    def test_given_valid_vector_when_checked_then_none(self) -> None:
        assert check_embedding([0.0] * EMBEDDING_DIM) is None

    @pytest.mark.parametrize(
        "vector",
        [[0.0] * (EMBEDDING_DIM - 1), None, tuple([0.0] * EMBEDDING_DIM)],
    )
    def test_given_wrong_shape_when_checked_then_reason(self, vector: object) -> None:
        assert check_embedding(vector) == f"embedding_not_{EMBEDDING_DIM}"

    @pytest.mark.parametrize("bad", [math.nan, math.inf, "0.1", True])
    def test_given_bad_element_when_checked_then_non_finite(self, bad: object) -> None:
        vector: list[object] = [0.0] * EMBEDDING_DIM
        vector[10] = bad

        assert check_embedding(vector) == "embedding_non_finite"


class TestCosineSimilarity:
    """cosine_similarity behavior."""

    def test_given_identical_vectors_when_compared_then_one(self) -> None:
        assert cosine_similarity([1.0, 2.0], [1.0, 2.0]) == pytest.approx(1.0)

    def test_given_orthogonal_vectors_when_compared_then_zero(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    @pytest.mark.parametrize(
        ("a", "b"),
        [([1.0], [1.0, 2.0]), ([], []), ([0.0, 0.0], [1.0, 1.0])],
    )
    def test_given_degenerate_vectors_when_compared_then_zero(
        self, a: list[float], b: list[float]
    ) -> None:
        assert cosine_similarity(a, b) == 0.0
