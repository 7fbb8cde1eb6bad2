"""Embedding vectors: the provider signature, a deterministic stand-in, similarity.

Real embedding models live outside this package and are injected as an
``Embedder``. The deterministic embedder hashes text into a stable
pseudo-vector so dev and test runs exercise the same code paths.
"""

from __future__ import annotations

import hashlib
import math
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import numpy as np

from cigraph.config.constants import EMBEDDING_DIM

Embedder = Callable[[str], Awaitable[list[float]]]

_SEED_MAX_CHARS = 10_000
_U32_MAX = 0xFFFFFFFF


def embed_text_deterministic(text: str | None, dim: int = EMBEDDING_DIM) -> list[float]:
    """Stable vector in [-1, 1]^dim derived from the text alone."""
    seed = (text or "")[:_SEED_MAX_CHARS]
    out = np.empty(dim, dtype=np.float64)
    for i in range(dim):
        digest = hashlib.blake2b(f"{seed}:{i}".encode(), digest_size=4).digest()
        out[i] = int.from_bytes(digest, "big") / _U32_MAX
    return (out * 2.0 - 1.0).tolist()


async def deterministic_embedder(text: str) -> list[float]:
    return embed_text_deterministic(text)


def check_embedding(vector: Any, dim: int = EMBEDDING_DIM) -> str | None:
    """Reason a vector is unusable, or None if it is a finite ``dim``-float list."""
    if not isinstance(vector, list) or len(vector) != dim:
        return f"embedding_not_{dim}"
    for x in vector:
        if isinstance(x, bool) or not isinstance(x, int | float) or not math.isfinite(x):
            return "embedding_non_finite"
    return None


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of two equal-length vectors; 0.0 for mismatched or zero vectors."""
    if len(a) != len(b) or len(a) == 0:
        return 0.0
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denom)
