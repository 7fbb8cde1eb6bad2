"""Bounded-concurrency embedding enrichment.

Every submitted node gets its own task, but at most ``concurrency`` embedder
calls are in flight at once; the rest wait on a semaphore, which admits
waiters in submission order.
"""

from __future__ import annotations

import asyncio

import structlog

from cigraph.core.errors import EmbeddingError
from cigraph.graph.embedding import Embedder, check_embedding
from cigraph.graph.records import Record

log = structlog.get_logger()


def needs_embedding(node: Record) -> bool:
    """True iff the node has no embedding yet but has text to embed."""
    text = node.get("embedding_text")
    return node.get("embedding") is None and isinstance(text, str) and len(text) > 0


class EmbeddingPool:
    """Enriches node records in place with a 384-float ``embedding``."""

    def __init__(self, embedder: Embedder, concurrency: int = 4) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._embedder = embedder
        self._semaphore = asyncio.Semaphore(concurrency)
        self._pending: list[asyncio.Task[None]] = []
        self._in_flight = 0
        self.peak_in_flight = 0
        self.completed = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, node: Record) -> asyncio.Task[None]:
        """Schedule enrichment of ``node``; the node dict is mutated on success."""
        task = asyncio.create_task(self._enrich(node))
        self._pending.append(task)
        return task

    async def _enrich(self, node: Record) -> None:
        async with self._semaphore:
            self._in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self._in_flight)
            try:
                vector = await self._embedder(node["embedding_text"])
            except Exception:
                log.warning(
                    "embedding_failed",
                    symbol_uid=node.get("symbol_uid"),
                    exc_info=True,
                )
                raise
            finally:
                self._in_flight -= 1
        reason = check_embedding(vector)
        if reason is not None:
            raise EmbeddingError.bad_response(reason)
        node["embedding"] = list(vector)
        self.completed += 1

    async def cancel(self) -> None:
        """Abandon every task not yet drained and wait for them to settle.

        Outcomes, failures included, are collected and discarded.
        """
        pending, self._pending = self._pending, []
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    async def drain(self) -> int:
        """Wait for every submitted task; re-raise the first failure.

        Returns the number of tasks drained.
        """
        pending, self._pending = self._pending, []
        if not pending:
            return 0
        results = await asyncio.gather(*pending, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return len(pending)
