"""Ingestion pipeline: NDJSON records in, Graph Store writes out.

Per record, in input order:

- ``node``: sanitize, validate, queue embedding enrichment if requested
- ``edge`` / ``edge_occurrence``: sanitize, validate
- everything else known: pass through
- unrecognized types: counted and skipped

Records are buffered into batches. Before a batch is written, every
enrichment queued for it has completed, so a node is never persisted ahead of
its own embedding. A malformed or invalid record aborts the call; batches
already flushed stay written.
"""

from __future__ import annotations

import inspect
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import structlog

from cigraph.config.loader import load_config
from cigraph.config.models import CigraphConfig
from cigraph.core.errors import IngestError
from cigraph.deps.mismatches import recompute_dependency_mismatches
from cigraph.graph.embedding import Embedder
from cigraph.graph.records import IngestRecord, ParsedRecord, RecordKind, UnrecognizedRecord
from cigraph.graph.sanitize import DEFAULT_MAX_LEN, sanitize_edge, sanitize_node
from cigraph.graph.validate import (
    ValidationResult,
    validate_edge,
    validate_edge_occurrence,
    validate_node,
)
from cigraph.ingest.parse import StreamSource, parse_ndjson_stream, parse_ndjson_text
from cigraph.ingest.pool import EmbeddingPool, needs_embedding
from cigraph.ingest.providers import create_embedder
from cigraph.store.base import BulkIngestStore, GraphStore, write_record

log = structlog.get_logger()

RecordObserver = Callable[[ParsedRecord], Awaitable[None] | None]


@dataclass
class IngestResult:
    """Summary of one ingest call."""

    records: int = 0
    counts: dict[str, int] = field(default_factory=dict)
    unknown: int = 0
    flushes: int = 0
    embedded: int = 0
    dependency_signals: bool = False
    mismatches: int | None = None
    duration_ms: int = 0

    def count(self, kind: RecordKind) -> None:
        self.counts[kind.value] = self.counts.get(kind.value, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "records": self.records,
            "counts": dict(self.counts),
            "unknown": self.unknown,
            "flushes": self.flushes,
            "embedded": self.embedded,
            "dependency_signals": self.dependency_signals,
            "mismatches": self.mismatches,
            "duration_ms": self.duration_ms,
        }


async def _iterate(records: Iterable[ParsedRecord]) -> AsyncIterator[ParsedRecord]:
    for record in records:
        yield record


async def _notify(observer: RecordObserver | None, record: ParsedRecord) -> None:
    if observer is None:
        return
    result = observer(record)
    if inspect.isawaitable(result):
        await result


def _raise_if_invalid(kind: RecordKind, result: ValidationResult, line: int | None) -> None:
    if not result.ok:
        raise IngestError.invalid(kind.value, result.reason.value, line)  # type: ignore[union-attr]


class Ingestor:
    """Applies NDJSON record streams to a Graph Store.

    Args:
        embedder: Async text-to-vector function; None disables enrichment.
        batch_size: Records per flush.
        embed_concurrency: Max simultaneous embedder calls.
        max_text_len: Cap applied to persisted text fields.
    """

    def __init__(
        self,
        embedder: Embedder | None = None,
        *,
        batch_size: int = 500,
        embed_concurrency: int = 4,
        max_text_len: int = DEFAULT_MAX_LEN,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if embed_concurrency < 1:
            raise ValueError("embed_concurrency must be >= 1")
        self.embedder = embedder
        self.batch_size = batch_size
        self.embed_concurrency = embed_concurrency
        self.max_text_len = max_text_len

    @classmethod
    def from_config(
        cls, config: CigraphConfig, embedder: Embedder | None = None
    ) -> Ingestor:
        """Build from config; the embedder defaults to the configured provider."""
        if embedder is None:
            embedder = create_embedder(config.embeddings)
        return cls(
            embedder,
            batch_size=config.ingest.batch_size,
            embed_concurrency=config.ingest.embed_concurrency,
            max_text_len=config.ingest.max_text_len,
        )

    async def aclose(self) -> None:
        """Release the embedder's resources, if it holds any."""
        close = getattr(self.embedder, "aclose", None)
        if close is not None:
            await close()

    async def ingest(
        self,
        tenant_id: str,
        repo_id: str,
        text: str,
        store: GraphStore,
        on_record: RecordObserver | None = None,
    ) -> IngestResult:
        """Ingest a complete NDJSON blob."""
        return await self._run(
            tenant_id, repo_id, _iterate(parse_ndjson_text(text)), store, on_record
        )

    async def ingest_stream(
        self,
        tenant_id: str,
        repo_id: str,
        source: StreamSource,
        store: GraphStore,
        on_record: RecordObserver | None = None,
    ) -> IngestResult:
        """Ingest NDJSON from an incremental source of str or bytes chunks."""
        return await self._run(tenant_id, repo_id, parse_ndjson_stream(source), store, on_record)

    def _prepare(self, record: IngestRecord, pool: EmbeddingPool | None) -> IngestRecord:
        kind, data = record.kind, record.data
        if kind is RecordKind.NODE:
            data = sanitize_node(data, self.max_text_len)
            _raise_if_invalid(kind, validate_node(data), record.line)
            if pool is not None and needs_embedding(data):
                pool.submit(data)
        elif kind is RecordKind.EDGE:
            data = sanitize_edge(data, self.max_text_len)
            _raise_if_invalid(kind, validate_edge(data), record.line)
        elif kind is RecordKind.EDGE_OCCURRENCE:
            data = sanitize_edge(data, self.max_text_len)
            _raise_if_invalid(kind, validate_edge_occurrence(data), record.line)
        return IngestRecord(kind=kind, data=data, line=record.line)

    async def _flush(
        self,
        store: GraphStore,
        tenant_id: str,
        repo_id: str,
        batch: list[IngestRecord],
        pool: EmbeddingPool | None,
        result: IngestResult,
    ) -> None:
        if pool is not None:
            result.embedded += await pool.drain()
        if isinstance(store, BulkIngestStore):
            await store.ingest_records(tenant_id=tenant_id, repo_id=repo_id, records=batch)
        else:
            for record in batch:
                await write_record(store, tenant_id=tenant_id, repo_id=repo_id, record=record)
        result.flushes += 1
        log.debug(
            "ingest_flush",
            tenant_id=tenant_id,
            repo_id=repo_id,
            records=len(batch),
            flush=result.flushes,
        )

    async def _run(
        self,
        tenant_id: str,
        repo_id: str,
        records: AsyncIterator[ParsedRecord],
        store: GraphStore,
        on_record: RecordObserver | None,
    ) -> IngestResult:
        start = time.monotonic()
        result = IngestResult()
        pool = (
            EmbeddingPool(self.embedder, self.embed_concurrency)
            if self.embedder is not None
            else None
        )
        batch: list[IngestRecord] = []
        log.info("ingest_started", tenant_id=tenant_id, repo_id=repo_id, batch_size=self.batch_size)

        try:
            async for parsed in records:
                result.records += 1
                await _notify(on_record, parsed)
                if isinstance(parsed, UnrecognizedRecord):
                    result.unknown += 1
                    log.debug("ingest_unknown_record", type=parsed.type, line=parsed.line)
                    continue

                batch.append(self._prepare(parsed, pool))
                result.count(parsed.kind)
                if parsed.kind.is_dependency_fact:
                    result.dependency_signals = True
                if len(batch) >= self.batch_size:
                    await self._flush(store, tenant_id, repo_id, batch, pool, result)
                    batch = []

            if batch:
                await self._flush(store, tenant_id, repo_id, batch, pool, result)

            if result.dependency_signals:
                mismatches = await recompute_dependency_mismatches(
                    store, tenant_id=tenant_id, repo_id=repo_id
                )
                result.mismatches = len(mismatches)
        except Exception as e:
            if pool is not None:
                await pool.cancel()
            log.warning(
                "ingest_failed",
                tenant_id=tenant_id,
                repo_id=repo_id,
                records=result.records,
                flushes=result.flushes,
                error=str(e),
            )
            raise

        result.duration_ms = int((time.monotonic() - start) * 1000)
        log.info(
            "ingest_completed",
            tenant_id=tenant_id,
            repo_id=repo_id,
            records=result.records,
            unknown=result.unknown,
            flushes=result.flushes,
            embedded=result.embedded,
            mismatches=result.mismatches,
            duration_ms=result.duration_ms,
        )
        return result


async def ingest(
    tenant_id: str,
    repo_id: str,
    text: str,
    store: GraphStore,
    on_record: RecordObserver | None = None,
    *,
    config: CigraphConfig | None = None,
) -> IngestResult:
    """Bulk ingest with an ``Ingestor`` built from configuration."""
    ingestor = Ingestor.from_config(config or load_config())
    try:
        return await ingestor.ingest(tenant_id, repo_id, text, store, on_record)
    finally:
        await ingestor.aclose()


async def ingest_stream(
    tenant_id: str,
    repo_id: str,
    source: StreamSource,
    store: GraphStore,
    on_record: RecordObserver | None = None,
    *,
    config: CigraphConfig | None = None,
) -> IngestResult:
    """Streaming ingest with an ``Ingestor`` built from configuration."""
    ingestor = Ingestor.from_config(config or load_config())
    try:
        return await ingestor.ingest_stream(tenant_id, repo_id, source, store, on_record)
    finally:
        await ingestor.aclose()
