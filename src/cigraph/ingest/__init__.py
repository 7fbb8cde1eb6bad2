"""NDJSON ingestion: parsing, enrichment, batching."""

from cigraph.ingest.parse import parse_ndjson_stream, parse_ndjson_text, parse_record
from cigraph.ingest.pipeline import IngestResult, Ingestor, ingest, ingest_stream
from cigraph.ingest.pool import EmbeddingPool
from cigraph.ingest.providers import HttpEmbedder, create_embedder

__all__ = [
    "EmbeddingPool",
    "HttpEmbedder",
    "IngestResult",
    "Ingestor",
    "create_embedder",
    "ingest",
    "ingest_stream",
    "parse_ndjson_stream",
    "parse_ndjson_text",
    "parse_record",
]
