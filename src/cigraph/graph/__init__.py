"""Graph domain: record kinds, identity, validation, sanitization, embeddings."""

from cigraph.graph.embedding import (
    Embedder,
    cosine_similarity,
    deterministic_embedder,
    embed_text_deterministic,
)
from cigraph.graph.identity import compute_contract_hash, compute_signature_hash, make_symbol_uid
from cigraph.graph.records import (
    Direction,
    IngestRecord,
    MismatchType,
    ParsedRecord,
    Record,
    RecordKind,
    UnrecognizedRecord,
    make_edge_key,
)
from cigraph.graph.sanitize import (
    is_redacted,
    sanitize_deep,
    sanitize_edge,
    sanitize_node,
    sanitize_string,
)
from cigraph.graph.validate import (
    ValidationReason,
    ValidationResult,
    validate_edge,
    validate_edge_occurrence,
    validate_node,
)

__all__ = [
    # Records
    "Direction",
    "IngestRecord",
    "MismatchType",
    "ParsedRecord",
    "Record",
    "RecordKind",
    "UnrecognizedRecord",
    "make_edge_key",
    # Identity
    "compute_contract_hash",
    "compute_signature_hash",
    "make_symbol_uid",
    # Validation
    "ValidationReason",
    "ValidationResult",
    "validate_edge",
    "validate_edge_occurrence",
    "validate_node",
    # Sanitization
    "is_redacted",
    "sanitize_deep",
    "sanitize_edge",
    "sanitize_node",
    "sanitize_string",
    # Embeddings
    "Embedder",
    "cosine_similarity",
    "deterministic_embedder",
    "embed_text_deterministic",
]
