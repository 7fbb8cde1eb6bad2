"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
These are wire-format constraints and traversal bounds that callers rely on.

For configurable values, see models.py (IngestConfig, QueryConfig, etc.).
"""

# =============================================================================
# Embeddings
# =============================================================================

EMBEDDING_DIM = 384
"""Vector length produced by every embedding provider."""

EMBEDDING_INPUT_MAX_CHARS = 20_000
"""Text beyond this is cut before it is sent to a provider."""

# =============================================================================
# Sanitization
# =============================================================================

REDACTED_CODE_LIKE = "[REDACTED_CODE_LIKE]"
"""Sentinel stored in place of any code-like text."""

SANITIZE_MAX_DEPTH = 6
"""Deepest nesting level walked by deep redaction; deeper values become None."""

SANITIZE_MAX_ITEMS = 200
"""Maximum list elements / dict keys kept per nesting level."""

# =============================================================================
# Traversal bounds
# =============================================================================

BLAST_RADIUS_MAX_DEPTH = 5
"""Maximum hops for blast radius queries."""

FLOW_MAX_DEPTH = 10
"""Maximum depth for flow traces and materialized flow graphs."""

IMPACT_IMPORTER_MAX_DEPTH = 3
"""Reverse-importer hops walked by impact computation."""

IMPACT_MAX_FILES = 5000
"""Cap on files collected during reverse-importer expansion."""

# =============================================================================
# Key formats
# =============================================================================

KEY_SEPARATOR = "::"
"""Separator used in composite keys (edge keys, flow graph keys, symbol uids)."""
