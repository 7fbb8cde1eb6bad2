"""Core module exports."""

from cigraph.core.errors import (
    CigError,
    ConfigError,
    EmbeddingError,
    ErrorCode,
    IngestError,
    InternalError,
    QueryError,
    StoreError,
)
from cigraph.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "CigError",
    "ConfigError",
    "EmbeddingError",
    "ErrorCode",
    "IngestError",
    "InternalError",
    "QueryError",
    "StoreError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
