"""cigraph error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Ingest
- 4xxx: Query
- 5xxx: Store
- 6xxx: Embedding
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Ingest (3xxx)
    INGEST_MALFORMED_RECORD = 3001
    INGEST_INVALID_RECORD = 3002

    # Query (4xxx)
    QUERY_INVALID_ARGUMENT = 4001
    QUERY_NOT_FOUND = 4002

    # Store (5xxx)
    STORE_CONTRACT_VIOLATION = 5001

    # Embedding (6xxx)
    EMBEDDING_NOT_CONFIGURED = 6001
    EMBEDDING_HTTP_ERROR = 6002
    EMBEDDING_BAD_RESPONSE = 6003

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class CigError(Exception):
    """Base error with structured context for API responses."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'INGEST_INVALID_RECORD')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CigError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class IngestError(CigError):
    """Fatal problems with an ingest call's input.

    ``details["reason"]`` always carries a machine-readable reason code.
    """

    @classmethod
    def malformed(cls, reason: str, line: int | None = None) -> "IngestError":
        where = f" (line {line})" if line is not None else ""
        return cls(
            code=ErrorCode.INGEST_MALFORMED_RECORD,
            message=f"Malformed record{where}: {reason}",
            details={"reason": reason, "line": line},
        )

    @classmethod
    def invalid(cls, kind: str, reason: str, line: int | None = None) -> "IngestError":
        return cls(
            code=ErrorCode.INGEST_INVALID_RECORD,
            message=f"invalid_{kind}:{reason}",
            details={"kind": kind, "reason": reason, "line": line},
        )


class QueryError(CigError):
    """Bad query arguments, raised before any store access."""

    @classmethod
    def invalid_argument(cls, name: str, value: Any, reason: str) -> "QueryError":
        return cls(
            code=ErrorCode.QUERY_INVALID_ARGUMENT,
            message=f"Invalid argument '{name}': {reason}",
            details={"argument": name, "value": repr(value), "reason": reason},
        )

    @classmethod
    def not_found(cls, what: str, key: str) -> "QueryError":
        return cls(
            code=ErrorCode.QUERY_NOT_FOUND,
            message=f"{what} not found: {key}",
            details={"what": what, "key": key},
        )


class StoreError(CigError):
    """Graph Store contract violations (missing key fields and the like)."""

    @classmethod
    def contract_violation(cls, entity: str, reason: str) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_CONTRACT_VIOLATION,
            message=f"{entity}: {reason}",
            details={"entity": entity, "reason": reason},
        )


class EmbeddingError(CigError):
    """Embedding provider errors."""

    @classmethod
    def not_configured(cls, reason: str) -> "EmbeddingError":
        return cls(
            code=ErrorCode.EMBEDDING_NOT_CONFIGURED,
            message=f"Embeddings not configured: {reason}",
            details={"reason": reason},
        )

    @classmethod
    def http_error(cls, status: int, reason: str) -> "EmbeddingError":
        return cls(
            code=ErrorCode.EMBEDDING_HTTP_ERROR,
            message=f"Embedding request failed ({status}): {reason}",
            retryable=status in (408, 409, 425, 429) or 500 <= status <= 599,
            details={"status": status, "reason": reason},
        )

    @classmethod
    def bad_response(cls, reason: str) -> "EmbeddingError":
        return cls(
            code=ErrorCode.EMBEDDING_BAD_RESPONSE,
            message=f"Embedding response rejected: {reason}",
            details={"reason": reason},
        )


class InternalError(CigError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
