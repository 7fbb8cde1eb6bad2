"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CIGRAPH__SECTION__KEY)
3. Repo YAML (.cigraph/config.yaml)
4. Global YAML (~/.config/cigraph/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CIGRAPH__<SECTION>__<KEY>=<VALUE>

Examples:
    CIGRAPH__LOGGING__LEVEL=DEBUG
    CIGRAPH__INGEST__BATCH_SIZE=1000
    CIGRAPH__INGEST__EMBED_CONCURRENCY=8
    CIGRAPH__EMBEDDINGS__MODE=http
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from cigraph.config.constants import BLAST_RADIUS_MAX_DEPTH, FLOW_MAX_DEPTH

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
EmbeddingsMode = Literal["none", "deterministic", "http"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CIGRAPH__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every flushed batch.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class IngestConfig(BaseModel):
    """Ingestion pipeline configuration.

    Env vars:
        CIGRAPH__INGEST__BATCH_SIZE: Records per bulk write
        CIGRAPH__INGEST__EMBED_CONCURRENCY: Max in-flight embedding calls
        CIGRAPH__INGEST__MAX_TEXT_LEN: Cap for persisted text fields
    """

    batch_size: int = Field(
        default=500,
        description="Records buffered per flush. Larger batches mean fewer store round-trips "
        "but more records lost from view if a later record fails validation.",
    )
    embed_concurrency: int = Field(
        default=4,
        description="Maximum simultaneous embedding calls during one ingest.",
    )
    max_text_len: int = Field(
        default=2000,
        description="Persisted text fields are cut to this many characters.",
    )

    @field_validator("batch_size", "embed_concurrency", "max_text_len")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Must be >= 1, got {v}")
        return v


class EmbeddingsConfig(BaseModel):
    """Embedding provider configuration.

    Env vars:
        CIGRAPH__EMBEDDINGS__MODE: none, deterministic, or http
        CIGRAPH__EMBEDDINGS__HTTP_URL: Endpoint for http mode
        CIGRAPH__EMBEDDINGS__HTTP_TOKEN: Bearer token for http mode
        CIGRAPH__EMBEDDINGS__REQUIRED: Refuse to run without a real provider
    """

    mode: EmbeddingsMode = Field(
        default="deterministic",
        description="deterministic hashes text into a stable pseudo-vector (dev/test only).",
    )
    required: bool = Field(
        default=False,
        description="Fail startup unless a real (http) provider is configured.",
    )
    http_url: str | None = None
    http_token: str | None = None
    max_attempts: int = Field(default=4, ge=1, le=10)
    retry_base_ms: int = Field(default=250, ge=50, le=20_000)
    retry_max_ms: int = Field(default=5_000, ge=100, le=120_000)
    timeout_ms: int = Field(default=15_000, ge=1_000, le=120_000)

    @model_validator(mode="after")
    def validate_http(self) -> "EmbeddingsConfig":
        if self.mode == "http" and not self.http_url:
            raise ValueError("http_url is required when mode is 'http'")
        return self


class QueryConfig(BaseModel):
    """Query engine defaults.

    Env vars:
        CIGRAPH__QUERY__BLAST_RADIUS_DEPTH: Default blast radius depth
        CIGRAPH__QUERY__FLOW_DEPTH: Default flow trace depth
        CIGRAPH__QUERY__NEIGHBORHOOD_LIMIT_EDGES: Default neighborhood edge cap
    """

    blast_radius_depth: int = Field(default=1, ge=0, le=BLAST_RADIUS_MAX_DEPTH)
    flow_depth: int = Field(default=2, ge=0, le=FLOW_MAX_DEPTH)
    flow_graph_depth: int = Field(default=3, ge=0, le=FLOW_MAX_DEPTH)
    neighborhood_limit_edges: int = Field(default=200, ge=1)
    search_limit: int = Field(default=10, ge=1, le=100)


class DatabaseConfig(BaseModel):
    """Relational store configuration.

    Env vars:
        CIGRAPH__DATABASE__PATH: SQLite database file
        CIGRAPH__DATABASE__BUSY_TIMEOUT_MS: SQLite busy timeout
    """

    path: str = Field(
        default=".cigraph/graph.db",
        description="SQLite file for SqlGraphStore. Relative paths resolve against the repo root.",
    )
    busy_timeout_ms: int = Field(default=30_000, ge=0)
    max_retries: int = Field(default=3, ge=0)


class CigraphConfig(BaseModel):
    """Root configuration model (for type hints)."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    ingest: IngestConfig = Field(default_factory=IngestConfig)
    embeddings: EmbeddingsConfig = Field(default_factory=EmbeddingsConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
