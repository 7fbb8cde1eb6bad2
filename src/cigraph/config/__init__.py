"""Config module exports."""

from cigraph.config.loader import CigraphSettings, load_config, resolve_database_path
from cigraph.config.models import (
    CigraphConfig,
    DatabaseConfig,
    EmbeddingsConfig,
    IngestConfig,
    LoggingConfig,
    QueryConfig,
)

__all__ = [
    "load_config",
    "resolve_database_path",
    "CigraphConfig",
    "CigraphSettings",
    "DatabaseConfig",
    "EmbeddingsConfig",
    "IngestConfig",
    "LoggingConfig",
    "QueryConfig",
]
