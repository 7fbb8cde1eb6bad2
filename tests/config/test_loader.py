"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence and validation
- resolve_database_path() function
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from cigraph.config.loader import (
    GLOBAL_CONFIG_PATH,
    _deep_merge,
    _load_yaml,
    load_config,
    resolve_database_path,
)
from cigraph.config.models import IngestConfig
from cigraph.core.errors import ConfigError


def _write_repo_config(root: Path, text: str) -> None:
    config_dir = root / ".cigraph"
    config_dir.mkdir(exist_ok=True)
    (config_dir / "config.yaml").write_text(text)


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        """Returns empty dict when file doesn't exist."""
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        """Loads valid YAML content."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("ingest:\n  batch_size: 50\n")

        assert _load_yaml(yaml_file) == {"ingest": {"batch_size": 50}}

    def test_returns_empty_for_yaml_null(self, tmp_path: Path) -> None:
        """Returns empty dict for YAML containing null."""
        yaml_file = tmp_path / "null.yaml"
        yaml_file.write_text("null\n")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid YAML syntax."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("logging:\n  level:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        """A top-level list is not a config."""
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_nested_merge(self) -> None:
        """Nested dicts are merged recursively."""
        base = {"ingest": {"batch_size": 10, "embed_concurrency": 2}}
        override = {"ingest": {"batch_size": 20}}

        assert _deep_merge(base, override) == {"ingest": {"batch_size": 20, "embed_concurrency": 2}}

    def test_override_replaces_non_dict(self) -> None:
        """Non-dict override replaces dict base."""
        base: dict[str, Any] = {"a": {"nested": 1}}
        override: dict[str, Any] = {"a": "simple"}

        assert _deep_merge(base, override) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        """Base dict is not mutated."""
        base = {"a": 1}
        _deep_merge(base, {"b": 2})

        assert base == {"a": 1}


class TestLoadConfig:
    """Tests for load_config function."""

    def test_returns_defaults_when_no_files(self, tmp_path: Path) -> None:
        """Defaults apply when no config files exist."""
        with patch("cigraph.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)

        assert config.ingest.batch_size == 500
        assert config.ingest.embed_concurrency == 4
        assert config.embeddings.mode == "deterministic"
        assert config.query.neighborhood_limit_edges == 200

    def test_loads_repo_config(self, tmp_path: Path) -> None:
        """Loads config from repo .cigraph directory."""
        _write_repo_config(tmp_path, "ingest:\n  batch_size: 25\n")

        with patch("cigraph.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)

        assert config.ingest.batch_size == 25

    def test_repo_config_overrides_global(self, tmp_path: Path) -> None:
        """Repo YAML wins over global YAML key by key."""
        global_file = tmp_path / "global.yaml"
        global_file.write_text("ingest:\n  batch_size: 7\n  embed_concurrency: 9\n")
        _write_repo_config(tmp_path, "ingest:\n  batch_size: 8\n")

        with patch("cigraph.config.loader.GLOBAL_CONFIG_PATH", global_file):
            config = load_config(tmp_path)

        assert config.ingest.batch_size == 8
        assert config.ingest.embed_concurrency == 9

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        """Environment variables override YAML config."""
        _write_repo_config(tmp_path, "ingest:\n  embed_concurrency: 2\n")

        with (
            patch("cigraph.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            patch.dict(os.environ, {"CIGRAPH__INGEST__EMBED_CONCURRENCY": "6"}),
        ):
            config = load_config(tmp_path)

        assert config.ingest.embed_concurrency == 6

    def test_kwargs_override_all(self, tmp_path: Path) -> None:
        """Keyword arguments override everything."""
        with (
            patch("cigraph.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            patch.dict(os.environ, {"CIGRAPH__INGEST__BATCH_SIZE": "99"}),
        ):
            config = load_config(tmp_path, ingest=IngestConfig(batch_size=3))

        assert config.ingest.batch_size == 3

    @pytest.mark.parametrize(
        "yaml_text",
        [
            "ingest:\n  batch_size: 0\n",
            "embeddings:\n  mode: http\n",
            "embeddings:\n  mode: quantum\n",
            "query:\n  blast_radius_depth: 9\n",
        ],
    )
    def test_raises_config_error_for_invalid_value(self, tmp_path: Path, yaml_text: str) -> None:
        """Invalid values surface as ConfigError."""
        _write_repo_config(tmp_path, yaml_text)

        with (
            patch("cigraph.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            pytest.raises(ConfigError),
        ):
            load_config(tmp_path)


class TestResolveDatabasePath:
    """Tests for resolve_database_path function."""

    def test_relative_path_resolves_against_repo_root(self, tmp_path: Path) -> None:
        with patch("cigraph.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)

        assert resolve_database_path(config, tmp_path) == tmp_path / ".cigraph" / "graph.db"

    def test_absolute_path_kept(self, tmp_path: Path) -> None:
        target = tmp_path / "elsewhere" / "g.db"
        _write_repo_config(tmp_path, f"database:\n  path: {target}\n")

        with patch("cigraph.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)

        assert resolve_database_path(config, tmp_path / "other") == target


class TestGlobalConfigPath:
    """Tests for GLOBAL_CONFIG_PATH constant."""

    def test_is_in_user_config(self) -> None:
        """Path is in the user config directory."""
        assert isinstance(GLOBAL_CONFIG_PATH, Path)
        assert "cigraph" in str(GLOBAL_CONFIG_PATH)
