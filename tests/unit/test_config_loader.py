"""Tests for ServerConfig defaults, TOML layering and environment overrides."""

import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from taskgraph_mcp.config import ServerConfig, get_config, set_config
from taskgraph_mcp.config.parsing import (
    _normalize_log_level,
    _try_parse_bool,
    _try_parse_positive_float,
    _try_parse_positive_int,
)


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Run from an empty project dir with an empty home and no env overrides."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    monkeypatch.chdir(project_dir)
    with patch.object(Path, "home", return_value=home_dir):
        with patch.dict(os.environ, {}, clear=True):
            yield home_dir, project_dir


class TestDefaults:
    """Tests for ServerConfig defaults."""

    def test_defaults(self):
        config = ServerConfig()
        assert config.log_level == "INFO"
        assert config.structured_logging is True
        assert config.server_name == "taskgraph-mcp"
        assert config.max_dependencies_per_task == 50
        assert config.max_tasks_per_list == 1000
        assert config.ready_tasks_default_limit == 10
        assert config.graph_cache_enabled is True
        assert config.graph_cache_ttl_seconds == 60.0
        assert config.graph_cache_max_entries == 20
        assert config.startup_warnings == []

    def test_from_env_without_any_source(self, isolated_home):
        config = ServerConfig.from_env()
        assert config.log_level == "INFO"
        assert config.startup_warnings == []


class TestTomlLoading:
    """Tests for TOML config files."""

    def test_all_sections(self, isolated_home):
        _, project_dir = isolated_home
        (project_dir / "taskgraph-mcp.toml").write_text(
            """
[logging]
level = "debug"
structured = false

[server]
name = "planner"

[dependencies]
max_dependencies_per_task = 5
max_tasks_per_list = 200
ready_tasks_default_limit = 3

[cache]
enabled = false
ttl_seconds = 2.5
max_entries = 4
"""
        )
        config = ServerConfig.from_env()
        assert config.log_level == "DEBUG"
        assert config.structured_logging is False
        assert config.server_name == "planner"
        assert config.max_dependencies_per_task == 5
        assert config.max_tasks_per_list == 200
        assert config.ready_tasks_default_limit == 3
        assert config.graph_cache_enabled is False
        assert config.graph_cache_ttl_seconds == 2.5
        assert config.graph_cache_max_entries == 4

    def test_project_overrides_home_and_xdg(self, isolated_home):
        home_dir, project_dir = isolated_home
        xdg_dir = home_dir / ".config" / "taskgraph-mcp"
        xdg_dir.mkdir(parents=True)
        (xdg_dir / "config.toml").write_text('[server]\nname = "xdg"\n[dependencies]\nmax_tasks_per_list = 7\n')
        (home_dir / ".taskgraph-mcp.toml").write_text('[server]\nname = "home"\n')
        (project_dir / ".taskgraph-mcp.toml").write_text('[logging]\nlevel = "ERROR"\n')

        config = ServerConfig.from_env()
        assert config.server_name == "home"
        assert config.max_tasks_per_list == 7
        assert config.log_level == "ERROR"

    def test_explicit_config_file_env_var(self, isolated_home, tmp_path):
        explicit = tmp_path / "custom.toml"
        explicit.write_text("[dependencies]\nmax_dependencies_per_task = 9\n")
        os.environ["TASKGRAPH_MCP_CONFIG_FILE"] = str(explicit)

        config = ServerConfig.from_env()
        assert config.max_dependencies_per_task == 9

    def test_explicit_missing_file_keeps_defaults(self, isolated_home, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            config = ServerConfig.from_env(config_file=str(tmp_path / "missing.toml"))
        assert config.max_dependencies_per_task == 50
        assert "Config file not found" in caplog.text

    def test_malformed_toml_is_a_startup_warning(self, isolated_home):
        _, project_dir = isolated_home
        (project_dir / "taskgraph-mcp.toml").write_text("[dependencies\nbroken")
        config = ServerConfig.from_env()
        assert len(config.startup_warnings) == 1
        assert "Ignoring unreadable config file" in config.startup_warnings[0]

    def test_invalid_value_keeps_default(self, isolated_home):
        _, project_dir = isolated_home
        (project_dir / "taskgraph-mcp.toml").write_text("[cache]\nmax_entries = 0\n")
        config = ServerConfig.from_env()
        assert config.graph_cache_max_entries == 20
        assert config.startup_warnings == [
            f"Ignoring invalid value for cache.max_entries from {Path('taskgraph-mcp.toml')}: 0"
        ]


class TestEnvOverrides:
    """Tests for TASKGRAPH_MCP_* environment variables."""

    def test_env_overrides_toml(self, isolated_home):
        _, project_dir = isolated_home
        (project_dir / "taskgraph-mcp.toml").write_text("[dependencies]\nready_tasks_default_limit = 3\n")
        os.environ["TASKGRAPH_MCP_READY_TASKS_DEFAULT_LIMIT"] = "25"
        os.environ["TASKGRAPH_MCP_LOG_LEVEL"] = "warning"
        os.environ["TASKGRAPH_MCP_GRAPH_CACHE_ENABLED"] = "off"
        os.environ["TASKGRAPH_MCP_SERVER_NAME"] = "from-env"

        config = ServerConfig.from_env()
        assert config.ready_tasks_default_limit == 25
        assert config.log_level == "WARNING"
        assert config.graph_cache_enabled is False
        assert config.server_name == "from-env"

    def test_invalid_env_value_is_recorded(self, isolated_home, caplog):
        os.environ["TASKGRAPH_MCP_MAX_TASKS_PER_LIST"] = "lots"
        with caplog.at_level(logging.WARNING):
            config = ServerConfig.from_env()
        assert config.max_tasks_per_list == 1000
        assert config.startup_warnings == [
            "Ignoring invalid value for TASKGRAPH_MCP_MAX_TASKS_PER_LIST from environment: 'lots'"
        ]
        assert "TASKGRAPH_MCP_MAX_TASKS_PER_LIST" in caplog.text


class TestParsingHelpers:
    """Tests for config value parsers."""

    @pytest.mark.parametrize("raw,expected", [("yes", True), ("0", False), (True, True), ("maybe", None)])
    def test_bool(self, raw, expected):
        assert _try_parse_bool(raw) is expected

    @pytest.mark.parametrize("raw,expected", [("3", 3), (7, 7), ("0", None), ("-1", None), ("x", None), (True, None)])
    def test_positive_int(self, raw, expected):
        assert _try_parse_positive_int(raw) == expected

    @pytest.mark.parametrize("raw,expected", [("0.5", 0.5), (2, 2.0), ("0", None), ("nan?", None)])
    def test_positive_float(self, raw, expected):
        assert _try_parse_positive_float(raw) == expected

    def test_log_level(self):
        assert _normalize_log_level(" debug ") == "DEBUG"
        assert _normalize_log_level("verbose") is None


def test_get_config_returns_set_instance():
    config = ServerConfig(server_name="custom")
    set_config(config)
    try:
        assert get_config() is config
    finally:
        set_config(None)


def test_setup_logging_sets_package_level():
    config = ServerConfig(log_level="DEBUG", structured_logging=False)
    logger = logging.getLogger("taskgraph_mcp")
    original_handlers = list(logger.handlers)
    original_level = logger.level
    try:
        config.setup_logging()
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == len(original_handlers) + 1
    finally:
        logger.handlers = original_handlers
        logger.setLevel(original_level)


def test_setup_logging_replaces_its_own_handler():
    logger = logging.getLogger("taskgraph_mcp")
    original_handlers = list(logger.handlers)
    original_level = logger.level
    try:
        ServerConfig(structured_logging=True).setup_logging()
        ServerConfig(structured_logging=False).setup_logging()
        assert len(logger.handlers) == len(original_handlers) + 1
        assert "%(levelname)s - %(message)s" in logger.handlers[-1].formatter._fmt
    finally:
        logger.handlers = original_handlers
        logger.setLevel(original_level)
