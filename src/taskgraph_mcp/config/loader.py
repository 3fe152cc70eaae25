"""ServerConfig loading and validation logic.

Provides ``_ServerConfigLoader``, a mixin class whose methods are inherited by
``ServerConfig`` (defined in ``server.py``).  Splitting loading/validation
logic into its own module keeps ``server.py`` focused on field definitions and
simple accessor methods.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, cast

if TYPE_CHECKING:
    from taskgraph_mcp.config.server import ServerConfig

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from taskgraph_mcp.config.parsing import (
    _normalize_log_level,
    _try_parse_bool,
    _try_parse_positive_float,
    _try_parse_positive_int,
)

logger = logging.getLogger(__name__)

_ENV_PREFIX = "TASKGRAPH_MCP_"
_CONFIG_FILE_ENV_VAR = "TASKGRAPH_MCP_CONFIG_FILE"

# TOML [dependencies] / [cache] keys -> (attribute, parser)
_DEPENDENCY_KEYS: Dict[str, Callable[[Any], Any]] = {
    "max_dependencies_per_task": _try_parse_positive_int,
    "max_tasks_per_list": _try_parse_positive_int,
    "ready_tasks_default_limit": _try_parse_positive_int,
}
_CACHE_KEYS: Dict[str, tuple] = {
    "enabled": ("graph_cache_enabled", _try_parse_bool),
    "ttl_seconds": ("graph_cache_ttl_seconds", _try_parse_positive_float),
    "max_entries": ("graph_cache_max_entries", _try_parse_positive_int),
}


class _ServerConfigLoader:
    """Mixin providing config-loading methods for ``ServerConfig``.

    These methods are inherited by the ``ServerConfig`` dataclass defined in
    ``server.py``.  At runtime ``self`` is always a ``ServerConfig`` instance.
    """

    if TYPE_CHECKING:
        log_level: str
        structured_logging: bool
        server_name: str
        server_version: str
        max_dependencies_per_task: int
        max_tasks_per_list: int
        ready_tasks_default_limit: int
        graph_cache_enabled: bool
        graph_cache_ttl_seconds: float
        graph_cache_max_entries: int
        startup_warnings: List[str]

        def _add_startup_warning(self, message: str) -> None: ...

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "ServerConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. Explicit config file (argument or TASKGRAPH_MCP_CONFIG_FILE)
        3. Project TOML config (./taskgraph-mcp.toml or ./.taskgraph-mcp.toml)
        4. User TOML config (~/.taskgraph-mcp.toml)
        5. XDG config (~/.config/taskgraph-mcp/config.toml)
        6. Default values
        """
        config = cls()

        toml_path = config_file or os.environ.get(_CONFIG_FILE_ENV_VAR)
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
            xdg_config = Path(xdg_config_home) / "taskgraph-mcp" / "config.toml"
            if xdg_config.exists():
                config._load_toml(xdg_config)
                logger.debug(f"Loaded XDG config from {xdg_config}")

            home_config = Path.home() / ".taskgraph-mcp.toml"
            if home_config.exists():
                config._load_toml(home_config)
                logger.debug(f"Loaded user config from {home_config}")

            project_config = Path("taskgraph-mcp.toml")
            if project_config.exists():
                config._load_toml(project_config)
                logger.debug(f"Loaded project config from {project_config}")
            else:
                hidden_config = Path(".taskgraph-mcp.toml")
                if hidden_config.exists():
                    config._load_toml(hidden_config)
                    logger.debug(f"Loaded project config from {hidden_config}")

        config._load_env()
        return cast("ServerConfig", config)

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.error(f"Error loading config file {path}: {e}")
            self._add_startup_warning(f"Ignoring unreadable config file {path}: {e}")
            return

        source = str(path)

        # Logging settings
        if "logging" in data:
            log = data["logging"]
            if "level" in log:
                self._apply("log_level", log["level"], _normalize_log_level, source, "logging.level")
            if "structured" in log:
                self._apply("structured_logging", log["structured"], _try_parse_bool, source, "logging.structured")

        # Server settings
        if "server" in data:
            srv = data["server"]
            if "name" in srv:
                self.server_name = str(srv["name"])
            if "version" in srv:
                self.server_version = str(srv["version"])

        # Dependency engine limits
        if "dependencies" in data:
            deps = data["dependencies"]
            for key, parser in _DEPENDENCY_KEYS.items():
                if key in deps:
                    self._apply(key, deps[key], parser, source, f"dependencies.{key}")

        # Graph cache settings
        if "cache" in data:
            cache = data["cache"]
            for key, (attr, parser) in _CACHE_KEYS.items():
                if key in cache:
                    self._apply(attr, cache[key], parser, source, f"cache.{key}")

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        env_fields = {
            "LOG_LEVEL": ("log_level", _normalize_log_level),
            "STRUCTURED_LOGGING": ("structured_logging", _try_parse_bool),
            "MAX_DEPENDENCIES_PER_TASK": ("max_dependencies_per_task", _try_parse_positive_int),
            "MAX_TASKS_PER_LIST": ("max_tasks_per_list", _try_parse_positive_int),
            "READY_TASKS_DEFAULT_LIMIT": ("ready_tasks_default_limit", _try_parse_positive_int),
            "GRAPH_CACHE_ENABLED": ("graph_cache_enabled", _try_parse_bool),
            "GRAPH_CACHE_TTL_SECONDS": ("graph_cache_ttl_seconds", _try_parse_positive_float),
            "GRAPH_CACHE_MAX_ENTRIES": ("graph_cache_max_entries", _try_parse_positive_int),
        }

        if name := os.environ.get(f"{_ENV_PREFIX}SERVER_NAME"):
            self.server_name = name

        for suffix, (attr, parser) in env_fields.items():
            env_var = f"{_ENV_PREFIX}{suffix}"
            raw = os.environ.get(env_var)
            if raw:
                self._apply(attr, raw, parser, "environment", env_var)

    def _apply(
        self,
        attr: str,
        raw: Any,
        parser: Callable[[Any], Any],
        source: str,
        key: str,
    ) -> None:
        """Set ``attr`` from ``raw``; keep the current value and warn if it does not parse."""
        parsed = parser(raw)
        if parsed is None:
            message = f"Ignoring invalid value for {key} from {source}: {raw!r}"
            logger.warning(message)
            self._add_startup_warning(message)
            return
        setattr(self, attr, parsed)
