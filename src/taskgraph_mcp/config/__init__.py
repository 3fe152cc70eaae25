"""Configuration package for taskgraph-mcp.

Callers use ``from taskgraph_mcp.config import ServerConfig`` etc.

Sub-modules:
    parsing    – Boolean/number/log-level parsing helpers
    server     – ServerConfig dataclass, get_config/set_config globals
    loader     – ServerConfig loading mixin (_ServerConfigLoader)
    decorators – traced
"""

from taskgraph_mcp.config.server import (  # noqa: F401
    _PACKAGE_VERSION,
    ServerConfig,
    get_config,
    set_config,
)
from taskgraph_mcp.config.decorators import traced  # noqa: F401
