"""
FastMCP server factory for taskgraph-mcp.

The server owns no task persistence: callers pass a ``TaskStore`` and the
registered tools read and write through it.
"""

import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

from taskgraph_mcp.config import ServerConfig, get_config
from taskgraph_mcp.core.dependencies.cache import GraphCache, TTLGraphCache
from taskgraph_mcp.core.store import TaskStore
from taskgraph_mcp.tools import register_dependency_tools

logger = logging.getLogger(__name__)


def create_graph_cache(config: ServerConfig) -> Optional[GraphCache]:
    """Build the derived-graph cache described by ``config``, or None when disabled."""
    if not config.graph_cache_enabled:
        return None
    return TTLGraphCache(
        ttl_seconds=config.graph_cache_ttl_seconds,
        max_entries=config.graph_cache_max_entries,
    )


def create_server(
    config: Optional[ServerConfig] = None,
    store: Optional[TaskStore] = None,
) -> FastMCP:
    """
    Create a FastMCP server with the dependency tools registered.

    Args:
        config: Server configuration (defaults to the global config)
        store: Task store backing every tool

    Returns:
        Configured FastMCP instance
    """
    if store is None:
        raise ValueError("A task store is required to create the server")
    if config is None:
        config = get_config()
    config.setup_logging()

    for warning in config.startup_warnings:
        logger.warning(f"Config: {warning}")

    mcp = FastMCP(config.server_name)
    register_dependency_tools(mcp, config, store, cache=create_graph_cache(config))

    logger.info(
        f"Server {config.server_name} v{config.server_version} ready",
        extra={"graph_cache_enabled": config.graph_cache_enabled},
    )
    return mcp
