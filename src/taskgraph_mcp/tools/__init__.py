"""MCP tools for taskgraph-mcp."""

from taskgraph_mcp.tools.dependencies import (
    DependencyToolContext,
    register_dependency_tools,
)

__all__ = [
    "DependencyToolContext",
    "register_dependency_tools",
]
