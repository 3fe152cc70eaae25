"""Error hierarchy for taskgraph-mcp.

Usage:
    from taskgraph_mcp.core.errors import TaskInputError, error_to_response
"""

from taskgraph_mcp.core.errors.base import ERROR_MAPPINGS, error_to_response
from taskgraph_mcp.core.errors.graph import TaskInputError, TaskNotFoundError

__all__ = [
    "ERROR_MAPPINGS",
    "TaskInputError",
    "TaskNotFoundError",
    "error_to_response",
]
