"""
Response envelope for the MCP tools.

Sub-modules:
    types     - ErrorCode, ErrorType, ToolResponse
    builders  - success_response, error_response
    errors    - validation, not-found, internal and rejected-dependency envelopes
"""

from taskgraph_mcp.core.responses.types import (
    RESPONSE_VERSION,
    ErrorCode,
    ErrorType,
    ToolResponse,
)
from taskgraph_mcp.core.responses.builders import error_response, success_response
from taskgraph_mcp.core.responses.errors import (
    dependency_rejected_error,
    internal_error,
    not_found_error,
    validation_error,
)

__all__ = [
    "RESPONSE_VERSION",
    "ErrorCode",
    "ErrorType",
    "ToolResponse",
    "dependency_rejected_error",
    "error_response",
    "internal_error",
    "not_found_error",
    "success_response",
    "validation_error",
]
