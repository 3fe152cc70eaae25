"""Constructors for success and error envelopes."""

from typing import Any, Mapping, Optional, Sequence

from taskgraph_mcp.core.responses.types import ErrorCode, ErrorType, ToolResponse


def success_response(
    data: Optional[Mapping[str, Any]] = None,
    *,
    warnings: Optional[Sequence[str]] = None,
    **fields: Any,
) -> ToolResponse:
    """Wrap a tool payload.

    ``fields`` are merged over ``data``, so a handler can pass a model's
    ``to_dict()`` and still add or replace individual keys.
    """
    response = ToolResponse(success=True, data={**(data or {}), **fields})
    if warnings:
        response.meta["warnings"] = list(warnings)
    return response


def error_response(
    message: str,
    *,
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    error_type: ErrorType = ErrorType.INTERNAL,
    data: Optional[Mapping[str, Any]] = None,
    remediation: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
) -> ToolResponse:
    """Wrap a failure.

    ``error_code`` and ``error_type`` always end up in ``data`` and take
    precedence over keys of the same name in ``data``.
    """
    payload = dict(data or {})
    payload["error_code"] = error_code.value
    payload["error_type"] = error_type.value
    if remediation:
        payload["remediation"] = remediation
    if details:
        payload["details"] = dict(details)
    return ToolResponse(success=False, data=payload, error=message)
