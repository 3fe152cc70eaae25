"""
Error envelopes used by the dependency tools.

Input problems map to ``validation``, unknown lists and tasks to
``not_found`` and unexpected exceptions to ``internal``. A rejected
dependency set is ``conflict`` when it would close a cycle and
``validation`` otherwise.
"""

from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from taskgraph_mcp.core.responses.builders import error_response
from taskgraph_mcp.core.responses.types import ErrorCode, ErrorType, ToolResponse


def validation_error(
    message: str,
    *,
    field: Optional[str] = None,
    error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    details: Optional[Mapping[str, Any]] = None,
    remediation: Optional[str] = None,
) -> ToolResponse:
    """Reject a tool argument; ``field`` names the offending parameter in ``details``."""
    merged: Dict[str, Any] = dict(details or {})
    if field:
        merged.setdefault("field", field)
    return error_response(
        message,
        error_code=error_code,
        error_type=ErrorType.VALIDATION,
        details=merged,
        remediation=remediation,
    )


def not_found_error(resource_type: str, resource_id: str) -> ToolResponse:
    return error_response(
        f"{resource_type} '{resource_id}' not found",
        error_code=ErrorCode.NOT_FOUND,
        error_type=ErrorType.NOT_FOUND,
        data={"resource_type": resource_type, "resource_id": resource_id},
        remediation=f"Check the {resource_type.lower()} id and try again",
    )


def internal_error(message: str, *, details: Optional[Mapping[str, Any]] = None) -> ToolResponse:
    return error_response(
        message,
        details=details,
        remediation="The server log has the full traceback",
    )


def _rejection_kind(
    circular_dependencies: Optional[Sequence[Sequence[str]]], self_reference: bool
) -> Tuple[ErrorCode, ErrorType, str]:
    if circular_dependencies:
        return (
            ErrorCode.CIRCULAR_DEPENDENCY,
            ErrorType.CONFLICT,
            "Drop a dependency on one of the listed cycles",
        )
    if self_reference:
        return ErrorCode.SELF_REFERENCE, ErrorType.VALIDATION, "Remove the task's own id from its dependencies"
    return (
        ErrorCode.DEPENDENCY_NOT_FOUND,
        ErrorType.VALIDATION,
        "Only tasks from the same list can be dependencies",
    )


def dependency_rejected_error(
    task_id: str,
    *,
    errors: Sequence[str],
    warnings: Optional[Sequence[str]] = None,
    circular_dependencies: Optional[Sequence[Sequence[str]]] = None,
    self_reference: bool = False,
) -> ToolResponse:
    """Turn a failed ``validate_dependencies`` result into an error envelope.

    The code follows the most serious problem: a cycle, then a
    self-reference, then unknown ids. The validator's messages are passed
    through unchanged and the first one becomes the error text.
    """
    code, error_type, remediation = _rejection_kind(circular_dependencies, self_reference)
    data: Dict[str, Any] = {"task_id": task_id, "errors": list(errors), "warnings": list(warnings or [])}
    if circular_dependencies:
        data["circular_dependencies"] = [list(cycle) for cycle in circular_dependencies]

    return error_response(
        errors[0] if errors else f"Rejected dependencies for task '{task_id}'",
        error_code=code,
        error_type=error_type,
        data=data,
        remediation=remediation,
    )
