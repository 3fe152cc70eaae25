"""Envelope types shared by every dependency tool."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

RESPONSE_VERSION = "taskgraph-1"


class ErrorCode(str, Enum):
    """Stable codes clients can branch on. Values are part of the tool contract."""

    # Bad input
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_FORMAT = "INVALID_FORMAT"
    MISSING_REQUIRED = "MISSING_REQUIRED"
    LIST_TOO_LARGE = "LIST_TOO_LARGE"

    # Lookups
    NOT_FOUND = "NOT_FOUND"
    TASK_NOT_FOUND = "TASK_NOT_FOUND"

    # Rejected dependency sets
    DEPENDENCY_NOT_FOUND = "DEPENDENCY_NOT_FOUND"
    SELF_REFERENCE = "SELF_REFERENCE"
    CIRCULAR_DEPENDENCY = "CIRCULAR_DEPENDENCY"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorType(str, Enum):
    """Coarse failure category; only ``internal`` is worth retrying."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


@dataclass
class ToolResponse:
    """
    Result of one tool call, serialized with ``dataclasses.asdict``.

    ``meta`` always carries the envelope version. Non-fatal warnings are
    added to it under ``warnings`` when there are any.
    """

    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=lambda: {"version": RESPONSE_VERSION})
