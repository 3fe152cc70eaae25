"""Exception types the tools turn into error envelopes instead of internal errors."""

from dataclasses import asdict
from typing import Dict, Optional, Tuple, Type

from taskgraph_mcp.core.errors.graph import TaskInputError, TaskNotFoundError
from taskgraph_mcp.core.responses import ErrorCode, ErrorType, error_response

ERROR_MAPPINGS: Dict[Type[Exception], Tuple[ErrorCode, ErrorType]] = {
    TaskInputError: (ErrorCode.VALIDATION_ERROR, ErrorType.VALIDATION),
    TaskNotFoundError: (ErrorCode.TASK_NOT_FOUND, ErrorType.NOT_FOUND),
}


def error_to_response(exc: Exception) -> Optional[dict]:
    """Return the envelope dict for ``exc``, or None if its type is not registered.

    Subclasses of a registered type use the nearest registered base.
    """
    for klass in type(exc).__mro__:
        if klass in ERROR_MAPPINGS:
            code, error_type = ERROR_MAPPINGS[klass]
            return asdict(error_response(str(exc), error_code=code, error_type=error_type))
    return None
