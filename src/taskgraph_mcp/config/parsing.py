"""Parsing and normalization helpers for configuration values.

Provides boolean, positive-number and log-level parsing used by the config loader.
"""

from typing import Any, Optional

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _try_parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in {"true", "1", "yes", "on"}:
        return True
    if normalized in {"false", "0", "no", "off"}:
        return False
    return None


def _try_parse_positive_int(value: Any) -> Optional[int]:
    """Parse ``value`` as an integer >= 1, or return None."""
    if isinstance(value, bool):
        return None
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return parsed if parsed >= 1 else None


def _try_parse_positive_float(value: Any) -> Optional[float]:
    """Parse ``value`` as a float > 0, or return None."""
    if isinstance(value, bool):
        return None
    try:
        parsed = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


def _normalize_log_level(value: str) -> Optional[str]:
    normalized = str(value).strip().upper()
    return normalized if normalized in _VALID_LOG_LEVELS else None
