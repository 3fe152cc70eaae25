"""Dependency graph error classes.

Only caller contract violations are exceptions. Cycles, dangling references
and rejected dependency proposals are reported as data by the engine.
"""

from typing import Any, Optional


class TaskInputError(ValueError):
    """Raised when a task collection violates the engine's input contract.

    Covers a ``None`` collection, an item without an ``id`` and two items
    sharing the same ``id``.

    Attributes:
        index: Position of the offending item in the collection, if known.
        task_id: Offending task id, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        index: Optional[int] = None,
        task_id: Optional[Any] = None,
    ):
        super().__init__(message)
        self.index = index
        self.task_id = task_id


class TaskNotFoundError(LookupError):
    """Raised when a task id is not present in the loaded task list."""

    def __init__(self, task_id: str, list_id: Optional[str] = None) -> None:
        self.task_id = task_id
        self.list_id = list_id
        where = f" in list '{list_id}'" if list_id else ""
        super().__init__(f"Task '{task_id}' not found{where}")
