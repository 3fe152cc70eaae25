"""Validation of proposed dependency sets.

``validate_dependencies`` never mutates tasks and never raises for business
rule violations; callers abort the write when ``is_valid`` is False and show
``errors``/``warnings`` to the user verbatim.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from taskgraph_mcp.core.dependencies.builder import TaskLike, coerce_tasks, dedupe_ids
from taskgraph_mcp.core.dependencies.cycles import find_cycles_in_map, format_cycle, rotate_cycle
from taskgraph_mcp.core.dependencies.models import TaskStatus, ValidationResult

logger = logging.getLogger(__name__)


class DependencyUpdate(BaseModel):
    """Typed request to replace a task's dependency set."""

    task_id: str = Field(..., min_length=1, description="Task whose dependencies change")
    dependencies: List[str] = Field(
        default_factory=list, description="Complete proposed dependency id list"
    )

    @field_validator("task_id")
    @classmethod
    def _strip_task_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("task_id must be a non-empty string")
        return value

    @field_validator("dependencies", mode="before")
    @classmethod
    def _normalize_dependencies(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            raise ValueError("dependencies must be a list of task ids, not a string")
        return value

    @field_validator("dependencies")
    @classmethod
    def _strip_dependency_ids(cls, value: List[str]) -> List[str]:
        stripped = [item.strip() for item in value]
        if any(not item for item in stripped):
            raise ValueError("dependency ids must be non-empty strings")
        return stripped


def validate_dependencies(
    task_id: str,
    proposed_dependencies: Sequence[str],
    all_tasks: Optional[Iterable[TaskLike]],
    *,
    max_dependencies: Optional[int] = None,
) -> ValidationResult:
    """
    Check whether ``task_id`` may depend on ``proposed_dependencies``.

    Errors (``is_valid`` becomes False):
    - ``task_id`` appears in the proposal
    - a proposed id does not exist in ``all_tasks``
    - replacing ``task_id``'s dependencies with the proposal closes a cycle
      through ``task_id``, directly or through existing edges

    Warnings:
    - duplicate ids in the proposal
    - dependencies on cancelled tasks (they can never complete)
    - more dependencies than ``max_dependencies``

    Args:
        task_id: Task whose dependency set is being replaced (may be new)
        proposed_dependencies: Complete proposed dependency list
        all_tasks: Snapshot of every task in the list
        max_dependencies: Optional soft limit on the dependency count

    Returns:
        ValidationResult; ``circular_dependencies`` holds each offending
        cycle rotated to start at ``task_id``

    Raises:
        TaskInputError: If ``all_tasks`` is None or contains an item without an id
    """
    tasks = coerce_tasks(all_tasks)
    tasks_by_id = {task.id: task for task in tasks}
    proposed = list(proposed_dependencies or [])
    result = ValidationResult()

    logger.debug(
        "Validating dependencies",
        extra={
            "task_id": task_id,
            "dependency_count": len(proposed),
            "total_tasks": len(tasks),
        },
    )

    if task_id in proposed:
        result.add_error(f"Task '{task_id}' cannot depend on itself")

    unique = dedupe_ids(proposed)
    missing = [dep_id for dep_id in unique if dep_id != task_id and dep_id not in tasks_by_id]
    if missing:
        result.add_error(f"Invalid dependencies: {', '.join(missing)} do not exist")

    duplicates = [dep_id for dep_id, count in Counter(proposed).items() if count > 1]
    if duplicates:
        result.warnings.append(
            f"Duplicate dependencies detected and will be removed: {', '.join(duplicates)}"
        )

    # Simulate the write: task_id's current edges are replaced by the proposal
    adjacency: Dict[str, List[str]] = {
        task.id: [dep_id for dep_id in dedupe_ids(task.dependencies) if dep_id in tasks_by_id]
        for task in tasks
    }
    adjacency[task_id] = [
        dep_id for dep_id in unique if dep_id != task_id and dep_id in tasks_by_id
    ]
    cycles = [
        rotate_cycle(cycle, task_id)
        for cycle in find_cycles_in_map(adjacency, start=[task_id])
        if task_id in cycle
    ]
    if cycles:
        result.circular_dependencies = cycles
        result.add_error(
            f"Circular dependencies detected: {', '.join(format_cycle(c) for c in cycles)}"
        )

    cancelled = [
        dep_id
        for dep_id in unique
        if dep_id in tasks_by_id and tasks_by_id[dep_id].status == TaskStatus.CANCELLED
    ]
    if cancelled:
        result.warnings.append(
            "Dependencies on cancelled tasks will never complete and permanently "
            f"block '{task_id}': {', '.join(cancelled)}"
        )

    if max_dependencies is not None and len(unique) > max_dependencies:
        result.warnings.append(
            f"Task '{task_id}' has {len(unique)} dependencies, above the "
            f"recommended limit of {max_dependencies}"
        )

    logger.debug(
        "Dependency validation completed",
        extra={
            "task_id": task_id,
            "is_valid": result.is_valid,
            "error_count": len(result.errors),
            "warning_count": len(result.warnings),
            "circular_dependencies": len(result.circular_dependencies),
        },
    )
    return result


def format_validation_error(result: ValidationResult) -> str:
    """Build a user-facing, multi-line summary of a validation result."""
    messages: List[str] = []

    if result.errors:
        messages.append("Dependency validation failed:")
        messages.extend(f"  - {error}" for error in result.errors)

    if result.warnings:
        messages.append("Warnings:")
        messages.extend(f"  - {warning}" for warning in result.warnings)

    if result.circular_dependencies:
        messages.append("Circular dependencies detected:")
        messages.extend(f"  - {format_cycle(cycle)}" for cycle in result.circular_dependencies)

    suggestions: List[str] = []
    if any(error.startswith("Invalid dependencies") for error in result.errors):
        suggestions.append("Verify that all dependency task IDs exist in the same list")
        suggestions.append("Check for typos in task IDs")
    if result.circular_dependencies:
        suggestions.append("Remove one or more dependencies to break the circular chain")
        suggestions.append("Consider restructuring tasks to avoid circular dependencies")

    if suggestions:
        messages.append("")
        messages.append("Suggestions:")
        messages.extend(f"  - {suggestion}" for suggestion in suggestions)

    return "\n".join(messages)
