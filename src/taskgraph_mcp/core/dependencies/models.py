"""Data models for the task dependency graph engine.

``Task`` is the read-only input entity, validated at the boundary with
pydantic. Everything derived from it (nodes, graphs, validation results)
is a plain dataclass rebuilt on every call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from taskgraph_mcp.core.errors.graph import TaskInputError


class TaskStatus(str, Enum):
    """Task lifecycle status, owned by the external task store."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"


# Tasks in these states are never ready and never reported as blocked.
TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Task(BaseModel):
    """A task as seen by the dependency engine."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1, description="Opaque unique task identifier")
    title: str = Field("", description="Human-readable title, used in messages only")
    status: TaskStatus = Field(TaskStatus.PENDING, description="Current lifecycle status")
    dependencies: List[str] = Field(
        default_factory=list,
        description="Ids of tasks this task depends on (raw, may contain duplicates)",
    )
    priority: int = Field(3, ge=1, le=5, description="1 (lowest) to 5 (highest)")
    created_at: datetime = Field(
        default_factory=_utcnow,
        alias="createdAt",
        description="Creation timestamp",
    )

    @field_validator("dependencies", mode="before")
    @classmethod
    def _none_dependencies_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def coerce(cls, obj: Union["Task", Mapping[str, Any]], index: int = -1) -> "Task":
        """Return ``obj`` as a ``Task``, raising ``TaskInputError`` on bad shape."""
        if isinstance(obj, Task):
            return obj
        if obj is None:
            raise TaskInputError(f"Task at index {index} is None", index=index)
        if not isinstance(obj, Mapping):
            raise TaskInputError(
                f"Task at index {index} must be a Task or mapping, got {type(obj).__name__}",
                index=index,
            )
        task_id = obj.get("id")
        if task_id is None or task_id == "":
            raise TaskInputError(f"Task at index {index} is missing required 'id'", index=index)
        try:
            return cls.model_validate(obj)
        except ValidationError as e:
            raise TaskInputError(
                f"Task '{task_id}' is malformed: {e.errors()[0].get('msg', str(e))}",
                index=index,
                task_id=task_id,
            ) from e


@dataclass
class DependencyNode:
    """Derived view of one task inside a ``DependencyGraph``."""

    id: str
    status: TaskStatus
    dependencies: List[str] = field(default_factory=list)
    dependents: List[str] = field(default_factory=list)
    depth: int = 0
    is_ready: bool = False
    blocked_by: List[str] = field(default_factory=list)
    missing_dependencies: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "dependencies": list(self.dependencies),
            "dependents": list(self.dependents),
            "depth": self.depth,
            "is_ready": self.is_ready,
            "blocked_by": list(self.blocked_by),
            "missing_dependencies": list(self.missing_dependencies),
        }


@dataclass
class DependencyGraph:
    """
    Dependency graph derived from one task list snapshot.

    ``cycles`` holds closed loops in traversal order without repeating the
    first id; a self-dependency is a one-element cycle. ``unresolved_depth``
    lists nodes on or downstream of a cycle, whose ``depth`` is best-effort.
    ``dangling`` maps task ids to dependency ids absent from the snapshot.
    """

    nodes: Dict[str, DependencyNode] = field(default_factory=dict)
    roots: List[str] = field(default_factory=list)
    leaves: List[str] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)
    ready_items: List[str] = field(default_factory=list)
    blocked_items: List[str] = field(default_factory=list)
    unresolved_depth: List[str] = field(default_factory=list)
    dangling: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON shape returned by graph read endpoints."""
        return {
            "nodes": [node.to_dict() for node in self.nodes.values()],
            "roots": list(self.roots),
            "leaves": list(self.leaves),
            "cycles": [list(cycle) for cycle in self.cycles],
            "ready_items": list(self.ready_items),
            "blocked_items": list(self.blocked_items),
            "unresolved_depth": list(self.unresolved_depth),
            "dangling": {task_id: list(ids) for task_id, ids in self.dangling.items()},
        }


@dataclass
class ValidationResult:
    """
    Verdict on a proposed dependency set.

    ``is_valid`` is False whenever ``errors`` is non-empty. Warnings never
    affect validity.
    """

    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    circular_dependencies: List[List[str]] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.is_valid = False
        self.errors.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "circular_dependencies": [list(cycle) for cycle in self.circular_dependencies],
        }


@dataclass
class ReadinessReport:
    """Ready/blocked partition of the non-terminal tasks in a graph."""

    ready_items: List[str] = field(default_factory=list)
    blocked_items: List[str] = field(default_factory=list)


@dataclass
class BlockedItem:
    """A non-terminal task together with the tasks currently blocking it."""

    task: Task
    blocked_by: List[Task] = field(default_factory=list)
    missing_dependencies: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task.id,
            "blocked_by": [t.id for t in self.blocked_by],
            "missing_dependencies": list(self.missing_dependencies),
        }


@dataclass
class DependencyChain:
    """Position of one task in the dependency structure of its list."""

    task_id: str
    depth: int
    dependencies: List[str] = field(default_factory=list)
    dependents: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "depth": self.depth,
            "dependencies": list(self.dependencies),
            "dependents": list(self.dependents),
        }


@dataclass
class DependencyAnalysis:
    """
    Whole-list dependency report.

    Counts partition the list: ``ready_tasks + blocked_tasks`` covers every
    non-terminal task, ``completed_tasks`` and ``cancelled_tasks`` the rest.
    ``bottlenecks`` holds up to five unfinished tasks with more than two
    dependents, most dependents first.
    """

    total_tasks: int = 0
    ready_tasks: int = 0
    blocked_tasks: int = 0
    completed_tasks: int = 0
    cancelled_tasks: int = 0
    tasks_with_dependencies: int = 0
    chains: List[DependencyChain] = field(default_factory=list)
    critical_path: List[str] = field(default_factory=list)
    bottlenecks: List[str] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": {
                "total_tasks": self.total_tasks,
                "ready_tasks": self.ready_tasks,
                "blocked_tasks": self.blocked_tasks,
                "completed_tasks": self.completed_tasks,
                "cancelled_tasks": self.cancelled_tasks,
                "tasks_with_dependencies": self.tasks_with_dependencies,
            },
            "chains": [chain.to_dict() for chain in self.chains],
            "critical_path": list(self.critical_path),
            "bottlenecks": list(self.bottlenecks),
            "cycles": [list(cycle) for cycle in self.cycles],
            "recommendations": list(self.recommendations),
        }
