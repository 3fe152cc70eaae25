"""Graph construction from a flat task collection.

``build_graph`` is a pure function of its input: it never raises for
malformed graphs (dangling references, cycles, self-loops), which are
reported as data on the returned ``DependencyGraph``. Only a missing
collection, an item without an ``id`` or a duplicated ``id`` is an error.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from taskgraph_mcp.core.dependencies.cycles import find_cycles
from taskgraph_mcp.core.dependencies.models import (
    DependencyGraph,
    DependencyNode,
    Task,
)
from taskgraph_mcp.core.dependencies.readiness import compute_depths, compute_readiness
from taskgraph_mcp.core.errors.graph import TaskInputError

logger = logging.getLogger(__name__)

TaskLike = Union[Task, Mapping[str, Any]]


def coerce_tasks(tasks: Optional[Iterable[TaskLike]]) -> List[Task]:
    """
    Validate a task collection and return it as ``Task`` models.

    Raises:
        TaskInputError: If ``tasks`` is None, an item lacks an ``id``, or two
            items share the same ``id``
    """
    if tasks is None:
        raise TaskInputError("Task collection is required, got None")
    if isinstance(tasks, (str, bytes, Mapping)):
        raise TaskInputError(
            f"Task collection must be a sequence of tasks, got {type(tasks).__name__}"
        )

    coerced: List[Task] = []
    seen = set()
    for index, item in enumerate(tasks):
        task = Task.coerce(item, index=index)
        if task.id in seen:
            raise TaskInputError(
                f"Duplicate task id '{task.id}' at index {index}",
                index=index,
                task_id=task.id,
            )
        seen.add(task.id)
        coerced.append(task)
    return coerced


def dedupe_ids(ids: Iterable[str]) -> List[str]:
    """Drop repeated ids, keeping the first occurrence of each."""
    seen = set()
    unique: List[str] = []
    for item in ids:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


def index_tasks(tasks: Sequence[Task]) -> Dict[str, Task]:
    """Map task id to task, preserving input order."""
    return {task.id: task for task in tasks}


def build_graph(tasks: Optional[Iterable[TaskLike]]) -> DependencyGraph:
    """
    Build the dependency graph for one task list.

    Dependencies are deduplicated; ids not present in ``tasks`` are moved to
    the node's ``missing_dependencies`` and recorded in ``graph.dangling``.
    Cycles, depths and readiness are derived before returning.

    Args:
        tasks: Every task of the list, whatever its status (completed tasks
            are what satisfy dependencies)

    Returns:
        A freshly built DependencyGraph

    Raises:
        TaskInputError: On a None collection, missing ids or duplicate ids
    """
    task_list = coerce_tasks(tasks)
    known_ids = {task.id for task in task_list}

    graph = DependencyGraph()
    for task in task_list:
        unique = dedupe_ids(task.dependencies)
        node = DependencyNode(
            id=task.id,
            status=task.status,
            dependencies=[dep_id for dep_id in unique if dep_id in known_ids],
            missing_dependencies=[dep_id for dep_id in unique if dep_id not in known_ids],
        )
        graph.nodes[task.id] = node
        if node.missing_dependencies:
            graph.dangling[task.id] = list(node.missing_dependencies)

    # Inverse edges in one pass
    for node_id, node in graph.nodes.items():
        for dep_id in node.dependencies:
            graph.nodes[dep_id].dependents.append(node_id)

    graph.roots = [node_id for node_id, node in graph.nodes.items() if not node.dependencies]
    graph.leaves = [node_id for node_id, node in graph.nodes.items() if not node.dependents]
    graph.cycles = find_cycles(graph)
    graph.unresolved_depth = compute_depths(graph)

    report = compute_readiness(graph)
    graph.ready_items = report.ready_items
    graph.blocked_items = report.blocked_items

    logger.info(
        "Dependency graph built",
        extra={
            "node_count": len(graph.nodes),
            "root_count": len(graph.roots),
            "leaf_count": len(graph.leaves),
            "cycle_count": len(graph.cycles),
            "ready_count": len(graph.ready_items),
            "blocked_count": len(graph.blocked_items),
            "dangling_count": len(graph.dangling),
        },
    )
    return graph
