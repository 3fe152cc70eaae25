"""Readiness, blocking and depth calculation.

A task is ready when it is not completed or cancelled, every dependency in
the snapshot is completed and none of its dependencies is dangling.
Depth is the longest dependency chain leading into a node, computed by a
topological pass; nodes that pass cannot order (on or downstream of a
cycle) get a best-effort depth that ignores edges closing a cycle.
"""

import functools
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Mapping, Sequence, Tuple

from taskgraph_mcp.core.dependencies.models import (
    TERMINAL_STATUSES,
    DependencyGraph,
    ReadinessReport,
    Task,
    TaskStatus,
)

logger = logging.getLogger(__name__)

_EXHAUSTED = object()


def compute_depths(graph: DependencyGraph) -> List[str]:
    """
    Set ``depth`` on every node of ``graph``.

    Nodes reachable by the topological pass get an exact depth: 0 without
    dependencies, otherwise ``1 + max(depth of each dependency)``. Any node
    left over sits on a cycle or depends on one; it is assigned a fallback
    depth from a depth-first walk that skips edges back into the current
    path, and its id is returned.

    Args:
        graph: Graph whose nodes have ``dependencies``/``dependents`` set

    Returns:
        Ids whose depth is not reliable, in node order
    """
    nodes = graph.nodes
    in_degree: Dict[str, int] = {node_id: len(node.dependencies) for node_id, node in nodes.items()}
    depths: Dict[str, int] = {}

    queue: Deque[str] = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
    for node_id in queue:
        depths[node_id] = 0

    while queue:
        node_id = queue.popleft()
        for dependent_id in nodes[node_id].dependents:
            candidate = depths[node_id] + 1
            if candidate > depths.get(dependent_id, 0):
                depths[dependent_id] = candidate
            in_degree[dependent_id] -= 1
            if in_degree[dependent_id] == 0:
                depths.setdefault(dependent_id, 0)
                queue.append(dependent_id)

    resolved = {node_id for node_id, degree in in_degree.items() if degree == 0}
    unresolved = [node_id for node_id in nodes if node_id not in resolved]

    exact = {node_id: depths[node_id] for node_id in resolved}
    for node_id in unresolved:
        if node_id not in exact:
            _fallback_depth(graph, node_id, exact)

    for node_id, node in nodes.items():
        node.depth = exact.get(node_id, 0)

    if unresolved:
        logger.debug(
            "Depth unresolved for cyclic nodes",
            extra={"unresolved_count": len(unresolved)},
        )
    return unresolved


def _fallback_depth(graph: DependencyGraph, start: str, depths: Dict[str, int]) -> None:
    """Assign depths from ``start`` downward, ignoring edges into the current path."""
    nodes = graph.nodes
    on_path = {start}
    best: Dict[str, int] = {start: 0}
    stack: List[Tuple[str, Any]] = [(start, iter(nodes[start].dependencies))]

    while stack:
        node_id, deps = stack[-1]
        dep_id = next(deps, _EXHAUSTED)

        if dep_id is _EXHAUSTED:
            stack.pop()
            on_path.discard(node_id)
            depths[node_id] = best.pop(node_id)
            if stack:
                parent_id = stack[-1][0]
                best[parent_id] = max(best[parent_id], depths[node_id] + 1)
            continue

        if dep_id in on_path:
            continue
        if dep_id in depths:
            best[node_id] = max(best[node_id], depths[dep_id] + 1)
            continue

        on_path.add(dep_id)
        best[dep_id] = 0
        stack.append((dep_id, iter(nodes[dep_id].dependencies)))


def compute_readiness(graph: DependencyGraph) -> ReadinessReport:
    """
    Set ``is_ready`` and ``blocked_by`` on every node of ``graph``.

    ``blocked_by`` holds the dependencies present in the graph that are not
    completed. Dangling dependencies stay in ``missing_dependencies`` and keep
    the node from being ready, but are not listed in ``blocked_by``.

    Returns:
        ReadinessReport partitioning non-terminal nodes into ready and blocked
    """
    report = ReadinessReport()

    for node_id, node in graph.nodes.items():
        if node.status in TERMINAL_STATUSES:
            node.is_ready = False
            node.blocked_by = []
            continue

        node.blocked_by = [
            dep_id
            for dep_id in node.dependencies
            if graph.nodes[dep_id].status != TaskStatus.COMPLETED
        ]
        node.is_ready = not node.blocked_by and not node.missing_dependencies

        if node.is_ready:
            report.ready_items.append(node_id)
        else:
            report.blocked_items.append(node_id)

    return report


def is_task_ready(task: Task, tasks_by_id: Mapping[str, Task]) -> bool:
    """Single-task readiness check against an id-indexed snapshot."""
    if task.status in TERMINAL_STATUSES:
        return False
    for dep_id in task.dependencies:
        dep = tasks_by_id.get(dep_id)
        if dep is None or dep.status != TaskStatus.COMPLETED:
            return False
    return True


def _as_aware(value: datetime) -> datetime:
    # Naive timestamps are treated as UTC so mixed inputs stay comparable
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def ready_sort_key(task: Task) -> Tuple[int, datetime, str]:
    """Sort key for presenting ready tasks: priority desc, oldest first, then id."""
    return (-task.priority, _as_aware(task.created_at), task.id)


def compare_ready_tasks(a: Task, b: Task) -> int:
    """Comparator form of ``ready_sort_key`` (negative when ``a`` comes first)."""
    key_a, key_b = ready_sort_key(a), ready_sort_key(b)
    if key_a < key_b:
        return -1
    if key_a > key_b:
        return 1
    return 0


def sort_ready_tasks(tasks: Sequence[Task]) -> List[Task]:
    """Return ``tasks`` ordered by ``compare_ready_tasks``."""
    return sorted(tasks, key=functools.cmp_to_key(compare_ready_tasks))
