"""
Dependency resolution entry points used by request handlers.

Every function takes the full task snapshot of one list, rebuilds what it
needs and returns plain data. Sorting for presentation and result limits
are left to the caller (see ``readiness.sort_ready_tasks``).
"""

import heapq
import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple

from taskgraph_mcp.core.dependencies.builder import (
    TaskLike,
    build_graph,
    coerce_tasks,
    dedupe_ids,
    index_tasks,
)
from taskgraph_mcp.core.dependencies.models import (
    TERMINAL_STATUSES,
    BlockedItem,
    DependencyAnalysis,
    DependencyChain,
    DependencyGraph,
    Task,
    TaskStatus,
)
from taskgraph_mcp.core.dependencies.readiness import _as_aware, sort_ready_tasks
from taskgraph_mcp.core.dependencies.validator import validate_dependencies

logger = logging.getLogger(__name__)

# Unfinished tasks with at least this many dependents are reported as bottlenecks
BOTTLENECK_MIN_DEPENDENTS = 3
MAX_BOTTLENECKS = 5
HIGH_PRIORITY = 4

__all__ = [
    "analyze_dependencies",
    "build_dependency_graph",
    "calculate_block_reason",
    "calculate_critical_path",
    "get_blocked_items",
    "get_ready_items",
    "suggest_task_order",
    "validate_dependencies",
]


def build_dependency_graph(tasks: Optional[Iterable[TaskLike]]) -> DependencyGraph:
    """Build the full dependency graph for a task list."""
    return build_graph(tasks)


def get_ready_items(tasks: Optional[Iterable[TaskLike]]) -> List[Task]:
    """
    Return the tasks that can be started now, in input order.

    Completed and cancelled tasks are excluded, as is any task with an
    incomplete or dangling dependency.
    """
    task_list = coerce_tasks(tasks)
    graph = build_graph(task_list)
    ready = [task for task in task_list if graph.nodes[task.id].is_ready]

    logger.debug(
        "Ready items calculated",
        extra={"total_items": len(task_list), "ready_count": len(ready)},
    )
    return ready


def get_blocked_items(tasks: Optional[Iterable[TaskLike]]) -> List[BlockedItem]:
    """Return each non-terminal, non-ready task with the tasks blocking it."""
    task_list = coerce_tasks(tasks)
    tasks_by_id = index_tasks(task_list)
    graph = build_graph(task_list)

    blocked = [
        BlockedItem(
            task=tasks_by_id[node_id],
            blocked_by=[tasks_by_id[dep_id] for dep_id in graph.nodes[node_id].blocked_by],
            missing_dependencies=list(graph.nodes[node_id].missing_dependencies),
        )
        for node_id in graph.blocked_items
    ]

    logger.debug(
        "Blocked items calculated",
        extra={"total_items": len(task_list), "blocked_count": len(blocked)},
    )
    return blocked


def calculate_block_reason(task: TaskLike, tasks: Optional[Iterable[TaskLike]]) -> List[str]:
    """
    Return the ids of ``task``'s dependencies that are not yet completed.

    Matches ``DependencyNode.blocked_by``: empty for completed or cancelled
    tasks, and dangling dependency ids are not included.
    """
    target = Task.coerce(task)
    tasks_by_id = index_tasks(coerce_tasks(tasks))

    if target.status in TERMINAL_STATUSES:
        return []

    return [
        dep_id
        for dep_id in dedupe_ids(target.dependencies)
        if dep_id in tasks_by_id and tasks_by_id[dep_id].status != TaskStatus.COMPLETED
    ]


def calculate_critical_path(tasks: Optional[Iterable[TaskLike]]) -> List[str]:
    """
    Return the longest dependency chain, root first.

    Only nodes with a reliable depth take part; nodes on or downstream of a
    cycle are skipped. Ties go to the node that appears first in ``tasks``.
    """
    return _longest_chain(build_graph(tasks))


def _longest_chain(graph: DependencyGraph) -> List[str]:
    unresolved = set(graph.unresolved_depth)

    end: Optional[str] = None
    for node_id, node in graph.nodes.items():
        if node_id in unresolved:
            continue
        if end is None or node.depth > graph.nodes[end].depth:
            end = node_id

    if end is None:
        return []

    path = [end]
    current = graph.nodes[end]
    while current.depth > 0:
        predecessor = next(
            dep_id
            for dep_id in current.dependencies
            if graph.nodes[dep_id].depth == current.depth - 1
        )
        path.append(predecessor)
        current = graph.nodes[predecessor]

    path.reverse()
    logger.debug("Critical path calculated", extra={"path_length": len(path)})
    return path


def suggest_task_order(tasks: Optional[Iterable[TaskLike]]) -> List[Task]:
    """
    Suggest an execution order that respects dependencies.

    Among tasks whose dependencies are already placed, the deepest task goes
    first, then the highest priority, then the oldest. Tasks that cannot be
    placed because of a cycle are appended in input order.
    """
    task_list = coerce_tasks(tasks)
    tasks_by_id = index_tasks(task_list)
    graph = build_graph(task_list)
    position = {task.id: index for index, task in enumerate(task_list)}

    def _key(node_id: str) -> Tuple:
        task = tasks_by_id[node_id]
        return (
            -graph.nodes[node_id].depth,
            -task.priority,
            _as_aware(task.created_at),
            position[node_id],
            node_id,
        )

    remaining = {node_id: len(node.dependencies) for node_id, node in graph.nodes.items()}
    heap = [_key(node_id) for node_id, count in remaining.items() if count == 0]
    heapq.heapify(heap)

    ordered: List[Task] = []
    placed = set()
    while heap:
        node_id = heapq.heappop(heap)[-1]
        ordered.append(tasks_by_id[node_id])
        placed.add(node_id)
        for dependent_id in graph.nodes[node_id].dependents:
            remaining[dependent_id] -= 1
            if remaining[dependent_id] == 0:
                heapq.heappush(heap, _key(dependent_id))

    ordered.extend(task for task in task_list if task.id not in placed)

    logger.debug(
        "Task order suggested",
        extra={"original_count": len(task_list), "ordered_count": len(ordered)},
    )
    return ordered


def analyze_dependencies(tasks: Optional[Iterable[TaskLike]]) -> DependencyAnalysis:
    """
    Summarize the dependency structure of a whole list.

    Reports status counts, every task's chain position (depth, dependencies
    and dependents), the critical path, bottlenecks, cycles and plain-text
    recommendations on what to work on next.
    """
    task_list = coerce_tasks(tasks)
    tasks_by_id = index_tasks(task_list)
    graph = build_graph(task_list)

    bottlenecks = [
        node_id
        for node_id, node in graph.nodes.items()
        if len(node.dependents) >= BOTTLENECK_MIN_DEPENDENTS and node.status not in TERMINAL_STATUSES
    ]
    bottlenecks.sort(key=lambda node_id: -len(graph.nodes[node_id].dependents))

    analysis = DependencyAnalysis(
        total_tasks=len(task_list),
        ready_tasks=len(graph.ready_items),
        blocked_tasks=len(graph.blocked_items),
        completed_tasks=sum(1 for task in task_list if task.status == TaskStatus.COMPLETED),
        cancelled_tasks=sum(1 for task in task_list if task.status == TaskStatus.CANCELLED),
        tasks_with_dependencies=sum(1 for task in task_list if task.dependencies),
        chains=[
            DependencyChain(
                task_id=node_id,
                depth=node.depth,
                dependencies=list(node.dependencies),
                dependents=list(node.dependents),
            )
            for node_id, node in graph.nodes.items()
        ],
        critical_path=_longest_chain(graph),
        bottlenecks=bottlenecks[:MAX_BOTTLENECKS],
        cycles=[list(cycle) for cycle in graph.cycles],
    )
    analysis.recommendations = _recommendations(analysis, graph, tasks_by_id)

    logger.debug(
        "Dependency analysis completed",
        extra={
            "total_items": analysis.total_tasks,
            "bottleneck_count": len(analysis.bottlenecks),
            "recommendation_count": len(analysis.recommendations),
        },
    )
    return analysis


def _label(task: Task) -> str:
    return task.title or task.id


def _recommendations(
    analysis: DependencyAnalysis,
    graph: DependencyGraph,
    tasks_by_id: Dict[str, Task],
) -> List[str]:
    recommendations: List[str] = []

    path = analysis.critical_path
    for index, node_id in enumerate(path):
        if tasks_by_id[node_id].status in TERMINAL_STATUSES:
            continue
        downstream = len(path) - index - 1
        if downstream:
            recommendations.append(
                f'Focus on the critical path: start with "{_label(tasks_by_id[node_id])}" '
                f"as it affects {downstream} other tasks."
            )
        break

    if analysis.ready_tasks == 0 and analysis.blocked_tasks > 0:
        blocking = Counter(
            dep_id for node_id in graph.blocked_items for dep_id in graph.nodes[node_id].blocked_by
        )
        if blocking:
            blocker_id, count = blocking.most_common(1)[0]
            recommendations.append(
                f'No tasks are ready. Focus on completing "{_label(tasks_by_id[blocker_id])}" '
                f"which is blocking {count} other tasks."
            )
        else:
            recommendations.append(
                "No tasks are ready. Check for missing dependencies or review task statuses."
            )
    elif analysis.ready_tasks > 0:
        ready = sort_ready_tasks([tasks_by_id[node_id] for node_id in graph.ready_items])
        high_priority = [task for task in ready if task.priority >= HIGH_PRIORITY]
        if high_priority:
            recommendations.append(
                f"{len(ready)} tasks are ready. Prioritize high-priority tasks like "
                f'"{_label(high_priority[0])}".'
            )
        else:
            recommendations.append(
                f"{len(ready)} tasks are ready to work on. Consider starting with the "
                "oldest or highest priority task."
            )

    if analysis.bottlenecks:
        recommendations.append(
            f'Bottleneck detected: "{_label(tasks_by_id[analysis.bottlenecks[0]])}" is blocking '
            "multiple tasks. Consider breaking it down or prioritizing it."
        )

    if analysis.cycles:
        recommendations.append(
            f"{len(analysis.cycles)} circular dependencies detected. Review and break these "
            "cycles to unblock progress."
        )

    if analysis.total_tasks:
        progress = analysis.completed_tasks * 100 // analysis.total_tasks
        if progress < 25 and analysis.total_tasks > 5:
            recommendations.append(
                "Project is in early stages. Focus on completing foundational tasks to unlock more work."
            )
        elif progress > 75:
            recommendations.append(
                "Project is nearing completion. Focus on finishing remaining tasks and final reviews."
            )

    return recommendations
