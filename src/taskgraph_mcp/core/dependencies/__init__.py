"""Task dependency graph engine.

Re-exports the public API::

    from taskgraph_mcp.core.dependencies import build_dependency_graph, validate_dependencies

Sub-modules:
- ``models``: Task input model and derived graph dataclasses
- ``builder``: Graph construction from a task collection
- ``cycles``: Cycle detection
- ``readiness``: Readiness, blocking, depth and ready-task ordering
- ``validator``: Proposed dependency set validation
- ``resolver``: Entry points used by request handlers, including whole-list analysis
- ``cache``: Caller-side graph cache port
"""

from taskgraph_mcp.core.dependencies.models import (
    TERMINAL_STATUSES,
    BlockedItem,
    DependencyAnalysis,
    DependencyChain,
    DependencyGraph,
    DependencyNode,
    ReadinessReport,
    Task,
    TaskStatus,
    ValidationResult,
)
from taskgraph_mcp.core.dependencies.builder import build_graph, coerce_tasks
from taskgraph_mcp.core.dependencies.cycles import find_cycles, find_cycles_in_map, format_cycle
from taskgraph_mcp.core.dependencies.readiness import (
    compare_ready_tasks,
    compute_depths,
    compute_readiness,
    is_task_ready,
    ready_sort_key,
    sort_ready_tasks,
)
from taskgraph_mcp.core.dependencies.validator import (
    DependencyUpdate,
    format_validation_error,
    validate_dependencies,
)
from taskgraph_mcp.core.dependencies.resolver import (
    analyze_dependencies,
    build_dependency_graph,
    calculate_block_reason,
    calculate_critical_path,
    get_blocked_items,
    get_ready_items,
    suggest_task_order,
)
from taskgraph_mcp.core.dependencies.cache import GraphCache, TTLGraphCache, graph_fingerprint

__all__ = [
    # Models
    "TERMINAL_STATUSES",
    "BlockedItem",
    "DependencyAnalysis",
    "DependencyChain",
    "DependencyGraph",
    "DependencyNode",
    "DependencyUpdate",
    "ReadinessReport",
    "Task",
    "TaskStatus",
    "ValidationResult",
    # Graph building
    "build_graph",
    "coerce_tasks",
    # Cycles
    "find_cycles",
    "find_cycles_in_map",
    "format_cycle",
    # Readiness
    "compare_ready_tasks",
    "compute_depths",
    "compute_readiness",
    "is_task_ready",
    "ready_sort_key",
    "sort_ready_tasks",
    # Validation
    "format_validation_error",
    "validate_dependencies",
    # Resolver entry points
    "analyze_dependencies",
    "build_dependency_graph",
    "calculate_block_reason",
    "calculate_critical_path",
    "get_blocked_items",
    "get_ready_items",
    "suggest_task_order",
    # Cache port
    "GraphCache",
    "TTLGraphCache",
    "graph_fingerprint",
]
