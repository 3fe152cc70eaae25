"""
Dependency tools for taskgraph-mcp.

Thin MCP adapters over the dependency engine: each tool loads one snapshot
of a list from the task store, calls the engine and wraps the result in the
standard response envelope. No dependency logic lives here.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError

from taskgraph_mcp.config import ServerConfig
from taskgraph_mcp.core.dependencies import (
    DependencyGraph,
    DependencyUpdate,
    Task,
    analyze_dependencies,
    build_dependency_graph,
    calculate_block_reason,
    calculate_critical_path,
    format_cycle,
    format_validation_error,
    get_ready_items,
    sort_ready_tasks,
    suggest_task_order,
    validate_dependencies,
)
from taskgraph_mcp.core.dependencies.builder import dedupe_ids
from taskgraph_mcp.core.dependencies.cache import GraphCache, graph_fingerprint
from taskgraph_mcp.core.errors import TaskNotFoundError, error_to_response
from taskgraph_mcp.core.naming import canonical_tool
from taskgraph_mcp.core.responses import (
    ErrorCode,
    dependency_rejected_error,
    internal_error,
    not_found_error,
    success_response,
    validation_error,
)
from taskgraph_mcp.core.store import TaskStore

logger = logging.getLogger(__name__)


@dataclass
class DependencyToolContext:
    """Collaborators shared by the dependency tool handlers."""

    store: TaskStore
    config: ServerConfig
    cache: Optional[GraphCache] = None


def _run(tool_name: str, handler: Callable[..., dict], *args: Any, **kwargs: Any) -> dict:
    """Call ``handler`` and convert any exception into an error envelope."""
    try:
        return handler(*args, **kwargs)
    except Exception as e:
        mapped = error_to_response(e)
        if mapped is not None:
            logger.warning(f"{tool_name} rejected input: {e}")
            return mapped
        logger.exception(f"{tool_name} failed: {e}")
        return asdict(
            internal_error(
                str(e) or type(e).__name__,
                details={"tool": tool_name, "error_type": type(e).__name__},
            )
        )


def _load_tasks(ctx: DependencyToolContext, list_id: str) -> Tuple[Optional[List[Task]], Optional[dict]]:
    """Load one consistent snapshot of ``list_id``.

    Returns:
        Tuple of (tasks, error_response_dict); exactly one is None
    """
    if not list_id or not list_id.strip():
        return None, asdict(
            validation_error(
                "list_id is required",
                field="list_id",
                error_code=ErrorCode.MISSING_REQUIRED,
                remediation="Provide a non-empty list_id parameter",
            )
        )
    try:
        raw_tasks = ctx.store.load_tasks(list_id)
    except KeyError:
        return None, asdict(not_found_error("List", list_id))

    limit = ctx.config.max_tasks_per_list
    if len(raw_tasks) > limit:
        return None, asdict(
            validation_error(
                f"List '{list_id}' has {len(raw_tasks)} tasks, above the limit of {limit}",
                field="list_id",
                error_code=ErrorCode.LIST_TOO_LARGE,
                details={"task_count": len(raw_tasks), "max_tasks_per_list": limit},
                remediation="Split the list or raise max_tasks_per_list",
            )
        )
    return [Task.coerce(item, index=i) for i, item in enumerate(raw_tasks)], None


def _graph_for(ctx: DependencyToolContext, list_id: str, tasks: List[Task]) -> Tuple[DependencyGraph, bool]:
    """Return the graph for ``list_id`` and whether it came from the cache.

    A cached graph is only reused when it was built from the same ids,
    statuses and dependencies as ``tasks``.
    """
    if ctx.cache is None:
        return build_dependency_graph(tasks), False
    fingerprint = graph_fingerprint(tasks)
    cached = ctx.cache.get(list_id, fingerprint=fingerprint)
    if cached is not None:
        return cached, True
    graph = build_dependency_graph(tasks)
    ctx.cache.set(list_id, graph, fingerprint=fingerprint)
    return graph, False


def _find_task(tasks: List[Task], task_id: str, list_id: str) -> Task:
    for task in tasks:
        if task.id == task_id:
            return task
    raise TaskNotFoundError(task_id, list_id)


def _parse_update(task_id: str, dependencies: Any) -> Tuple[Optional[DependencyUpdate], Optional[dict]]:
    try:
        return DependencyUpdate(task_id=task_id, dependencies=dependencies), None
    except ValidationError as e:
        first = e.errors()[0]
        field_name = str(first["loc"][0]) if first.get("loc") else None
        return None, asdict(
            validation_error(
                f"Invalid dependency update: {first.get('msg', str(e))}",
                field=field_name,
                error_code=ErrorCode.INVALID_FORMAT,
                remediation="Provide task_id as a string and dependencies as a list of task ids",
            )
        )


def _graph_warnings(graph: DependencyGraph) -> List[str]:
    warnings = [
        f"Dependency cycle detected among tasks: {format_cycle(cycle)}" for cycle in graph.cycles
    ]
    warnings.extend(
        f"Task '{task_id}' references missing dependencies: {', '.join(missing)}"
        for task_id, missing in graph.dangling.items()
    )
    return warnings


def handle_dependency_graph(ctx: DependencyToolContext, *, list_id: str) -> dict:
    """Return the dependency graph of a list; cycles and dangling ids become warnings."""
    tasks, error = _load_tasks(ctx, list_id)
    if error is not None:
        return error
    graph, cached = _graph_for(ctx, list_id, tasks)

    return asdict(
        success_response(
            list_id=list_id,
            graph=graph.to_dict(),
            has_cycles=graph.has_cycles,
            cached=cached,
            warnings=_graph_warnings(graph),
        )
    )


def handle_ready_tasks(
    ctx: DependencyToolContext, *, list_id: str, limit: Optional[int] = None
) -> dict:
    """Return ready tasks ordered by priority then age, capped at ``limit``."""
    effective_limit = limit if limit is not None else ctx.config.ready_tasks_default_limit
    if effective_limit < 1:
        return asdict(
            validation_error(
                f"limit must be at least 1, got {effective_limit}",
                field="limit",
                remediation="Provide a positive limit",
            )
        )

    tasks, error = _load_tasks(ctx, list_id)
    if error is not None:
        return error
    ready = sort_ready_tasks(get_ready_items(tasks))

    return asdict(
        success_response(
            list_id=list_id,
            tasks=[task.model_dump(mode="json") for task in ready[:effective_limit]],
            total_ready=len(ready),
            limit=effective_limit,
        )
    )


def handle_validate_dependencies(
    ctx: DependencyToolContext, *, list_id: str, task_id: str, dependencies: Any
) -> dict:
    """Return the validator's verdict without writing anything."""
    update, error = _parse_update(task_id, dependencies)
    if error is not None:
        return error
    tasks, error = _load_tasks(ctx, list_id)
    if error is not None:
        return error

    result = validate_dependencies(
        update.task_id,
        update.dependencies,
        tasks,
        max_dependencies=ctx.config.max_dependencies_per_task,
    )
    return asdict(
        success_response(
            list_id=list_id,
            task_id=update.task_id,
            summary=format_validation_error(result),
            warnings=result.warnings,
            data=result.to_dict(),
        )
    )


def handle_set_dependencies(
    ctx: DependencyToolContext, *, list_id: str, task_id: str, dependencies: Any
) -> dict:
    """Validate and, if accepted, persist a task's new dependency set."""
    update, error = _parse_update(task_id, dependencies)
    if error is not None:
        return error
    tasks, error = _load_tasks(ctx, list_id)
    if error is not None:
        return error
    task = _find_task(tasks, update.task_id, list_id)

    result = validate_dependencies(
        update.task_id,
        update.dependencies,
        tasks,
        max_dependencies=ctx.config.max_dependencies_per_task,
    )
    if not result.is_valid:
        return asdict(
            dependency_rejected_error(
                update.task_id,
                errors=result.errors,
                warnings=result.warnings,
                circular_dependencies=result.circular_dependencies,
                self_reference=update.task_id in update.dependencies,
            )
        )

    updated = task.model_copy(update={"dependencies": dedupe_ids(update.dependencies)})
    ctx.store.save_task(list_id, updated)
    if ctx.cache is not None:
        ctx.cache.invalidate(list_id)

    snapshot = [updated if t.id == updated.id else t for t in tasks]
    logger.info(
        "Task dependencies updated",
        extra={"list_id": list_id, "task_id": updated.id, "dependency_count": len(updated.dependencies)},
    )
    return asdict(
        success_response(
            list_id=list_id,
            task_id=updated.id,
            dependencies=list(updated.dependencies),
            blocked_by=calculate_block_reason(updated, snapshot),
            warnings=result.warnings,
        )
    )


def handle_block_reason(ctx: DependencyToolContext, *, list_id: str, task_id: str) -> dict:
    """Return why a single task is not ready."""
    tasks, error = _load_tasks(ctx, list_id)
    if error is not None:
        return error
    task = _find_task(tasks, task_id, list_id)
    graph, _ = _graph_for(ctx, list_id, tasks)
    node = graph.nodes[task.id]
    tasks_by_id = {t.id: t for t in tasks}

    return asdict(
        success_response(
            list_id=list_id,
            task_id=task.id,
            blocked_by=list(node.blocked_by),
            details=[
                {
                    "task_id": dep_id,
                    "title": tasks_by_id[dep_id].title,
                    "status": tasks_by_id[dep_id].status.value,
                }
                for dep_id in node.blocked_by
            ],
            missing_dependencies=list(node.missing_dependencies),
            is_ready=node.is_ready,
        )
    )


def handle_dependency_analysis(ctx: DependencyToolContext, *, list_id: str) -> dict:
    """Return counts, chains, bottlenecks and recommendations for a whole list."""
    tasks, error = _load_tasks(ctx, list_id)
    if error is not None:
        return error
    analysis = analyze_dependencies(tasks)

    return asdict(
        success_response(
            data=analysis.to_dict(),
            list_id=list_id,
            warnings=[f"Dependency cycle detected among tasks: {format_cycle(c)}" for c in analysis.cycles],
        )
    )


def handle_task_plan(ctx: DependencyToolContext, *, list_id: str) -> dict:
    """Return a suggested execution order and the critical path of a list."""
    tasks, error = _load_tasks(ctx, list_id)
    if error is not None:
        return error

    return asdict(
        success_response(
            list_id=list_id,
            suggested_order=[task.id for task in suggest_task_order(tasks)],
            critical_path=calculate_critical_path(tasks),
        )
    )


_HANDLERS: Dict[str, Callable[..., dict]] = {
    "dependency-graph": handle_dependency_graph,
    "dependency-ready": handle_ready_tasks,
    "dependency-validate": handle_validate_dependencies,
    "dependency-set": handle_set_dependencies,
    "dependency-block-reason": handle_block_reason,
    "dependency-plan": handle_task_plan,
    "dependency-analyze": handle_dependency_analysis,
}


def register_dependency_tools(
    mcp: FastMCP,
    config: ServerConfig,
    store: TaskStore,
    cache: Optional[GraphCache] = None,
) -> DependencyToolContext:
    """
    Register dependency tools with the FastMCP server.

    Args:
        mcp: FastMCP server instance
        config: Server configuration
        store: Task store the tools read from and write to
        cache: Optional derived-graph cache

    Returns:
        The context shared by the registered tools
    """
    ctx = DependencyToolContext(store=store, config=config, cache=cache)

    @canonical_tool(mcp, canonical_name="dependency-graph")
    def dependency_graph(list_id: str) -> dict:
        """
        Get the dependency graph of a task list.

        Returns nodes with dependencies, dependents, depth, readiness and
        blocking ids, plus roots, leaves and any cycles found.
        """
        return _run("dependency-graph", handle_dependency_graph, ctx, list_id=list_id)

    @canonical_tool(mcp, canonical_name="dependency-ready")
    def dependency_ready(list_id: str, limit: Optional[int] = None) -> dict:
        """
        Get tasks that can be started now.

        Sorted by priority (highest first), then creation time (oldest first).
        """
        return _run("dependency-ready", handle_ready_tasks, ctx, list_id=list_id, limit=limit)

    @canonical_tool(mcp, canonical_name="dependency-validate")
    def dependency_validate(list_id: str, task_id: str, dependencies: List[str]) -> dict:
        """Check a proposed dependency set for a task without saving it."""
        return _run(
            "dependency-validate",
            handle_validate_dependencies,
            ctx,
            list_id=list_id,
            task_id=task_id,
            dependencies=dependencies,
        )

    @canonical_tool(mcp, canonical_name="dependency-set")
    def dependency_set(list_id: str, task_id: str, dependencies: List[str]) -> dict:
        """Replace a task's dependencies after validating them."""
        return _run(
            "dependency-set",
            handle_set_dependencies,
            ctx,
            list_id=list_id,
            task_id=task_id,
            dependencies=dependencies,
        )

    @canonical_tool(mcp, canonical_name="dependency-block-reason")
    def dependency_block_reason(list_id: str, task_id: str) -> dict:
        """List the incomplete dependencies blocking a task."""
        return _run("dependency-block-reason", handle_block_reason, ctx, list_id=list_id, task_id=task_id)

    @canonical_tool(mcp, canonical_name="dependency-plan")
    def dependency_plan(list_id: str) -> dict:
        """Suggest an execution order and report the critical path."""
        return _run("dependency-plan", handle_task_plan, ctx, list_id=list_id)

    @canonical_tool(mcp, canonical_name="dependency-analyze")
    def dependency_analyze(list_id: str) -> dict:
        """
        Analyze the dependency structure of a whole list.

        Reports status counts, per-task chains, the critical path,
        bottlenecks, cycles and recommendations on what to do next.
        """
        return _run("dependency-analyze", handle_dependency_analysis, ctx, list_id=list_id)

    logger.debug("Registered dependency tools", extra={"tools": sorted(_HANDLERS)})
    return ctx
