"""Cycle detection over dependency edges.

Edges run from a task to each task it depends on. Detection is an iterative
depth-first search with an on-stack set, so long dependency chains never hit
the interpreter recursion limit.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from taskgraph_mcp.core.dependencies.models import DependencyGraph

logger = logging.getLogger(__name__)

_EXHAUSTED = object()


def find_cycles_in_map(
    adjacency: Mapping[str, Sequence[str]],
    start: Optional[Iterable[str]] = None,
) -> List[List[str]]:
    """
    Find cycles in an adjacency map of ``node -> dependency ids``.

    Every node is used as a DFS root at most once. When the search reaches a
    node that is still on the current path, the path from that node to the
    current node is emitted as one cycle. Targets absent from ``adjacency``
    are treated as leaves.

    Args:
        adjacency: Mapping of node id to the ids it depends on
        start: Optional ids to use as DFS roots first (remaining nodes follow
            in mapping order)

    Returns:
        List of cycles in traversal order; the first id is not repeated
    """
    cycles: List[List[str]] = []
    visited = set()
    on_stack = set()

    roots: List[str] = list(start) if start is not None else []
    roots.extend(adjacency.keys())

    for root in roots:
        if root in visited:
            continue

        path: List[str] = [root]
        position: Dict[str, int] = {root: 0}
        iterators = [iter(adjacency.get(root, ()))]
        visited.add(root)
        on_stack.add(root)

        while iterators:
            current = path[-1]
            next_id = next(iterators[-1], _EXHAUSTED)

            if next_id is _EXHAUSTED:
                iterators.pop()
                path.pop()
                on_stack.discard(current)
                position.pop(current, None)
                continue

            if next_id in on_stack:
                cycles.append(path[position[next_id]:])
                continue

            if next_id in visited:
                continue

            visited.add(next_id)
            on_stack.add(next_id)
            position[next_id] = len(path)
            path.append(next_id)
            iterators.append(iter(adjacency.get(next_id, ())))

    return cycles


def find_cycles(graph: DependencyGraph) -> List[List[str]]:
    """Return every cycle among the graph's dependency edges."""
    adjacency = {node_id: node.dependencies for node_id, node in graph.nodes.items()}
    cycles = find_cycles_in_map(adjacency)

    logger.debug(
        "Cycle detection completed",
        extra={"node_count": len(adjacency), "cycle_count": len(cycles)},
    )
    return cycles


def rotate_cycle(cycle: Sequence[str], first: str) -> List[str]:
    """Rotate ``cycle`` so it starts at ``first`` (unchanged if absent)."""
    if first not in cycle:
        return list(cycle)
    index = list(cycle).index(first)
    return list(cycle[index:]) + list(cycle[:index])


def format_cycle(cycle: Sequence[str]) -> str:
    """Render a cycle as a closed path, e.g. ``a -> b -> a``."""
    if not cycle:
        return ""
    return " -> ".join(list(cycle) + [cycle[0]])
