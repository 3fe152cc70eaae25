"""
Unit tests for taskgraph_mcp.core.dependencies.readiness.

Covers depth calculation (including cyclic graphs), readiness and blocking,
and ready-task ordering.
"""

from datetime import datetime, timedelta, timezone

import pytest

from taskgraph_mcp.core.dependencies import (
    Task,
    TaskStatus,
    build_graph,
    compare_ready_tasks,
    is_task_ready,
    ready_sort_key,
    sort_ready_tasks,
)


class TestDepth:
    """Tests for compute_depths via build_graph."""

    def test_chain_depths(self, chain_tasks):
        graph = build_graph(chain_tasks)
        assert graph.nodes["A"].depth == 0
        assert graph.nodes["B"].depth == 1
        assert graph.nodes["C"].depth == 2
        assert graph.unresolved_depth == []

    def test_depth_uses_longest_chain(self, make_task):
        graph = build_graph([
            make_task("A"),
            make_task("B", ["A"]),
            make_task("C", ["B"]),
            make_task("D", ["A", "C"]),
        ])
        assert graph.nodes["D"].depth == 3

    def test_dangling_dependency_does_not_add_depth(self, make_task):
        graph = build_graph([make_task("A", ["ghost"])])
        assert graph.nodes["A"].depth == 0
        assert graph.unresolved_depth == []

    def test_cycle_members_are_unresolved(self, two_cycle_tasks):
        graph = build_graph(two_cycle_tasks)
        assert sorted(graph.unresolved_depth) == ["A", "B"]

    def test_downstream_of_cycle_is_unresolved(self, make_task):
        graph = build_graph([
            make_task("A", ["B"]),
            make_task("B", ["A"]),
            make_task("C", ["A"]),
            make_task("D"),
        ])
        assert graph.unresolved_depth == ["A", "B", "C"]
        assert graph.nodes["D"].depth == 0

    def test_cycle_fallback_depth_ignores_closing_edge(self, make_task):
        graph = build_graph([
            make_task("root"),
            make_task("A", ["root", "B"]),
            make_task("B", ["A"]),
            make_task("C", ["A"]),
        ])
        # A walks to B, whose edge back to A is skipped: B=0, A=1
        assert graph.nodes["B"].depth == 0
        assert graph.nodes["A"].depth == 1
        assert graph.nodes["C"].depth == 2
        assert graph.unresolved_depth == ["A", "B", "C"]
        assert graph.nodes["root"].depth == 0

    def test_self_loop_depth(self, make_task):
        graph = build_graph([make_task("A", ["A"])])
        assert graph.nodes["A"].depth == 0
        assert graph.unresolved_depth == ["A"]


class TestReadiness:
    """Tests for readiness and blocking on the built graph."""

    def test_ready_set_example(self, ready_set_tasks):
        graph = build_graph(ready_set_tasks)
        assert set(graph.ready_items) == {"B", "D"}
        assert graph.blocked_items == ["C"]
        assert graph.nodes["C"].blocked_by == ["B"]

    def test_terminal_tasks_are_neither_ready_nor_blocked(self, make_task):
        graph = build_graph([
            make_task("A", status="completed"),
            make_task("B", ["X"], status="cancelled"),
            make_task("X"),
        ])
        for task_id in ("A", "B"):
            assert graph.nodes[task_id].is_ready is False
            assert graph.nodes[task_id].blocked_by == []
            assert task_id not in graph.ready_items
            assert task_id not in graph.blocked_items

    def test_blocked_status_can_be_ready(self, make_task):
        graph = build_graph([make_task("A", status="blocked")])
        assert graph.nodes["A"].is_ready is True

    def test_cancelled_dependency_blocks_forever(self, make_task):
        graph = build_graph([make_task("A", status="cancelled"), make_task("B", ["A"])])
        assert graph.nodes["B"].is_ready is False
        assert graph.nodes["B"].blocked_by == ["A"]

    @pytest.mark.parametrize("dep_status", ["pending", "in_progress", "blocked", "cancelled"])
    def test_no_false_readiness(self, make_task, dep_status):
        graph = build_graph([
            make_task("done", status="completed"),
            make_task("dep", status=dep_status),
            make_task("T", ["done", "dep"]),
        ])
        assert graph.nodes["T"].is_ready is False
        assert "dep" in graph.nodes["T"].blocked_by

    @pytest.mark.parametrize("own_status", ["pending", "in_progress", "blocked"])
    def test_readiness_monotonicity(self, make_task, own_status):
        before = [
            make_task("A", status="in_progress"),
            make_task("B"),
            make_task("T", ["A", "B"], status=own_status),
        ]
        assert build_graph(before).nodes["T"].is_ready is False

        after = [dict(t, status="completed") if t["id"] in ("A", "B") else t for t in before]
        assert build_graph(after).nodes["T"].is_ready is True

    def test_cycle_members_are_blocked(self, two_cycle_tasks):
        graph = build_graph(two_cycle_tasks)
        assert graph.ready_items == []
        assert graph.nodes["A"].blocked_by == ["B"]
        assert graph.nodes["B"].blocked_by == ["A"]


class TestIsTaskReady:
    """Tests for the single-task readiness check."""

    def test_ready_when_all_dependencies_completed(self):
        tasks = {"A": Task(id="A", status=TaskStatus.COMPLETED)}
        assert is_task_ready(Task(id="B", dependencies=["A"]), tasks) is True

    def test_not_ready_with_missing_dependency(self):
        assert is_task_ready(Task(id="B", dependencies=["ghost"]), {}) is False

    def test_terminal_task_is_not_ready(self):
        assert is_task_ready(Task(id="A", status=TaskStatus.COMPLETED), {}) is False


class TestReadyOrdering:
    """Tests for the ready-task comparator."""

    @pytest.fixture
    def base(self):
        return datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_higher_priority_first(self, base):
        low = Task(id="low", priority=1, created_at=base)
        high = Task(id="high", priority=5, created_at=base + timedelta(days=1))
        assert [t.id for t in sort_ready_tasks([low, high])] == ["high", "low"]

    def test_older_first_on_equal_priority(self, base):
        new = Task(id="new", created_at=base + timedelta(hours=1))
        old = Task(id="old", created_at=base)
        assert [t.id for t in sort_ready_tasks([new, old])] == ["old", "new"]

    def test_id_breaks_full_ties(self, base):
        b = Task(id="b", created_at=base)
        a = Task(id="a", created_at=base)
        assert compare_ready_tasks(a, b) == -1
        assert compare_ready_tasks(b, a) == 1
        assert compare_ready_tasks(a, a) == 0

    def test_naive_timestamps_compare_as_utc(self, base):
        naive = Task(id="naive", created_at=datetime(2024, 12, 31, 23, 0))
        aware = Task(id="aware", created_at=base)
        assert [t.id for t in sort_ready_tasks([aware, naive])] == ["naive", "aware"]

    def test_sort_key_matches_comparator(self, base):
        tasks = [
            Task(id="x", priority=2, created_at=base),
            Task(id="y", priority=4, created_at=base + timedelta(minutes=5)),
            Task(id="z", priority=4, created_at=base),
        ]
        assert sort_ready_tasks(tasks) == sorted(tasks, key=ready_sort_key)
