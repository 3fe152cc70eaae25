"""Unit tests for taskgraph_mcp.core.dependencies.cycles."""

import pytest

from taskgraph_mcp.core.dependencies import build_graph, find_cycles, find_cycles_in_map, format_cycle
from taskgraph_mcp.core.dependencies.cycles import rotate_cycle


class TestFindCyclesInMap:
    """Tests for DFS cycle detection over an adjacency map."""

    def test_acyclic_map(self):
        assert find_cycles_in_map({"A": [], "B": ["A"], "C": ["A", "B"]}) == []

    def test_two_node_cycle(self):
        cycles = find_cycles_in_map({"A": ["B"], "B": ["A"]})
        assert cycles == [["A", "B"]]

    def test_self_loop_is_single_element_cycle(self):
        assert find_cycles_in_map({"A": ["A"]}) == [["A"]]

    def test_three_node_cycle_in_traversal_order(self):
        cycles = find_cycles_in_map({"A": ["C"], "B": ["A"], "C": ["B"]})
        assert cycles == [["A", "C", "B"]]

    def test_start_controls_first_root(self):
        cycles = find_cycles_in_map({"A": ["C"], "B": ["A"], "C": ["B"]}, start=["B"])
        assert cycles == [["B", "A", "C"]]

    def test_unknown_targets_are_leaves(self):
        assert find_cycles_in_map({"A": ["ghost"]}) == []

    def test_disjoint_cycles_are_all_found(self):
        cycles = find_cycles_in_map({"A": ["B"], "B": ["A"], "C": ["D"], "D": ["C"], "E": []})
        assert sorted(sorted(c) for c in cycles) == [["A", "B"], ["C", "D"]]

    def test_cycle_downstream_of_acyclic_prefix(self):
        cycles = find_cycles_in_map({"root": ["A"], "A": ["B"], "B": ["A"]})
        assert cycles == [["A", "B"]]

    def test_first_id_is_not_repeated(self):
        for cycle in find_cycles_in_map({"A": ["B"], "B": ["C"], "C": ["A"]}):
            assert len(cycle) == len(set(cycle))

    def test_long_cycle_is_iterative(self):
        size = 5000
        adjacency = {f"n{i}": [f"n{(i + 1) % size}"] for i in range(size)}
        cycles = find_cycles_in_map(adjacency)
        assert len(cycles) == 1
        assert len(cycles[0]) == size


class TestFindCycles:
    """Tests for cycle detection on a built graph."""

    def test_mutual_dependency_reports_one_cycle(self, two_cycle_tasks):
        graph = build_graph(two_cycle_tasks)
        assert len(graph.cycles) == 1
        assert set(graph.cycles[0]) == {"A", "B"}
        assert graph.has_cycles is True

    def test_graph_without_cycles(self, chain_tasks):
        graph = build_graph(chain_tasks)
        assert find_cycles(graph) == []

    def test_dangling_edges_do_not_create_cycles(self, make_task):
        graph = build_graph([make_task("A", ["ghost"]), make_task("B", ["A"])])
        assert graph.cycles == []


class TestCycleHelpers:
    """Tests for rotate_cycle and format_cycle."""

    def test_rotate_to_requested_first(self):
        assert rotate_cycle(["B", "A", "C"], "A") == ["A", "C", "B"]

    def test_rotate_missing_first_is_unchanged(self):
        assert rotate_cycle(["B", "C"], "A") == ["B", "C"]

    @pytest.mark.parametrize(
        "cycle,expected",
        [
            (["A", "C", "B"], "A -> C -> B -> A"),
            (["A"], "A -> A"),
            ([], ""),
        ],
    )
    def test_format_cycle(self, cycle, expected):
        assert format_cycle(cycle) == expected
