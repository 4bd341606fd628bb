"""Unit tests for dependency graph construction and cycle detection."""

import pytest

from plandeps.graph import build_graph, detect_cycles, normalize_cycle, step_numbers
from plandeps.models import Step, StepDependency


class TestStepNumbers:
    """Test cases for roster normalization."""

    def test_numbers_pass_through(self):
        """Test that plain numbers are kept in order."""
        assert step_numbers([3, 1, 2]) == [3, 1, 2]

    def test_step_records(self):
        """Test roster normalization from Step records."""
        assert step_numbers([Step(number=2), Step(number=1)]) == [2, 1]

    def test_duplicates_are_dropped(self):
        """Test that repeated roster entries are dropped."""
        assert step_numbers([1, 1, 2]) == [1, 2]


class TestBuildGraph:
    """Test cases for build_graph."""

    def test_empty_roster(self):
        """Test building a graph with no steps."""
        graph = build_graph([], {})

        assert graph.dependencies == {}
        assert graph.roots == []
        assert graph.leaves == []
        assert graph.has_circular is False
        assert graph.circular_chains == []

    def test_linear_chain(self):
        """Test edges, roots and leaves of a linear chain."""
        graph = build_graph([1, 2, 3], {1: [], 2: [1], 3: [2]})

        assert graph.dependencies[2].depends_on == [1]
        assert graph.dependencies[1].blocked_by == [2]
        assert graph.dependencies[2].blocked_by == [3]
        assert graph.roots == [1]
        assert graph.leaves == [3]
        assert graph.has_circular is False

    def test_edges_are_bidirectional(self):
        """Test that depends_on and blocked_by mirror each other."""
        raw = {1: [], 2: [1], 3: [1], 4: [2, 3], 5: [1, 4]}
        graph = build_graph([1, 2, 3, 4, 5], raw)

        for number, step_dep in graph.dependencies.items():
            for dep in step_dep.depends_on:
                assert number in graph.dependencies[dep].blocked_by
            for dependent in step_dep.blocked_by:
                assert number in graph.dependencies[dependent].depends_on

    def test_blocked_by_is_ascending(self):
        """Test that blocked_by lists are ascending."""
        graph = build_graph([1, 2, 3, 4], {4: [1], 2: [1], 3: [1]})
        assert graph.dependencies[1].blocked_by == [2, 3, 4]

    def test_isolated_step_is_root_and_leaf(self):
        """Test that an isolated step is both root and leaf."""
        graph = build_graph([1, 2, 3], {2: [1]})

        assert 3 in graph.roots
        assert 3 in graph.leaves
        assert graph.roots == [1, 3]
        assert graph.leaves == [2, 3]

    def test_out_of_roster_references_are_dropped(self):
        """Test that references outside the roster are not edges."""
        graph = build_graph([1, 2], {1: [], 2: [1, 99]})

        assert graph.dependencies[2].depends_on == [1]
        assert 99 not in graph.dependencies

    def test_step_with_only_invalid_references_is_a_root(self):
        """Test that a step with only invalid references is a root."""
        graph = build_graph([1, 2], {2: [7]})
        assert graph.roots == [1, 2]

    def test_self_reference_is_not_an_edge(self):
        """Test that a self reference is not an edge."""
        graph = build_graph([1, 2, 3], {3: [3, 1]})

        assert graph.dependencies[3].depends_on == [1]
        assert 3 not in graph.dependencies[3].blocked_by
        assert graph.has_circular is False

    def test_duplicates_are_collapsed(self):
        """Test that duplicate declarations become one edge."""
        graph = build_graph([1, 2], {2: [1, 1, 1]})

        assert graph.dependencies[2].depends_on == [1]
        assert graph.dependencies[1].blocked_by == [2]

    def test_raw_entries_for_unknown_steps_are_ignored(self):
        """Test that declarations of unknown steps are ignored."""
        graph = build_graph([1], {1: [], 5: [1]})

        assert list(graph.dependencies) == [1]
        assert graph.dependencies[1].blocked_by == []

    def test_accepts_step_records(self):
        """Test building from Step records."""
        steps = [Step(number=1), Step(number=2)]
        graph = build_graph(steps, {2: [1]})
        assert graph.roots == [1]

    def test_mutual_dependency(self):
        """Test a two step cycle."""
        graph = build_graph([1, 2], {1: [2], 2: [1]})

        assert graph.has_circular is True
        assert graph.circular_chains == [[1, 2, 1]]
        assert graph.roots == []
        assert graph.leaves == []

    def test_build_does_not_mutate_input(self):
        """Test that raw declarations are left untouched."""
        raw = {2: [1, 1, 9]}
        build_graph([1, 2], raw)
        assert raw == {2: [1, 1, 9]}


class TestNormalizeCycle:
    """Test cases for cycle rotation."""

    @pytest.mark.parametrize(
        "cycle, expected",
        [
            ([1, 2, 1], [1, 2, 1]),
            ([2, 1, 2], [1, 2, 1]),
            ([3, 1, 2, 3], [1, 2, 3, 1]),
            ([5, 4, 6, 5], [4, 6, 5, 4]),
            ([7], [7, 7]),
            ([], []),
        ],
    )
    def test_rotation(self, cycle, expected):
        """Test rotating cycles to start at the smallest step."""
        assert normalize_cycle(cycle) == expected


class TestDetectCycles:
    """Test cases for detect_cycles."""

    def _deps(self, raw):
        return {
            number: StepDependency(step_number=number, depends_on=sorted(deps))
            for number, deps in raw.items()
        }

    def test_acyclic(self):
        """Test an acyclic graph."""
        assert detect_cycles(self._deps({1: [], 2: [1], 3: [1, 2]})) == []

    def test_two_cycle_found_once(self):
        """Test that a two step cycle is reported once."""
        assert detect_cycles(self._deps({1: [2], 2: [1]})) == [[1, 2, 1]]

    def test_three_cycle_found_once(self):
        """Test that a three step cycle is reported once."""
        cycles = detect_cycles(self._deps({1: [3], 2: [1], 3: [2]}))
        assert cycles == [[1, 3, 2, 1]]

    def test_disjoint_cycles(self):
        """Test two unrelated cycles."""
        cycles = detect_cycles(self._deps({1: [2], 2: [1], 3: [4], 4: [3], 5: []}))
        assert sorted(cycles) == [[1, 2, 1], [3, 4, 3]]

    def test_self_loop(self):
        """Test a self edge passed in directly."""
        assert detect_cycles(self._deps({1: [1]})) == [[1, 1]]

    def test_cycle_reached_from_outside(self):
        """Test a cycle entered from a step outside it."""
        cycles = detect_cycles(self._deps({1: [2], 2: [3], 3: [2]}))
        assert cycles == [[2, 3, 2]]

    def test_every_cycle_starts_at_smallest_member(self):
        """Test normalization of overlapping cycles."""
        cycles = detect_cycles(self._deps({1: [2], 2: [3], 3: [1, 4], 4: [2]}))

        assert cycles
        for cycle in cycles:
            assert cycle[0] == min(cycle)
            assert cycle[0] == cycle[-1]
        assert len(cycles) == len({tuple(c) for c in cycles})

    def test_empty(self):
        """Test detecting cycles with no steps."""
        assert detect_cycles({}) == []
