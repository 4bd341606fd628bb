"""Unit tests for plandeps models.

This module tests the data structures and their serialization helpers.
"""

import pytest
from pathlib import Path

from plandeps.models import (
    CriticalPath,
    DependencyError,
    DependencyGraph,
    DependencyValidation,
    DependencyWarning,
    ExecutionOrder,
    Plan,
    Step,
    StepDependency,
    STEP_STATUSES,
)


class TestStep:
    """Test cases for Step model."""

    def test_step_defaults(self):
        """Test Step defaults."""
        step = Step(number=3)

        assert step.status == "pending"
        assert step.content == ""
        assert step.dependencies == []
        assert step.path is None

    def test_step_to_dict(self):
        """Test Step serialization."""
        step = Step(
            number=2,
            content="# Build\n",
            code="build",
            filename="02-build.md",
            title="Build",
            status="completed",
            path=Path("/plans/demo/plan/02-build.md"),
            dependencies=[1],
        )

        result = step.to_dict()

        assert result["number"] == 2
        assert result["filename"] == "02-build.md"
        assert result["status"] == "completed"
        assert result["path"] == "/plans/demo/plan/02-build.md"
        assert result["dependencies"] == [1]
        assert "content" not in result

    def test_with_dependencies_normalizes(self):
        """Test that with_dependencies sorts and deduplicates."""
        step = Step(number=5, title="Deploy", status="in_progress")

        updated = step.with_dependencies([4, 2, 4, 1])

        assert updated.dependencies == [1, 2, 4]
        assert updated.title == "Deploy"
        assert updated.status == "in_progress"
        assert step.dependencies == []

    def test_known_statuses(self):
        """Test the known step statuses."""
        assert "pending" in STEP_STATUSES
        assert "completed" in STEP_STATUSES


class TestPlan:
    """Test cases for Plan model."""

    @pytest.fixture
    def plan(self):
        return Plan(
            code="demo",
            name="Demo",
            path=Path("/plans/demo"),
            steps=[
                Step(number=1, dependencies=[]),
                Step(number=2, dependencies=[1, 1]),
                Step(number=3, dependencies=[9]),
            ],
        )

    def test_roster(self, plan):
        """Test the plan roster."""
        assert plan.roster() == [1, 2, 3]

    def test_raw_dependencies_keeps_declarations(self, plan):
        """Test that raw dependencies are returned as declared."""
        assert plan.raw_dependencies() == {1: [], 2: [1, 1], 3: [9]}

    def test_get_step(self, plan):
        """Test looking up a step by number."""
        assert plan.get_step(2).number == 2
        assert plan.get_step(42) is None

    def test_to_dict(self, plan):
        """Test Plan serialization."""
        result = plan.to_dict()
        assert result["code"] == "demo"
        assert [s["number"] for s in result["steps"]] == [1, 2, 3]


class TestGraphModels:
    """Test cases for graph result models."""

    def test_step_dependency_to_dict(self):
        """Test StepDependency serialization."""
        dep = StepDependency(step_number=2, depends_on=[1], blocked_by=[3, 4])
        assert dep.to_dict() == {"step_number": 2, "depends_on": [1], "blocked_by": [3, 4]}

    def test_dependency_graph_to_dict_uses_string_keys(self):
        """Test that graph serialization uses string keys."""
        graph = DependencyGraph(
            dependencies={
                2: StepDependency(step_number=2, depends_on=[1]),
                1: StepDependency(step_number=1, blocked_by=[2]),
            },
            roots=[1],
            leaves=[2],
        )

        result = graph.to_dict()

        assert list(result["dependencies"].keys()) == ["1", "2"]
        assert result["roots"] == [1]
        assert result["has_circular"] is False
        assert result["circular_chains"] == []

    def test_dependency_graph_get(self):
        """Test looking up a step's edges."""
        graph = DependencyGraph(dependencies={1: StepDependency(step_number=1)})
        assert graph.get(1).step_number == 1
        assert graph.get(2) is None

    def test_dependency_error_omits_missing_related_steps(self):
        """Test that errors without related steps omit the key."""
        error = DependencyError(type="self-reference", step_number=3, message="Step 3 depends on itself")
        assert "related_steps" not in error.to_dict()

    def test_dependency_error_with_related_steps(self):
        """Test error serialization with related steps."""
        error = DependencyError(
            type="invalid-step", step_number=2, message="bad", related_steps=[7]
        )
        assert error.to_dict()["related_steps"] == [7]

    def test_validation_filters(self):
        """Test filtering errors and warnings by type."""
        validation = DependencyValidation(
            valid=False,
            errors=[
                DependencyError(type="circular", step_number=1, message="c"),
                DependencyError(type="duplicate", step_number=2, message="d"),
            ],
            warnings=[DependencyWarning(type="bottleneck", step_number=1, message="b")],
        )

        assert [e.type for e in validation.errors_of_type("circular")] == ["circular"]
        assert validation.warnings_of_type("long-chain") == []
        assert validation.to_dict()["valid"] is False
        assert len(validation.to_dict()["errors"]) == 2

    def test_execution_order_and_critical_path_to_dict(self):
        """Test ExecutionOrder and CriticalPath serialization."""
        assert ExecutionOrder(order=[1, 2], levels=[[1], [2]]).to_dict() == {
            "order": [1, 2],
            "levels": [[1], [2]],
        }
        assert CriticalPath(path=[1, 2], length=2).to_dict() == {"path": [1, 2], "length": 2}
        assert CriticalPath().to_dict() == {"path": [], "length": 0}
