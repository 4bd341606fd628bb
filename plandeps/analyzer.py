"""Plan-level dependency analysis.

This module ties the loader and the graph engine together and returns
JSON-ready dictionaries for the MCP tools. The plan is reloaded and the
graph rebuilt on every call so results always reflect the files on disk.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Tuple

from .graph import build_graph
from .loader import load_plan
from .models import DependencyGraph, Plan
from .ordering import compute_execution_order, find_critical_path
from .plandeps_logging import (
    log_error_with_context,
    log_graph_built,
    log_operation,
    log_performance,
    log_validation_result,
)
from .queries import get_blocked_steps, get_dependency_chain, get_ready_steps
from .validation import validate


class DependencyAnalyzer:
    """Answer dependency questions about the plan stored at ``plan_path``."""

    def __init__(self, plan_path: Path | str):
        self.plan_path = Path(plan_path).expanduser()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load(self) -> Tuple[Plan, DependencyGraph]:
        plan = load_plan(self.plan_path)
        graph = build_graph(plan.steps, plan.raw_dependencies())
        log_graph_built(plan.code, len(plan.steps), graph.has_circular)
        return plan, graph

    def _error(self, operation: str, error: Exception) -> Dict[str, Any]:
        log_error_with_context(error, {"operation": operation, "plan_path": str(self.plan_path)})
        return {
            "error": str(error),
            "suggestion": "Check that the plan path exists and contains numbered step files such as plan/01-setup.md",
            "plan_path": str(self.plan_path),
        }

    # ------------------------------------------------------------------
    # Whole-plan analysis
    # ------------------------------------------------------------------

    @log_performance("analyze_plan")
    def analyze(self) -> Dict[str, Any]:
        """Graph, validation, execution order and critical path in one result."""
        try:
            with log_operation("analyze_plan", plan_path=str(self.plan_path)):
                plan, graph = self._load()
                validation = validate(plan.steps, plan.raw_dependencies(), graph)
                order = compute_execution_order(plan.steps, graph)
                critical = find_critical_path(plan.steps, graph)
                log_validation_result(plan.code, validation.valid, len(validation.errors), len(validation.warnings))
        except ValueError as e:
            return self._error("analyze_plan", e)

        return {
            "plan": {"code": plan.code, "name": plan.name, "path": str(plan.path)},
            "steps": [step.to_dict() for step in plan.steps],
            "graph": graph.to_dict(),
            "validation": validation.to_dict(),
            "execution_order": order.to_dict(),
            "critical_path": critical.to_dict(),
            "message": (
                f"Analyzed {len(plan.steps)} steps: "
                f"{len(validation.errors)} errors, {len(validation.warnings)} warnings"
            ),
        }

    @log_performance("validate_dependencies")
    def validate(self) -> Dict[str, Any]:
        """Dependency errors and warnings for the plan."""
        try:
            plan, graph = self._load()
        except ValueError as e:
            return self._error("validate_dependencies", e)

        validation = validate(plan.steps, plan.raw_dependencies(), graph)
        log_validation_result(plan.code, validation.valid, len(validation.errors), len(validation.warnings))

        result = validation.to_dict()
        if validation.valid:
            result["message"] = "Dependencies are valid"
        else:
            result["message"] = f"Found {len(validation.errors)} dependency errors"
            result["suggestion"] = "Fix the listed step files; circular and invalid references block ordering"
        return result

    def execution_order(self) -> Dict[str, Any]:
        try:
            plan, graph = self._load()
        except ValueError as e:
            return self._error("execution_order", e)

        result = compute_execution_order(plan.steps, graph).to_dict()
        result["has_circular"] = graph.has_circular
        if graph.has_circular:
            result["message"] = "Plan has circular dependencies; steps are listed in numeric order"
        else:
            result["message"] = f"{len(result['levels'])} execution levels"
        return result

    def critical_path(self) -> Dict[str, Any]:
        try:
            plan, graph = self._load()
        except ValueError as e:
            return self._error("critical_path", e)

        result = find_critical_path(plan.steps, graph).to_dict()
        if graph.has_circular:
            result["message"] = "Critical path is undefined for plans with circular dependencies"
        else:
            result["message"] = f"Critical path has {result['length']} steps"
        return result

    # ------------------------------------------------------------------
    # Step queries
    # ------------------------------------------------------------------

    def ready_steps(self) -> Dict[str, Any]:
        """Pending steps whose dependencies are all completed."""
        try:
            plan, graph = self._load()
        except ValueError as e:
            return self._error("ready_steps", e)

        ready = get_ready_steps(plan.steps, graph)
        return {
            "steps": [step.to_dict() for step in ready],
            "count": len(ready),
            "message": f"{len(ready)} steps ready to start" if ready else "No steps are ready to start",
        }

    def blocked_steps(self, step_number: int) -> Dict[str, Any]:
        """Steps waiting on ``step_number``."""
        try:
            plan, graph = self._load()
        except ValueError as e:
            return self._error("blocked_steps", e)

        blocked = get_blocked_steps(plan.steps, step_number, graph)
        result: Dict[str, Any] = {
            "step_number": step_number,
            "steps": [step.to_dict() for step in blocked],
            "count": len(blocked),
        }
        if plan.get_step(step_number) is None:
            result["message"] = f"Step {step_number} is not part of the plan"
        else:
            result["message"] = f"{len(blocked)} steps wait on Step {step_number}"
        return result

    def dependency_chain(self, step_number: int) -> Dict[str, Any]:
        """Every step that must finish before ``step_number``."""
        try:
            plan, graph = self._load()
        except ValueError as e:
            return self._error("dependency_chain", e)

        chain = get_dependency_chain(graph, step_number)
        result: Dict[str, Any] = {"step_number": step_number, "chain": chain}
        if plan.get_step(step_number) is None:
            result["message"] = f"Step {step_number} is not part of the plan"
        else:
            result["message"] = f"Step {step_number} depends on {len(chain)} steps"
        return result

