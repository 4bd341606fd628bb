"""MCP server exposing plan dependency analysis tools."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from plandeps import DependencyAnalyzer, extract_dependencies
from plandeps.plandeps_logging import setup_logging

mcp = FastMCP("plandeps")


PLAN_PATH_ENV = "PLANDEPS_PLAN_PATH"
LOG_LEVEL_ENV = "PLANDEPS_LOG_LEVEL"
LOG_FILE_ENV = "PLANDEPS_LOG_FILE"
STEP_DIR_MARKER = "plan"


def _candidate_bases() -> List[Path]:
    cwd = Path.cwd().resolve()
    return [cwd, *cwd.parents]


def _locate_plan_root() -> Optional[Path]:
    for base in _candidate_bases():
        if (base / STEP_DIR_MARKER).is_dir():
            return base
    return None


def _resolve_plan_path(plan_path: Optional[str]) -> Path:
    if plan_path:
        resolved = Path(plan_path).expanduser().resolve()
        if not resolved.exists():
            raise ValueError(f"Provided plan path '{plan_path}' does not exist.")
        return resolved

    env_path = os.getenv(PLAN_PATH_ENV)
    if env_path:
        resolved = Path(env_path).expanduser().resolve()
        if not resolved.exists():
            raise ValueError(
                f"Environment variable {PLAN_PATH_ENV} points to '{env_path}', which does not exist."
            )
        return resolved

    detected = _locate_plan_root()
    if detected:
        return detected

    raise ValueError(
        "Unable to determine the plan directory automatically. Provide the 'plan_path' argument "
        f"or set the {PLAN_PATH_ENV} environment variable."
    )


def _analyzer(plan_path: Optional[str]) -> DependencyAnalyzer:
    return DependencyAnalyzer(_resolve_plan_path(plan_path))


@mcp.tool()
def analyze_plan(plan_path: Optional[str] = None) -> Dict[str, Any]:
    """Full dependency analysis of a plan: graph, validation, execution order and critical path."""

    return _analyzer(plan_path).analyze()


@mcp.tool()
def validate_dependencies(plan_path: Optional[str] = None) -> Dict[str, Any]:
    """Report circular, self-referencing, duplicate and invalid step dependencies, plus
    long-chain and bottleneck warnings."""

    return _analyzer(plan_path).validate()


@mcp.tool()
def execution_order(plan_path: Optional[str] = None) -> Dict[str, Any]:
    """Order the plan's steps so every dependency comes first, grouped into levels that can run in parallel."""

    return _analyzer(plan_path).execution_order()


@mcp.tool()
def critical_path(plan_path: Optional[str] = None) -> Dict[str, Any]:
    """Find the longest chain of dependent steps in the plan."""

    return _analyzer(plan_path).critical_path()


@mcp.tool()
def ready_steps(plan_path: Optional[str] = None) -> Dict[str, Any]:
    """List pending steps whose dependencies are all completed according to STATUS.md."""

    return _analyzer(plan_path).ready_steps()


@mcp.tool()
def blocked_steps(step_number: int, plan_path: Optional[str] = None) -> Dict[str, Any]:
    """List the steps that wait on the given step."""

    return _analyzer(plan_path).blocked_steps(step_number)


@mcp.tool()
def dependency_chain(step_number: int, plan_path: Optional[str] = None) -> Dict[str, Any]:
    """List every step that must be finished before the given step can start."""

    return _analyzer(plan_path).dependency_chain(step_number)


@mcp.tool()
def extract_step_dependencies(content: str) -> Dict[str, Any]:
    """Extract the step numbers a step's markdown declares as dependencies.

    Recognized forms: `depends-on:` header, a `## Dependencies` bullet list,
    inline `(depends on Step N)` markers and `Requires:` lines."""

    dependencies = extract_dependencies(content)
    return {"dependencies": dependencies, "count": len(dependencies)}


@mcp.resource("plandeps://plan")
def resource_plan() -> str:
    """Execution levels of the plan found from the environment or working directory."""

    try:
        analyzer = _analyzer(None)
    except ValueError:
        return f"No plan detected. Launch tools with a 'plan_path' argument or set {PLAN_PATH_ENV}."

    order = analyzer.execution_order()
    if "error" in order:
        return f"Could not load plan: {order['error']}"
    if not order["order"]:
        return "The plan has no steps yet."

    lines = ["Plan Execution Order"]
    if order["has_circular"]:
        lines.append("")
        lines.append("Circular dependencies detected; steps are listed in numeric order.")
    for index, level in enumerate(order["levels"], start=1):
        lines.append("")
        lines.append(f"- Level {index}: " + ", ".join(f"Step {n}" for n in level))

    return "\n".join(lines)


if __name__ == "__main__":
    log_file = os.getenv(LOG_FILE_ENV)
    setup_logging(os.getenv(LOG_LEVEL_ENV, "INFO").upper(), Path(log_file) if log_file else None)
    mcp.run(transport="stdio")
