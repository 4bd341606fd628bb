"""plandeps - dependency graph and execution ordering for multi-step plans."""

from .analyzer import DependencyAnalyzer
from .extractor import extract_dependencies, extract_dependencies_from_file, parse_all_dependencies
from .graph import build_graph, detect_cycles
from .loader import load_plan
from .models import (
    CriticalPath,
    DependencyError,
    DependencyGraph,
    DependencyValidation,
    DependencyWarning,
    ExecutionOrder,
    Plan,
    Step,
    StepDependency,
)
from .ordering import compute_execution_order, find_critical_path
from .queries import get_blocked_steps, get_dependency_chain, get_ready_steps
from .validation import validate

__all__ = [
    "DependencyAnalyzer",
    "extract_dependencies",
    "extract_dependencies_from_file",
    "parse_all_dependencies",
    "build_graph",
    "detect_cycles",
    "validate",
    "compute_execution_order",
    "find_critical_path",
    "get_ready_steps",
    "get_blocked_steps",
    "get_dependency_chain",
    "load_plan",
    "CriticalPath",
    "DependencyError",
    "DependencyGraph",
    "DependencyValidation",
    "DependencyWarning",
    "ExecutionOrder",
    "Plan",
    "Step",
    "StepDependency",
]
