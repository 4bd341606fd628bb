"""Data models for plandeps.

This module contains the data structures shared by the dependency
extractor, graph builder, validator and ordering engine. Everything here
is derived from step text on demand; nothing is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


STEP_STATUSES = ("pending", "in_progress", "completed", "failed", "blocked", "skipped")

ERROR_TYPES = ("circular", "self-reference", "duplicate", "invalid-step")
WARNING_TYPES = ("long-chain", "bottleneck")


@dataclass(slots=True)
class Step:
    """A numbered unit of work loaded from a step file."""

    number: int
    content: str = ""
    code: str = ""
    filename: str = ""
    title: str = ""
    status: str = "pending"
    path: Optional[Path] = None
    dependencies: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "number": self.number,
            "code": self.code,
            "filename": self.filename,
            "title": self.title,
            "status": self.status,
            "path": str(self.path) if self.path else None,
            "dependencies": list(self.dependencies),
        }

    def with_dependencies(self, dependencies: List[int]) -> "Step":
        """Return a copy of this step with a normalized dependency list."""
        return Step(
            number=self.number,
            content=self.content,
            code=self.code,
            filename=self.filename,
            title=self.title,
            status=self.status,
            path=self.path,
            dependencies=sorted(set(dependencies)),
        )


@dataclass(slots=True)
class Plan:
    """A plan directory and the steps loaded from it."""

    code: str
    name: str
    path: Path
    steps: List[Step] = field(default_factory=list)

    def roster(self) -> List[int]:
        """Step numbers of the plan, in load order."""
        return [step.number for step in self.steps]

    def raw_dependencies(self) -> Dict[int, List[int]]:
        """Declared (unfiltered) dependencies per step."""
        return {step.number: list(step.dependencies) for step in self.steps}

    def get_step(self, number: int) -> Optional[Step]:
        for step in self.steps:
            if step.number == number:
                return step
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "path": str(self.path),
            "steps": [step.to_dict() for step in self.steps],
        }


@dataclass(slots=True)
class StepDependency:
    """Dependency edges of one step.

    ``depends_on`` holds the steps that must finish first, ``blocked_by``
    the steps waiting on this one. Both are ascending and unique.
    """

    step_number: int
    depends_on: List[int] = field(default_factory=list)
    blocked_by: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_number": self.step_number,
            "depends_on": list(self.depends_on),
            "blocked_by": list(self.blocked_by),
        }


@dataclass(slots=True)
class DependencyGraph:
    """Bidirectional dependency graph of a plan."""

    dependencies: Dict[int, StepDependency] = field(default_factory=dict)
    roots: List[int] = field(default_factory=list)
    leaves: List[int] = field(default_factory=list)
    has_circular: bool = False
    circular_chains: List[List[int]] = field(default_factory=list)

    def get(self, step_number: int) -> Optional[StepDependency]:
        return self.dependencies.get(step_number)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "dependencies": {
                str(number): dep.to_dict() for number, dep in sorted(self.dependencies.items())
            },
            "roots": list(self.roots),
            "leaves": list(self.leaves),
            "has_circular": self.has_circular,
            "circular_chains": [list(chain) for chain in self.circular_chains],
        }


@dataclass(slots=True)
class DependencyError:
    """A structural dependency problem. Returned as data, never raised."""

    type: str  # 'circular', 'self-reference', 'duplicate', 'invalid-step'
    step_number: int
    message: str
    related_steps: Optional[List[int]] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "type": self.type,
            "step_number": self.step_number,
            "message": self.message,
        }
        if self.related_steps is not None:
            result["related_steps"] = list(self.related_steps)
        return result


@dataclass(slots=True)
class DependencyWarning:
    """A non-blocking observation about the plan's shape."""

    type: str  # 'long-chain', 'bottleneck'
    step_number: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "step_number": self.step_number,
            "message": self.message,
        }


@dataclass(slots=True)
class DependencyValidation:
    """Result of dependency validation."""

    valid: bool
    errors: List[DependencyError] = field(default_factory=list)
    warnings: List[DependencyWarning] = field(default_factory=list)

    def errors_of_type(self, error_type: str) -> List[DependencyError]:
        return [error for error in self.errors if error.type == error_type]

    def warnings_of_type(self, warning_type: str) -> List[DependencyWarning]:
        return [warning for warning in self.warnings if warning.type == warning_type]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [error.to_dict() for error in self.errors],
            "warnings": [warning.to_dict() for warning in self.warnings],
        }


@dataclass(slots=True)
class ExecutionOrder:
    """Linear order plus groups of steps that can run in parallel."""

    order: List[int] = field(default_factory=list)
    levels: List[List[int]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order": list(self.order),
            "levels": [list(level) for level in self.levels],
        }


@dataclass(slots=True)
class CriticalPath:
    """Longest chain of dependent steps. ``length`` counts steps."""

    path: List[int] = field(default_factory=list)
    length: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"path": list(self.path), "length": self.length}
