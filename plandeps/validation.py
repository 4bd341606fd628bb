"""Structural validation of plan dependencies.

Problems are returned as :class:`DependencyError` / :class:`DependencyWarning`
values and never raised, so the caller decides whether an invalid plan
fails a build or is only reported.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Set

from .graph import step_numbers
from .models import (
    DependencyError,
    DependencyGraph,
    DependencyValidation,
    DependencyWarning,
)

logger = logging.getLogger(__name__)

LONG_CHAIN_THRESHOLD = 5
BOTTLENECK_THRESHOLD = 3


def _format_chain(chain: Sequence[int]) -> str:
    return " → ".join(f"Step {n}" for n in chain)


def longest_chain(graph: DependencyGraph) -> int:
    """Number of steps in the longest dependency chain; 0 for cyclic graphs."""
    if graph.has_circular:
        return 0

    memo: Dict[int, int] = {}
    visiting: Set[int] = set()

    def chain_length(node: int) -> int:
        if node in memo:
            return memo[node]
        if node in visiting:
            return 0

        visiting.add(node)
        step_dep = graph.dependencies.get(node)
        if step_dep is None or not step_dep.depends_on:
            result = 1
        else:
            result = max(chain_length(dep) for dep in step_dep.depends_on) + 1
        visiting.discard(node)
        memo[node] = result
        return result

    return max((chain_length(node) for node in graph.dependencies), default=0)


def validate(
    roster: Iterable[Any],
    raw_deps: Mapping[int, Sequence[int]],
    graph: DependencyGraph,
    *,
    long_chain_threshold: int = LONG_CHAIN_THRESHOLD,
    bottleneck_threshold: int = BOTTLENECK_THRESHOLD,
) -> DependencyValidation:
    """Check declared dependencies against the roster and the built graph.

    ``raw_deps`` must be the unfiltered declarations; references the graph
    builder dropped are reported from here.
    """
    known = set(step_numbers(roster))
    errors: List[DependencyError] = []
    warnings: List[DependencyWarning] = []

    for chain in graph.circular_chains:
        errors.append(DependencyError(
            type="circular",
            step_number=chain[0],
            related_steps=list(chain),
            message=f"Circular dependency detected: {_format_chain(chain)}",
        ))

    for step_number, deps in raw_deps.items():
        if step_number in deps:
            errors.append(DependencyError(
                type="self-reference",
                step_number=step_number,
                message=f"Step {step_number} depends on itself",
            ))

        seen: Set[int] = set()
        for dep in deps:
            if dep in seen:
                errors.append(DependencyError(
                    type="duplicate",
                    step_number=step_number,
                    related_steps=[dep],
                    message=f"Step {step_number} has duplicate dependency on Step {dep}",
                ))
            seen.add(dep)

            if dep not in known:
                errors.append(DependencyError(
                    type="invalid-step",
                    step_number=step_number,
                    related_steps=[dep],
                    message=f"Step {step_number} depends on non-existent Step {dep}",
                ))

    chain_length = longest_chain(graph)
    if chain_length > long_chain_threshold:
        warnings.append(DependencyWarning(
            type="long-chain",
            step_number=graph.roots[0] if graph.roots else 1,
            message=(
                f"Plan has a long dependency chain ({chain_length} steps). "
                "Consider parallelizing work."
            ),
        ))

    for step_number, step_dep in sorted(graph.dependencies.items()):
        if len(step_dep.blocked_by) > bottleneck_threshold:
            warnings.append(DependencyWarning(
                type="bottleneck",
                step_number=step_number,
                message=(
                    f"Step {step_number} is a bottleneck "
                    f"({len(step_dep.blocked_by)} steps depend on it)"
                ),
            ))

    logger.debug(f"Dependency validation: {len(errors)} errors, {len(warnings)} warnings")
    return DependencyValidation(valid=not errors, errors=errors, warnings=warnings)
