"""Dependency graph construction and cycle detection.

The graph is rebuilt from the current step text on every call; there is
no incremental maintenance.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Set

from .models import DependencyGraph, StepDependency

logger = logging.getLogger(__name__)


def step_numbers(roster: Iterable[Any]) -> List[int]:
    """Normalize a roster of step numbers or step records to numbers.

    Anything with a ``number`` attribute counts as a step record.
    """
    numbers: List[int] = []
    for entry in roster:
        number = getattr(entry, "number", entry)
        if number not in numbers:
            numbers.append(number)
    return numbers


def build_graph(roster: Iterable[Any], raw_deps: Mapping[int, Sequence[int]]) -> DependencyGraph:
    """Build the dependency graph for ``roster`` from declared dependencies.

    References to steps outside the roster and references of a step to
    itself are left out of the edges; the validator reports both from the
    raw lists. Raw entries for steps that are not in the roster are
    ignored.
    """
    numbers = step_numbers(roster)
    known: Set[int] = set(numbers)
    dependencies: Dict[int, StepDependency] = {
        number: StepDependency(step_number=number) for number in numbers
    }

    for number in sorted(known):
        declared = raw_deps.get(number) or []
        dependencies[number].depends_on = sorted(
            {dep for dep in declared if dep in known and dep != number}
        )

    # Iterating ascending keeps every blocked_by list ascending
    for number in sorted(known):
        for dep in dependencies[number].depends_on:
            dependencies[dep].blocked_by.append(number)

    roots = sorted(n for n, dep in dependencies.items() if not dep.depends_on)
    leaves = sorted(n for n, dep in dependencies.items() if not dep.blocked_by)
    circular_chains = detect_cycles(dependencies)

    logger.debug(
        f"Built dependency graph: {len(dependencies)} steps, "
        f"{len(roots)} roots, {len(leaves)} leaves, {len(circular_chains)} cycles"
    )

    return DependencyGraph(
        dependencies=dependencies,
        roots=roots,
        leaves=leaves,
        has_circular=bool(circular_chains),
        circular_chains=circular_chains,
    )


def normalize_cycle(cycle: Sequence[int]) -> List[int]:
    """Rotate a closed cycle so it starts (and ends) at its smallest member.

    ``[2, 3, 1, 2]`` becomes ``[1, 2, 3, 1]``.
    """
    if not cycle:
        return []
    members = list(cycle[:-1]) if len(cycle) > 1 and cycle[0] == cycle[-1] else list(cycle)
    start = members.index(min(members))
    rotated = members[start:] + members[:start]
    return rotated + [rotated[0]]


def detect_cycles(dependencies: Mapping[int, StepDependency]) -> List[List[int]]:
    """Find circular dependency chains by DFS from every step.

    Each search starts with fresh state, so the same cycle is usually
    found once per member; cycles are normalized by rotation and then
    deduplicated.
    """
    found: List[List[int]] = []

    for start in dependencies:
        visited: Set[int] = set()
        on_stack: Set[int] = set()
        path: List[int] = []

        def dfs(node: int) -> None:
            if node in on_stack:
                cycle_start = path.index(node)
                found.append(path[cycle_start:] + [node])
                return
            if node in visited:
                return

            visited.add(node)
            on_stack.add(node)
            path.append(node)

            step_dep = dependencies.get(node)
            if step_dep is not None:
                for dep in step_dep.depends_on:
                    dfs(dep)

            path.pop()
            on_stack.discard(node)

        dfs(start)

    unique: List[List[int]] = []
    seen: Set[tuple[int, ...]] = set()
    for cycle in found:
        normalized = normalize_cycle(cycle)
        key = tuple(normalized)
        if key not in seen:
            seen.add(key)
            unique.append(normalized)

    if unique:
        logger.debug(f"Detected {len(unique)} circular dependency chains: {unique}")
    return unique
