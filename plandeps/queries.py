"""Queries over a built dependency graph.

Step status is owned by whoever loaded the steps; these helpers only read
it. Unknown step numbers give empty results.
"""

from __future__ import annotations

from typing import List, Sequence, Set

from .models import DependencyGraph, Step


def get_ready_steps(steps: Sequence[Step], graph: DependencyGraph) -> List[Step]:
    """Pending steps whose dependencies are all completed."""
    completed = {step.number for step in steps if step.status == "completed"}

    ready: List[Step] = []
    for step in steps:
        if step.status != "pending":
            continue
        step_dep = graph.dependencies.get(step.number)
        if step_dep is None:
            continue
        if all(dep in completed for dep in step_dep.depends_on):
            ready.append(step)
    return ready


def get_blocked_steps(steps: Sequence[Step], step_number: int, graph: DependencyGraph) -> List[Step]:
    """Steps waiting on ``step_number``, in roster order."""
    step_dep = graph.dependencies.get(step_number)
    if step_dep is None:
        return []
    blocked = set(step_dep.blocked_by)
    return [step for step in steps if step.number in blocked]


def get_dependency_chain(graph: DependencyGraph, step_number: int) -> List[int]:
    """All steps that must finish before ``step_number``, ascending."""
    chain: Set[int] = set()
    visited: Set[int] = set()
    stack = [step_number]

    while stack:
        node = stack.pop()
        if node in visited:
            continue
        visited.add(node)

        step_dep = graph.dependencies.get(node)
        if step_dep is None:
            continue
        for dep in step_dep.depends_on:
            chain.add(dep)
            stack.append(dep)

    return sorted(chain)
