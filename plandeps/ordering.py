"""Execution order and critical path over a dependency graph."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from .graph import step_numbers
from .models import CriticalPath, DependencyGraph, ExecutionOrder

logger = logging.getLogger(__name__)


def compute_execution_order(roster: Iterable[Any], graph: DependencyGraph) -> ExecutionOrder:
    """Topological order of the plan with parallel execution levels.

    Steps in one level only depend on steps of earlier levels. A cyclic
    graph has no valid order; the roster is then returned ascending as a
    single level instead of guessing which edge to break.
    """
    numbers = sorted(step_numbers(roster))

    if graph.has_circular:
        logger.debug("Graph is cyclic, falling back to numeric step order")
        return ExecutionOrder(order=list(numbers), levels=[list(numbers)] if numbers else [])

    in_degree: Dict[int, int] = {
        node: len(step_dep.depends_on) for node, step_dep in graph.dependencies.items()
    }
    order: List[int] = []
    levels: List[List[int]] = []
    current = sorted(graph.roots)

    while current:
        levels.append(list(current))
        order.extend(current)

        next_level: List[int] = []
        for node in current:
            for dependent in graph.dependencies[node].blocked_by:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    next_level.append(dependent)
        current = sorted(next_level)

    return ExecutionOrder(order=order, levels=levels)


def find_critical_path(roster: Iterable[Any], graph: DependencyGraph) -> CriticalPath:
    """Longest chain of dependent steps, counted in steps.

    Undefined for cyclic graphs, which yield an empty path.
    """
    if graph.has_circular:
        return CriticalPath(path=[], length=0)

    length: Dict[int, int] = {node: 1 for node in graph.dependencies}
    previous: Dict[int, Optional[int]] = {node: None for node in graph.dependencies}

    for node in compute_execution_order(roster, graph).order:
        for dependent in graph.dependencies[node].blocked_by:
            if length[node] + 1 > length[dependent]:
                length[dependent] = length[node] + 1
                previous[dependent] = node

    end: Optional[int] = None
    best = 0
    for node in sorted(length):
        if length[node] > best:
            best = length[node]
            end = node

    path: List[int] = []
    while end is not None:
        path.append(end)
        end = previous[end]
    path.reverse()

    return CriticalPath(path=path, length=best)
