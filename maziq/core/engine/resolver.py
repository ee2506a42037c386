"""
Dependency resolver — requested ids → deterministic execution order.

Pure functions, no I/O. The dependency graph is derived on every call
from ``Software.dependencies`` for the requested closure only; it is
never stored.

Ordering: Kahn's algorithm over the closure. Among nodes that become
ready together, the lexically smallest id goes first, so the same
request always yields the same order regardless of input order.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterable

from maziq.core.catalog import Catalog
from maziq.core.errors import DependencyCycle, MissingDependency
from maziq.core.models.action import Action


def closure(requested_ids: Iterable[str], catalog: Catalog) -> dict[str, tuple[str, ...]]:
    """Transitive closure over dependencies, as canonical id → canonical deps.

    Raises:
        MissingDependency: A requested id or a dependency is not in the catalog.
    """
    graph: dict[str, tuple[str, ...]] = {}
    stack: list[str] = []
    for sid in requested_ids:
        canonical = catalog.canonical(sid)
        if canonical is None:
            raise MissingDependency(sid)
        stack.append(canonical)

    while stack:
        sid = stack.pop()
        if sid in graph:
            continue
        software = catalog.get(sid)
        deps: list[str] = []
        for dep in software.dependencies:
            canonical = catalog.canonical(dep)
            if canonical is None:
                raise MissingDependency(dep, required_by=sid)
            deps.append(canonical)
            if canonical not in graph:
                stack.append(canonical)
        graph[sid] = tuple(deps)
    return graph


def resolve(requested_ids: Iterable[str], catalog: Catalog) -> list[str]:
    """Order the closure of ``requested_ids`` so dependencies come first.

    Raises:
        MissingDependency: Unknown id, requested or as a dependency.
        DependencyCycle: The closure contains a cycle.
    """
    graph = closure(requested_ids, catalog)

    in_degree = {sid: len(deps) for sid, deps in graph.items()}
    dependents: dict[str, list[str]] = {sid: [] for sid in graph}
    for sid, deps in graph.items():
        for dep in deps:
            dependents[dep].append(sid)

    ready = [sid for sid, deg in in_degree.items() if deg == 0]
    heapq.heapify(ready)
    order: list[str] = []
    while ready:
        node = heapq.heappop(ready)
        order.append(node)
        for successor in dependents[node]:
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                heapq.heappush(ready, successor)

    if len(order) < len(graph):
        leftover = {sid for sid, deg in in_degree.items() if deg > 0}
        raise DependencyCycle(_find_cycle(graph, leftover))
    return order


def _find_cycle(graph: dict[str, tuple[str, ...]], leftover: set[str]) -> list[str]:
    """Walk leftover nodes along dependency edges until one repeats.

    Every leftover node still has a leftover dependency, so the walk
    cannot dead-end and the repeated suffix is a real cycle.
    """
    node = min(leftover)
    path: list[str] = []
    position: dict[str, int] = {}
    while node not in position:
        position[node] = len(path)
        path.append(node)
        node = min(d for d in graph[node] if d in leftover)
    return path[position[node]:]


def plan(requested_ids: Iterable[str], catalog: Catalog, action: Action) -> list[str]:
    """Execution order for ``action``.

    Uninstall runs in reverse (dependents are removed before the
    prerequisites they need) and only touches the requested entries:
    prerequisites are shared, so they are never removed implicitly.
    """
    requested = list(requested_ids)
    order = resolve(requested, catalog)
    if action is Action.UNINSTALL:
        wanted = {catalog.canonical(sid) for sid in requested}
        order = [sid for sid in reversed(order) if sid in wanted]
    return order


def dependents_of(order: Iterable[str], catalog: Catalog) -> dict[str, list[str]]:
    """Reverse adjacency restricted to ``order``: id → ids that depend on it."""
    members = list(order)
    in_run = set(members)
    result: dict[str, list[str]] = {sid: [] for sid in members}
    for sid in members:
        for dep in catalog.get(sid).dependencies:
            canonical = catalog.canonical(dep)
            if canonical in in_run:
                result[canonical].append(sid)
    return result
