"""Workflow graph analysis: reachability, dead ends, cycles, max depth.

Uses NetworkX for reachability and structural metrics.  Cycle detection and
max depth walk an ordered adjacency list with explicit frame stacks so that
discovery order follows transition declaration order and deep graphs cannot
exhaust the interpreter's recursion limit.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

import networkx as nx

from flowsentry.defaults import DEPTH_SEARCH_BUDGET
from flowsentry.errors import InvalidGraph
from flowsentry.models import GraphFindings, WorkflowGraph

log = logging.getLogger("flowsentry.analysis.graph")

_END = object()


def _coerce(graph: Any) -> WorkflowGraph:
    if graph is None:
        raise InvalidGraph("Workflow definition is missing")
    wf = WorkflowGraph.from_dict(graph)
    if not wf.states:
        raise InvalidGraph("Workflow definition has no states")
    return wf


def build_adjacency(graph: WorkflowGraph) -> dict[str, list[str]]:
    """Ordered successor lists for every declared state.

    Duplicate declared states collapse to their first occurrence.  Transitions
    from an undeclared state are dropped.
    """
    adjacency: dict[str, list[str]] = {}
    for state in graph.states:
        adjacency.setdefault(state, [])
    for t in graph.transitions:
        if t.source in adjacency:
            adjacency[t.source].append(t.target)
    return adjacency


def build_state_graph(adjacency: dict[str, list[str]]) -> nx.DiGraph:
    G = nx.DiGraph()
    G.add_nodes_from(adjacency)
    for source, targets in adjacency.items():
        for target in targets:
            G.add_edge(source, target)
    return G


def _successors(adjacency: dict[str, list[str]], node: str) -> Iterator[str]:
    return iter(adjacency.get(node, ()))


def find_cycles(adjacency: dict[str, list[str]]) -> list[list[str]]:
    """Report one cycle per back edge found by a DFS rooted at each state.

    The visited set is shared across roots, so a state expanded under an
    earlier root is not expanded again.  Cycles are not deduplicated.
    """
    cycles: list[list[str]] = []
    visited: set[str] = set()
    on_stack: set[str] = set()

    for root in adjacency:
        if root in visited:
            continue
        visited.add(root)
        on_stack.add(root)
        path = [root]
        frames = [(root, _successors(adjacency, root))]
        while frames:
            node, successors = frames[-1]
            nxt = next(successors, _END)
            if nxt is _END:
                frames.pop()
                on_stack.discard(node)
                path.pop()
                continue
            if nxt in on_stack:
                cycles.append(path[path.index(nxt):])
                continue
            if nxt in visited:
                continue
            visited.add(nxt)
            on_stack.add(nxt)
            path.append(nxt)
            frames.append((nxt, _successors(adjacency, nxt)))
    return cycles


def longest_path_depth(
    adjacency: dict[str, list[str]],
    start: str,
    budget: int = DEPTH_SEARCH_BUDGET,
) -> tuple[int, bool]:
    """Longest simple path from *start*, counted in states.

    Returns ``(depth, truncated)``.  The search is exhaustive over simple
    paths, so it stops after *budget* frame expansions and reports the best
    depth seen so far with ``truncated=True``.
    """
    best = 1
    expanded = 0
    on_path = {start}
    frames = [(start, _successors(adjacency, start))]
    while frames:
        node, successors = frames[-1]
        nxt = next(successors, _END)
        if nxt is _END:
            frames.pop()
            on_path.discard(node)
            continue
        if nxt in on_path:
            continue
        expanded += 1
        if expanded > budget:
            log.warning("Depth search budget of %d frames exhausted at depth %d", budget, best)
            return best, True
        on_path.add(nxt)
        frames.append((nxt, _successors(adjacency, nxt)))
        best = max(best, len(frames))
    return best, False


def analyze_graph(graph: Any, *, depth_budget: int = DEPTH_SEARCH_BUDGET) -> GraphFindings:
    """Analyze workflow structure.

    Accepts a ``WorkflowGraph`` or its mapping form.  The first declared
    state is the entry point.
    """
    wf = _coerce(graph)
    adjacency = build_adjacency(wf)
    G = build_state_graph(adjacency)
    start = wf.states[0]

    reachable = nx.descendants(G, start) | {start}
    unreachable = [s for s in adjacency if s not in reachable]
    dead_ends = [s for s in adjacency if G.out_degree(s) == 0]
    cycles = find_cycles(adjacency)
    max_depth, truncated = longest_path_depth(adjacency, start, depth_budget)

    log.debug(
        "Graph %s: %d cycles, %d dead ends, %d unreachable, depth %d",
        wf.id, len(cycles), len(dead_ends), len(unreachable), max_depth,
    )
    return GraphFindings(
        cycles=cycles,
        dead_ends=dead_ends,
        unreachable=unreachable,
        max_depth=max_depth,
        depth_truncated=truncated,
    )


def graph_summary(graph: Any) -> dict[str, Any]:
    """Structural metrics of the workflow for reports."""
    wf = _coerce(graph)
    G = build_state_graph(build_adjacency(wf))
    return {
        "states": G.number_of_nodes(),
        "transitions": G.number_of_edges(),
        "density": round(nx.density(G), 3),
        "components": nx.number_weakly_connected_components(G),
        "is_dag": nx.is_directed_acyclic_graph(G),
    }
