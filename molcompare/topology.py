"""
Graph topology analysis.

Connected components, circuit rank, ring bonds and shortest-path distances.
These are used by the exact-match prefilter, by ring perception at graph
construction and by the topological constraint of the common-subgraph
solver. All functions are read-only over their input.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from molcompare.types import AnyGraph


def connected_components(graph: "AnyGraph") -> list[list[int]]:
    """Find connected components.

    Returns:
        List of components, each being a sorted list of vertex indices.
    """
    adjacency = graph.adjacency
    visited = [False] * graph.vertex_count
    components: list[list[int]] = []

    for start in range(graph.vertex_count):
        if visited[start]:
            continue
        component: list[int] = []
        stack = [start]
        visited[start] = True
        while stack:
            node = stack.pop()
            component.append(node)
            for nbr, _ in adjacency[node]:
                if not visited[nbr]:
                    visited[nbr] = True
                    stack.append(nbr)
        components.append(sorted(component))

    return components


def circuit_rank(graph: "AnyGraph") -> int:
    """Number of independent cycles (``|E| - |V| + components``)."""
    if graph.vertex_count == 0:
        return 0
    return graph.edge_count - graph.vertex_count + len(connected_components(graph))


def bridges(graph: "AnyGraph") -> set[int]:
    """Find bridge edges with Tarjan's low-link algorithm.

    A bridge is an edge whose removal disconnects its component; every other
    edge lies on a cycle.

    Returns:
        Set of edge indices that are bridges.
    """
    adjacency = graph.adjacency
    n = graph.vertex_count
    discovery = [-1] * n
    low = [0] * n
    found: set[int] = set()
    counter = 0

    for root in range(n):
        if discovery[root] >= 0:
            continue
        discovery[root] = low[root] = counter
        counter += 1
        # Frames: (vertex, edge used to enter it, position in its adjacency)
        stack: list[list[int]] = [[root, -1, 0]]
        while stack:
            frame = stack[-1]
            node, parent_edge, pos = frame
            if pos < len(adjacency[node]):
                frame[2] += 1
                nbr, edge_idx = adjacency[node][pos]
                if edge_idx == parent_edge:
                    continue
                if discovery[nbr] < 0:
                    discovery[nbr] = low[nbr] = counter
                    counter += 1
                    stack.append([nbr, edge_idx, 0])
                else:
                    low[node] = min(low[node], discovery[nbr])
                continue

            stack.pop()
            if stack:
                parent = stack[-1][0]
                low[parent] = min(low[parent], low[node])
                if low[node] > discovery[parent]:
                    found.add(parent_edge)

    return found


def ring_bonds(graph: "AnyGraph") -> set[tuple[int, int]]:
    """Get the ``(min_idx, max_idx)`` keys of all edges lying on a cycle."""
    bridge_set = bridges(graph)
    return {
        edge.key for idx, edge in enumerate(graph.edges) if idx not in bridge_set
    }


def ring_vertices(graph: "AnyGraph") -> set[int]:
    """Get the indices of all vertices lying on a cycle."""
    return {i for key in ring_bonds(graph) for i in key}


def distance_matrix(graph: "AnyGraph") -> tuple[tuple[int | None, ...], ...]:
    """All-pairs shortest path lengths by breadth-first search.

    Returns:
        Row-per-vertex tuple; ``None`` marks unreachable pairs.
    """
    adjacency = graph.adjacency
    n = graph.vertex_count
    rows = []

    for source in range(n):
        dist: list[int | None] = [None] * n
        dist[source] = 0
        queue = deque([source])
        while queue:
            node = queue.popleft()
            d = dist[node] + 1
            for nbr, _ in adjacency[node]:
                if dist[nbr] is None:
                    dist[nbr] = d
                    queue.append(nbr)
        rows.append(tuple(dist))

    return tuple(rows)
