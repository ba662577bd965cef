"""
Compatibility index.

Precomputes, for a query graph (or pattern) against a target graph, which
target vertices each query vertex could possibly map to, and an order in
which to visit query vertices so that backtracking meets the most
constrained choices first.

The query-side tables live in a QueryProfile that can be built once and
reused against many targets.

Example:
    >>> from molcompare.types import Graph
    >>> query = Graph.from_records(["C", "O"], [(0, 1)])
    >>> target = Graph.from_records(["C", "C", "O"], [(0, 1), (1, 2)])
    >>> index = CompatibilityIndex(query, target, DegreeMode.SUBGRAPH)
    >>> sorted(index.candidates(1))
    [2]
    >>> index.search_order()
    (1, 0)
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Union

from molcompare.types import Graph, Pattern

if TYPE_CHECKING:
    from molcompare.types import AnyGraph, Edge, Vertex


class DegreeMode(Enum):
    """How a query vertex degree restricts its target candidates."""

    EXACT = "exact"        # target degree == query degree
    SUBGRAPH = "subgraph"  # target degree >= query degree
    COMMON = "common"      # no restriction, only part of a neighborhood may be shared


class QueryProfile:
    """Query-side tables reused across targets.

    Attributes:
        graph: The query graph or pattern.
        degrees: Degree of each query vertex.
        labels: Chemical identity key of each vertex for a Graph query,
            None for a Pattern.
    """

    __slots__ = ("graph", "degrees", "labels", "_distances")

    def __init__(self, graph: "AnyGraph") -> None:
        self.graph = graph
        self.degrees = tuple(len(nbrs) for nbrs in graph.adjacency)
        if isinstance(graph, Pattern):
            self.labels = None
        else:
            self.labels = tuple(v.label for v in graph.vertices)
        self._distances = None

    @classmethod
    def of(cls, query: Union["AnyGraph", "QueryProfile"]) -> "QueryProfile":
        return query if isinstance(query, QueryProfile) else cls(query)

    @property
    def is_pattern(self) -> bool:
        return self.labels is None

    def distances(self) -> tuple[tuple[int | None, ...], ...]:
        """Shortest path distance matrix, computed on first use."""
        if self._distances is None:
            from molcompare.topology import distance_matrix

            self._distances = distance_matrix(self.graph)
        return self._distances


class CompatibilityIndex:
    """Candidate sets and search order for one query/target pair.

    Args:
        query: Query graph, pattern, or a prebuilt QueryProfile.
        target: Concrete target graph.
        mode: Degree restriction applied to candidates.
        exact_attributes: Compare Graph queries on every attribute instead of
            chemical identity (used by exact isomorphism).
    """

    __slots__ = (
        "profile", "query", "target", "mode", "exact_attributes",
        "_candidates", "_candidate_lists", "_order", "_position",
        "_max_candidate_degree",
    )

    def __init__(
        self,
        query: Union["AnyGraph", QueryProfile],
        target: Graph,
        mode: DegreeMode = DegreeMode.SUBGRAPH,
        *,
        exact_attributes: bool = False,
    ) -> None:
        if isinstance(target, Pattern):
            raise TypeError("Target of a compatibility index must be a concrete Graph")

        self.profile = QueryProfile.of(query)
        self.query = self.profile.graph
        self.target = target
        self.mode = mode
        self.exact_attributes = exact_attributes

        target_degrees = tuple(len(nbrs) for nbrs in target.adjacency)
        candidate_lists = []
        for q in range(self.query.vertex_count):
            q_degree = self.profile.degrees[q]
            cands = []
            for t in range(target.vertex_count):
                if mode is DegreeMode.EXACT and target_degrees[t] != q_degree:
                    continue
                if mode is DegreeMode.SUBGRAPH and target_degrees[t] < q_degree:
                    continue
                if self.vertex_ok(q, target.vertex(t)):
                    cands.append(t)
            candidate_lists.append(tuple(cands))

        self._candidate_lists = tuple(candidate_lists)
        self._candidates = tuple(frozenset(c) for c in candidate_lists)
        self._max_candidate_degree = tuple(
            max((target_degrees[t] for t in cands), default=0) for cands in candidate_lists
        )
        self._order = self._build_order()
        self._position = tuple(
            pos for _, pos in sorted((q, pos) for pos, q in enumerate(self._order))
        )

    def _build_order(self) -> tuple[int, ...]:
        """Most constrained first: after the first vertex, prefer vertices
        adjacent to many already ordered ones, then fewest candidates, then
        highest degree, then lowest index."""
        n = self.query.vertex_count
        adjacency = self.query.adjacency
        degrees = self.profile.degrees
        sizes = [len(c) for c in self._candidate_lists]
        connections = [0] * n
        remaining = set(range(n))
        order: list[int] = []

        while remaining:
            best = min(
                remaining,
                key=lambda q: (-connections[q], sizes[q], -degrees[q], q),
            )
            order.append(best)
            remaining.discard(best)
            for nbr, _ in adjacency[best]:
                if nbr in remaining:
                    connections[nbr] += 1

        return tuple(order)

    # Predicates

    def vertex_ok(self, q: int, vertex: "Vertex") -> bool:
        """Attribute compatibility of query vertex ``q`` with a target vertex."""
        query = self.query
        if isinstance(query, Pattern):
            return query.accepts_vertex(q, vertex)
        if self.exact_attributes:
            return query.vertex(q) == vertex
        return self.profile.labels[q] == vertex.label

    def edge_ok(self, q_edge: int, edge: "Edge") -> bool:
        """Attribute compatibility of query edge index ``q_edge`` with a target edge."""
        query = self.query
        if isinstance(query, Pattern):
            return query.accepts_edge(q_edge, edge)
        if self.exact_attributes:
            return query.edge(q_edge).attributes == edge.attributes
        return query.edge(q_edge).order == edge.order

    # Accessors

    def candidates(self, q: int) -> frozenset[int]:
        """Target vertices query vertex ``q`` could map to."""
        return self._candidates[q]

    def candidate_list(self, q: int) -> tuple[int, ...]:
        """Candidates of ``q`` in ascending target index order."""
        return self._candidate_lists[q]

    def search_order(self) -> tuple[int, ...]:
        """Query vertices, most constrained first."""
        return self._order

    def position(self, q: int) -> int:
        """Position of query vertex ``q`` in the search order."""
        return self._position[q]

    def max_candidate_degree(self, q: int) -> int:
        """Highest target degree among the candidates of ``q``."""
        return self._max_candidate_degree[q]

    @property
    def labels(self) -> tuple | None:
        """Per query vertex identity keys when candidates are label classes, else None."""
        if self.profile.labels is None or self.exact_attributes:
            return None
        return self.profile.labels

    def has_empty_candidates(self) -> bool:
        """True if some query vertex has nowhere to go."""
        return any(not c for c in self._candidate_lists)
