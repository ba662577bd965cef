"""
Core molecular graph types.

This module defines the canonical in-memory representation every comparison
works on: Vertex and Edge records, the immutable Graph that owns them, and
Pattern, the query-side counterpart whose attributes are constraints.

Graphs hold vertex indices in their edges (never vertex references), indices
are dense (0..n-1), and nothing can be mutated after construction, so a graph
can be shared freely between concurrent queries.

Example:
    >>> g = Graph.from_records(
    ...     [{"symbol": "C"}, {"symbol": "C"}, {"symbol": "O"}],
    ...     [(0, 1), (1, 2)],
    ... )
    >>> g.vertex_count, g.edge_count
    (3, 2)
    >>> [n for n, _ in g.neighbors(1)]
    [0, 2]
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Iterator, Mapping, Sequence, Union

from molcompare.elements import BondOrder, normalize_symbol
from molcompare.exceptions import MalformedGraph
from molcompare.query import EdgeQuery, VertexQuery


@dataclass(frozen=True, slots=True)
class Vertex:
    """An atom.

    Attributes:
        symbol: Element symbol (e.g. "C", "Cl"); "*" for a dummy atom.
        charge: Formal charge.
        is_aromatic: Whether the atom is aromatic.
        isotope: Mass number, or None for natural abundance.
        hydrogens: Implicit hydrogen count.
        is_in_ring: Whether the atom is a ring member.
    """

    symbol: str
    charge: int = 0
    is_aromatic: bool = False
    isotope: int | None = None
    hydrogens: int = 0
    is_in_ring: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))

    @property
    def label(self) -> tuple[str, int, bool, int | None]:
        """Chemical identity used by common-subgraph search."""
        return (self.symbol, self.charge, self.is_aromatic, self.isotope)

    def compatible(self, other: "Vertex") -> bool:
        """Check whether two atoms are chemically the same kind."""
        return self.label == other.label


@dataclass(frozen=True, slots=True)
class Edge:
    """A bond between two atoms, stored with ``u < v``.

    Attributes:
        u: Index of the lower endpoint.
        v: Index of the higher endpoint.
        order: Bond order.
        stereo: Stereo marker (e.g. "STEREOE"), or None.
        is_in_ring: Whether the bond is a ring bond.
    """

    u: int
    v: int
    order: BondOrder = BondOrder.SINGLE
    stereo: str | None = None
    is_in_ring: bool = False

    def __post_init__(self) -> None:
        if self.u > self.v:
            u, v = self.v, self.u
            object.__setattr__(self, "u", u)
            object.__setattr__(self, "v", v)
        object.__setattr__(self, "order", BondOrder.coerce(self.order))

    @property
    def key(self) -> tuple[int, int]:
        return (self.u, self.v)

    @property
    def attributes(self) -> tuple[BondOrder, str | None, bool]:
        """Bond attributes without the endpoints."""
        return (self.order, self.stereo, self.is_in_ring)

    def other(self, idx: int) -> int:
        """Get the index of the atom on the other end of this bond.

        Raises:
            ValueError: If idx is not part of this bond.
        """
        if idx == self.u:
            return self.v
        if idx == self.v:
            return self.u
        raise ValueError(f"Vertex {idx} not in edge {self.u}-{self.v}")

    def compatible(self, other: "Edge") -> bool:
        """Check whether two bonds have the same order."""
        return self.order == other.order

    def __contains__(self, idx: int) -> bool:
        return idx in (self.u, self.v)


VertexRecord = Union[Vertex, VertexQuery, Mapping, str]
EdgeRecord = Union[Edge, EdgeQuery, Mapping, Sequence]


class _BaseGraph:
    """Shared structure of Graph and Pattern.

    Subclasses define how raw vertex and edge records are coerced into their
    own vertex and edge types.
    """

    __slots__ = ("_vertices", "_edges", "_adjacency", "_edge_index", "name")

    def __init__(
        self,
        vertices: Iterable[VertexRecord] = (),
        edges: Iterable[EdgeRecord] = (),
        *,
        name: str | None = None,
    ) -> None:
        self.name = name
        self._vertices = tuple(self._coerce_vertex(v) for v in vertices)
        n = len(self._vertices)

        edge_list = []
        edge_index: dict[tuple[int, int], int] = {}
        adjacency: list[list[tuple[int, int]]] = [[] for _ in range(n)]

        for raw in edges:
            edge = self._coerce_edge(raw)
            u, v = edge.u, edge.v
            if not (0 <= u < n and 0 <= v < n):
                raise MalformedGraph(
                    f"Edge references a vertex outside 0..{n - 1}",
                    reason="dangling", edge=(u, v),
                )
            if u == v:
                raise MalformedGraph("Self-loop", reason="self-loop", edge=(u, v))
            if (u, v) in edge_index:
                raise MalformedGraph("Duplicate edge", reason="duplicate", edge=(u, v))

            idx = len(edge_list)
            edge_index[(u, v)] = idx
            edge_list.append(edge)
            adjacency[u].append((v, idx))
            adjacency[v].append((u, idx))

        self._edges = tuple(edge_list)
        self._edge_index = edge_index
        self._adjacency = tuple(tuple(sorted(nbrs)) for nbrs in adjacency)

    # Record coercion

    @classmethod
    def _coerce_vertex(cls, raw: VertexRecord):
        raise NotImplementedError

    @classmethod
    def _coerce_edge(cls, raw: EdgeRecord):
        raise NotImplementedError

    @staticmethod
    def _edge_fields(raw: EdgeRecord) -> tuple[int, int, dict]:
        """Split an edge record into its endpoints and remaining attributes."""
        if isinstance(raw, Mapping):
            attrs = dict(raw)
            try:
                u = attrs.pop("u")
                v = attrs.pop("v")
            except KeyError:
                raise MalformedGraph(f"Edge record without endpoints: {raw!r}",
                                     reason="record") from None
        elif isinstance(raw, Sequence) and not isinstance(raw, str) and len(raw) in (2, 3):
            u, v = raw[0], raw[1]
            attrs = {"order": raw[2]} if len(raw) == 3 else {}
        else:
            raise MalformedGraph(f"Invalid edge record: {raw!r}", reason="record")

        if isinstance(u, bool) or isinstance(v, bool) or not isinstance(u, int) or not isinstance(v, int):
            raise MalformedGraph(f"Edge endpoints must be integers: {raw!r}", reason="record")
        return u, v, attrs

    # Structure accessors

    @property
    def vertex_count(self) -> int:
        """Number of vertices."""
        return len(self._vertices)

    @property
    def edge_count(self) -> int:
        """Number of edges."""
        return len(self._edges)

    @property
    def vertices(self) -> tuple:
        return self._vertices

    @property
    def edges(self) -> tuple:
        return self._edges

    @property
    def adjacency(self) -> tuple[tuple[tuple[int, int], ...], ...]:
        """Per vertex, the sorted ``(neighbor, edge_index)`` pairs."""
        return self._adjacency

    def __len__(self) -> int:
        return len(self._vertices)

    def __iter__(self) -> Iterator:
        return iter(self._vertices)

    def __getitem__(self, idx: int):
        return self._vertices[idx]

    def vertex(self, idx: int):
        return self._vertices[idx]

    def edge(self, idx: int):
        return self._edges[idx]

    def neighbors(self, idx: int) -> tuple:
        """Get the ``(neighbor_index, edge)`` pairs of a vertex, ordered by neighbor."""
        return tuple((nbr, self._edges[e]) for nbr, e in self._adjacency[idx])

    def neighbor_indices(self, idx: int) -> tuple[int, ...]:
        return tuple(nbr for nbr, _ in self._adjacency[idx])

    def degree(self, idx: int) -> int:
        return len(self._adjacency[idx])

    def edge_index_between(self, u: int, v: int) -> int | None:
        """Get the index of the edge joining u and v, or None."""
        return self._edge_index.get((u, v) if u < v else (v, u))

    def edge_between(self, u: int, v: int):
        """Get the edge joining u and v, or None if they are not bonded."""
        idx = self.edge_index_between(u, v)
        return None if idx is None else self._edges[idx]

    def has_edge(self, u: int, v: int) -> bool:
        return ((u, v) if u < v else (v, u)) in self._edge_index

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return (f"<{type(self).__name__}{label} vertices={self.vertex_count} "
                f"edges={self.edge_count}>")


class Graph(_BaseGraph):
    """Immutable attributed molecular graph.

    Args:
        vertices: Vertex records: ``Vertex`` objects, mappings of Vertex
            fields, or bare element symbols.
        edges: Edge records: ``Edge`` objects, ``(u, v)`` / ``(u, v, order)``
            tuples, or mappings with ``u``, ``v`` and Edge fields.
        name: Optional identifier.
        perceive_rings: If True, ring flags of vertices and edges are derived
            from the topology instead of taken from the records.

    Raises:
        MalformedGraph: On a dangling edge index, a duplicate edge, a
            self-loop or an unreadable record.
    """

    __slots__ = ()

    def __init__(
        self,
        vertices: Iterable[VertexRecord] = (),
        edges: Iterable[EdgeRecord] = (),
        *,
        name: str | None = None,
        perceive_rings: bool = False,
    ) -> None:
        super().__init__(vertices, edges, name=name)
        if perceive_rings:
            self._assign_ring_flags()

    @classmethod
    def from_records(
        cls,
        vertices: Iterable[VertexRecord],
        edges: Iterable[EdgeRecord],
        *,
        name: str | None = None,
        perceive_rings: bool = False,
    ) -> "Graph":
        """Build a graph from the plain records a boundary adapter produces."""
        return cls(vertices, edges, name=name, perceive_rings=perceive_rings)

    @classmethod
    def _coerce_vertex(cls, raw: VertexRecord) -> Vertex:
        if isinstance(raw, Vertex):
            return raw
        if isinstance(raw, str):
            return Vertex(raw)
        if isinstance(raw, Mapping):
            try:
                return Vertex(**raw)
            except (TypeError, ValueError) as e:
                raise MalformedGraph(f"Invalid vertex record {dict(raw)!r}: {e}",
                                     reason="record") from e
        raise MalformedGraph(f"Invalid vertex record: {raw!r}", reason="record")

    @classmethod
    def _coerce_edge(cls, raw: EdgeRecord) -> Edge:
        if isinstance(raw, Edge):
            return raw
        u, v, attrs = cls._edge_fields(raw)
        try:
            return Edge(u, v, **attrs)
        except (TypeError, ValueError) as e:
            raise MalformedGraph(f"Invalid edge record {raw!r}: {e}",
                                 reason="record", edge=(u, v)) from e

    def _assign_ring_flags(self) -> None:
        from molcompare.topology import ring_bonds

        bonds = ring_bonds(self)
        ring_atoms = {i for key in bonds for i in key}
        self._vertices = tuple(
            replace(vertex, is_in_ring=i in ring_atoms)
            for i, vertex in enumerate(self._vertices)
        )
        self._edges = tuple(
            replace(edge, is_in_ring=edge.key in bonds) for edge in self._edges
        )

    # Attribute predicates

    def vertices_equal(self, idx: int, other: "Graph", other_idx: int) -> bool:
        """Full attribute equality of two vertices."""
        return self._vertices[idx] == other._vertices[other_idx]

    def edges_equal(self, idx: int, other: "Graph", other_idx: int) -> bool:
        """Full attribute equality of two edges (endpoints excluded)."""
        return self._edges[idx].attributes == other._edges[other_idx].attributes

    def vertices_compatible(self, idx: int, other: "Graph", other_idx: int) -> bool:
        """Chemical identity of two vertices (element, charge, aromaticity, isotope)."""
        return self._vertices[idx].compatible(other._vertices[other_idx])

    def edges_compatible(self, idx: int, other: "Graph", other_idx: int) -> bool:
        """Bond order identity of two edges."""
        return self._edges[idx].compatible(other._edges[other_idx])


class Pattern(_BaseGraph):
    """Immutable query graph whose attributes are constraints.

    Matching is asymmetric: a pattern vertex accepts a concrete vertex when
    the concrete attributes satisfy every constraint.

    Args:
        vertices: ``VertexQuery`` objects, mappings of VertexQuery.build
            arguments, or bare symbols ("*" for any atom).
        edges: ``EdgeQuery`` objects, ``(u, v)`` / ``(u, v, order)`` tuples,
            or mappings with ``u``, ``v`` and EdgeQuery.build arguments.
            A plain ``(u, v)`` edge accepts any bond order.
    """

    __slots__ = ()

    @classmethod
    def from_records(
        cls,
        vertices: Iterable[VertexRecord],
        edges: Iterable[EdgeRecord],
        *,
        name: str | None = None,
    ) -> "Pattern":
        """Build a pattern from plain records (values, sets, None or constraints)."""
        return cls(vertices, edges, name=name)

    @classmethod
    def from_graph(cls, graph: Graph) -> "Pattern":
        """Derive a pattern matching the element, charge, aromaticity, isotope
        and bond orders of a concrete graph."""
        return cls(
            [VertexQuery.from_vertex(v) for v in graph.vertices],
            [EdgeQuery.from_edge(e) for e in graph.edges],
            name=graph.name,
        )

    @classmethod
    def _coerce_vertex(cls, raw: VertexRecord) -> VertexQuery:
        if isinstance(raw, VertexQuery):
            return raw
        if isinstance(raw, Vertex):
            return VertexQuery.from_vertex(raw)
        if isinstance(raw, str):
            return VertexQuery.build(raw)
        if isinstance(raw, Mapping):
            try:
                return VertexQuery.build(**raw)
            except (TypeError, ValueError) as e:
                raise MalformedGraph(f"Invalid pattern vertex record {dict(raw)!r}: {e}",
                                     reason="record") from e
        raise MalformedGraph(f"Invalid pattern vertex record: {raw!r}", reason="record")

    @classmethod
    def _coerce_edge(cls, raw: EdgeRecord) -> EdgeQuery:
        if isinstance(raw, EdgeQuery):
            return raw
        if isinstance(raw, Edge):
            return EdgeQuery.from_edge(raw)
        u, v, attrs = cls._edge_fields(raw)
        try:
            return EdgeQuery.build(u, v, **attrs)
        except (TypeError, ValueError) as e:
            raise MalformedGraph(f"Invalid pattern edge record {raw!r}: {e}",
                                 reason="record", edge=(u, v)) from e

    def accepts_vertex(self, idx: int, vertex: Vertex) -> bool:
        """Check a concrete vertex against pattern vertex ``idx``."""
        return self._vertices[idx].accepts(vertex)

    def accepts_edge(self, idx: int, edge: Edge) -> bool:
        """Check a concrete edge against pattern edge ``idx``."""
        return self._edges[idx].accepts(edge)


AnyGraph = Union[Graph, Pattern]


def vertex_count(graph: AnyGraph) -> int:
    """Number of vertices of a graph or pattern."""
    return graph.vertex_count


def edge_count(graph: AnyGraph) -> int:
    """Number of edges of a graph or pattern."""
    return graph.edge_count
