"""
Exact and substructure graph matching.

Both searches are VF2-like backtracking over the CompatibilityIndex search
order. Candidates for the next query vertex are narrowed to the common
neighbors of the images of its already mapped neighbors, and every
candidate is checked for vertex and edge compatibility before the mapping
is extended.

Boolean answers run under a safety SearchBudget (``match_timeout`` in the
configuration). If it runs out the answer is a best-effort ``False`` and a
warning is logged.

Example:
    >>> from molcompare.types import Graph, Pattern
    >>> ethanol = Graph.from_records(["C", "C", "O"], [(0, 1), (1, 2)])
    >>> hydroxyl = Pattern.from_records(["C", "O"], [(0, 1, "single")])
    >>> substructure_match(hydroxyl, ethanol)
    True
    >>> substructure_matches(hydroxyl, ethanol)
    [(1, 2)]
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator, Mapping

from molcompare.budget import BudgetClock, SearchBudget
from molcompare.config import EngineConfig, resolve_config
from molcompare.match.index import CompatibilityIndex, DegreeMode, QueryProfile
from molcompare.topology import circuit_rank
from molcompare.types import Graph, Pattern

if TYPE_CHECKING:
    from molcompare.types import AnyGraph

logger = logging.getLogger(__name__)


def _require_graph(graph: object, role: str) -> None:
    if not isinstance(graph, Graph):
        raise TypeError(f"{role} must be a Graph, got {type(graph).__name__}")


def _exact_prefilter(a: Graph, b: Graph) -> bool:
    """Cheap necessary conditions for isomorphism."""
    if a.vertex_count != b.vertex_count or a.edge_count != b.edge_count:
        return False
    if sorted(len(n) for n in a.adjacency) != sorted(len(n) for n in b.adjacency):
        return False
    return circuit_rank(a) == circuit_rank(b)


def _substructure_prefilter(pattern: "AnyGraph", target: Graph) -> bool:
    """Cheap necessary conditions for a pattern to embed in a target."""
    if pattern.vertex_count > target.vertex_count:
        return False
    if pattern.edge_count > target.edge_count:
        return False
    return circuit_rank(pattern) <= circuit_rank(target)


def _iter_mappings(
    index: CompatibilityIndex,
    clock: BudgetClock,
    anchor: Mapping[int, int] | None = None,
    *,
    induced: bool = False,
    edges_only: bool = False,
) -> Iterator[tuple[int, ...]]:
    """Yield every monomorphism of the index query into its target.

    Each mapping is a tuple of target indices in query vertex order. With
    ``induced`` the images of two non-adjacent query vertices must not be
    bonded either. With ``edges_only`` query vertices without bonds are left
    unmapped (-1).
    """
    query = index.query
    target = index.target
    query_adj = query.adjacency
    target_adj = target.adjacency
    query_n = query.vertex_count

    mapping: list[int] = [-1] * query_n
    used: list[bool] = [False] * target.vertex_count

    def feasible(q: int, t: int) -> bool:
        """Check bonds from q to every mapped neighbor."""
        mapped_nbrs = 0
        for nbr, edge_idx in query_adj[q]:
            t_nbr = mapping[nbr]
            if t_nbr >= 0:
                t_edge = target.edge_between(t, t_nbr)
                if t_edge is None or not index.edge_ok(edge_idx, t_edge):
                    return False
                mapped_nbrs += 1
        if induced:
            # Images of mapped non-neighbors must not be bonded to t
            bonded = sum(1 for t_nbr, _ in target_adj[t] if used[t_nbr])
            return bonded == mapped_nbrs
        return True

    # Mandatory pairs are placed before the search starts
    if anchor:
        for q, t in sorted(anchor.items()):
            if not (0 <= q < query_n and 0 <= t < target.vertex_count):
                return
            if used[t] or t not in index.candidates(q) or not feasible(q, t):
                return
            mapping[q] = t
            used[t] = True

    order = tuple(
        q for q in index.search_order()
        if mapping[q] < 0 and (query_adj[q] or not edges_only)
    )
    depth_n = len(order)

    def candidates_for(q: int) -> Iterator[int]:
        narrowed: set[int] | None = None
        for nbr, _ in query_adj[q]:
            t_nbr = mapping[nbr]
            if t_nbr >= 0:
                nbr_targets = {t for t, _ in target_adj[t_nbr]}
                narrowed = nbr_targets if narrowed is None else narrowed & nbr_targets
                if not narrowed:
                    return iter(())
        if narrowed is None:
            # No mapped neighbor: first vertex of a component
            return iter(index.candidate_list(q))
        return iter(sorted(narrowed & index.candidates(q)))

    def backtrack(depth: int) -> Iterator[tuple[int, ...]]:
        if depth == depth_n:
            yield tuple(mapping)
            return
        if not clock.tick():
            return

        q = order[depth]
        for t in candidates_for(q):
            if used[t] or not feasible(q, t):
                continue
            mapping[q] = t
            used[t] = True
            yield from backtrack(depth + 1)
            mapping[q] = -1
            used[t] = False
            if clock.exhausted:
                return

    yield from backtrack(0)


def _collect(
    mappings: Iterator[tuple[int, ...]],
    uniquify: bool,
    max_matches: int | None,
) -> list[tuple[int, ...]]:
    """Gather mappings, keeping one per set of target indices if ``uniquify``."""
    matches: list[tuple[int, ...]] = []
    seen: set[frozenset[int]] = set()
    for match in mappings:
        if uniquify:
            key = frozenset(match)
            if key in seen:
                continue
            seen.add(key)
        matches.append(match)
        if max_matches is not None and len(matches) >= max_matches:
            break
    return matches


def _start_clock(budget: SearchBudget | None, config: EngineConfig | None) -> BudgetClock:
    if budget is None:
        budget = resolve_config(config).match_budget
    return budget.start()


def _warn_exhausted(kind: str, clock: BudgetClock, query: "AnyGraph", target: Graph) -> None:
    logger.warning(
        "%s search budget exhausted after %d nodes (%.3fs) for %r vs %r; "
        "reporting best-effort result",
        kind, clock.expanded, clock.elapsed, query, target,
    )


def exact_mapping(
    a: Graph,
    b: Graph,
    *,
    budget: SearchBudget | None = None,
    config: EngineConfig | None = None,
) -> tuple[int, ...] | None:
    """Find an isomorphism between two graphs.

    Args:
        a: First graph.
        b: Second graph.
        budget: Safety budget; defaults to the configured ``match_timeout``.
        config: Engine configuration.

    Returns:
        Tuple whose i-th entry is the vertex of b that vertex i of a maps
        to, or None if the graphs are not isomorphic (or the budget ran out).
    """
    _require_graph(a, "First graph")
    _require_graph(b, "Second graph")

    if not _exact_prefilter(a, b):
        return None
    if a.vertex_count == 0:
        return ()

    index = CompatibilityIndex(a, b, DegreeMode.EXACT, exact_attributes=True)
    if index.has_empty_candidates():
        return None

    clock = _start_clock(budget, config)
    found = next(_iter_mappings(index, clock), None)
    if found is None and clock.exhausted:
        _warn_exhausted("Exact match", clock, a, b)
    return found


def exact_match(
    a: Graph,
    b: Graph,
    *,
    budget: SearchBudget | None = None,
    config: EngineConfig | None = None,
) -> bool:
    """Check whether two graphs are isomorphic as attributed graphs.

    Vertices must agree on every attribute and bonds on order, stereo and
    ring flags.

    Example:
        >>> from molcompare.types import Graph
        >>> a = Graph.from_records(["C", "O"], [(0, 1)])
        >>> b = Graph.from_records(["O", "C"], [(0, 1)])
        >>> exact_match(a, b)
        True
    """
    return exact_mapping(a, b, budget=budget, config=config) is not None


def substructure_match(
    pattern: "AnyGraph",
    target: Graph,
    *,
    anchor: Mapping[int, int] | None = None,
    budget: SearchBudget | None = None,
    config: EngineConfig | None = None,
) -> bool:
    """Check whether a pattern embeds into a target graph.

    The mapping must be injective, every pattern vertex must accept its
    image, and every pattern edge must be present, with an accepted bond,
    between the images of its endpoints. The target may carry extra bonds.

    Args:
        pattern: Pattern, or a Graph matched on chemical identity.
        target: Graph to search in.
        anchor: Mandatory ``pattern_vertex -> target_vertex`` pairs.
        budget: Safety budget; defaults to the configured ``match_timeout``.
        config: Engine configuration.

    Returns:
        True if a mapping exists. The first mapping found ends the search.
    """
    _require_graph(target, "Target")
    if pattern.vertex_count == 0:
        return True
    if target.vertex_count == 0 or not _substructure_prefilter(pattern, target):
        return False

    index = CompatibilityIndex(pattern, target, DegreeMode.SUBGRAPH)
    if index.has_empty_candidates():
        return False

    clock = _start_clock(budget, config)
    found = next(_iter_mappings(index, clock, anchor), None)
    if found is None and clock.exhausted:
        _warn_exhausted("Substructure", clock, pattern, target)
    return found is not None


def substructure_matches(
    pattern: "AnyGraph | QueryProfile",
    target: Graph,
    uniquify: bool = True,
    *,
    anchor: Mapping[int, int] | None = None,
    max_matches: int | None = None,
    budget: SearchBudget | None = None,
    config: EngineConfig | None = None,
) -> list[tuple[int, ...]]:
    """Find all embeddings of a pattern in a target graph.

    Args:
        pattern: Pattern, Graph, or a prebuilt QueryProfile of either.
        target: Graph to search in.
        uniquify: If True (default), return only one match per unique set
            of target vertices. If False, return all permutations.
        anchor: Mandatory ``pattern_vertex -> target_vertex`` pairs.
        max_matches: Stop after this many matches.
        budget: Search budget; defaults to the configured ``match_timeout``.
        config: Engine configuration.

    Returns:
        List of tuples of target vertex indices in pattern vertex order.
    """
    _require_graph(target, "Target")
    profile = QueryProfile.of(pattern)
    query = profile.graph
    if query.vertex_count == 0:
        return [()]
    if target.vertex_count == 0 or not _substructure_prefilter(query, target):
        return []

    index = CompatibilityIndex(profile, target, DegreeMode.SUBGRAPH)
    if index.has_empty_candidates():
        return []

    clock = _start_clock(budget, config)
    matches = _collect(_iter_mappings(index, clock, anchor), uniquify, max_matches)
    if clock.exhausted:
        _warn_exhausted("Substructure enumeration", clock, query, target)
    return matches


def count_matches(
    pattern: "AnyGraph",
    target: Graph,
    *,
    budget: SearchBudget | None = None,
    config: EngineConfig | None = None,
) -> int:
    """Count unique embeddings of a pattern in a target graph."""
    return len(substructure_matches(pattern, target, budget=budget, config=config))


def node_substructure_matches(
    pattern: "AnyGraph | QueryProfile",
    target: Graph,
    uniquify: bool = True,
    *,
    anchor: Mapping[int, int] | None = None,
    max_matches: int | None = None,
    budget: SearchBudget | None = None,
    config: EngineConfig | None = None,
) -> list[tuple[int, ...]]:
    """Find all node-induced embeddings of a pattern in a target graph.

    Like ``substructure_matches``, but two target vertices whose pattern
    vertices are not bonded must not be bonded either: the matched target
    atoms carry no extra bonds among themselves.

    Returns:
        List of tuples of target vertex indices in pattern vertex order.
    """
    _require_graph(target, "Target")
    profile = QueryProfile.of(pattern)
    query = profile.graph
    if query.vertex_count == 0:
        return [()]
    if target.vertex_count == 0 or not _substructure_prefilter(query, target):
        return []

    index = CompatibilityIndex(profile, target, DegreeMode.SUBGRAPH)
    if index.has_empty_candidates():
        return []

    clock = _start_clock(budget, config)
    mappings = _iter_mappings(index, clock, anchor, induced=True)
    matches = _collect(mappings, uniquify, max_matches)
    if clock.exhausted:
        _warn_exhausted("Node-induced substructure", clock, query, target)
    return matches


def node_substructure_match(
    pattern: "AnyGraph",
    target: Graph,
    *,
    anchor: Mapping[int, int] | None = None,
    budget: SearchBudget | None = None,
    config: EngineConfig | None = None,
) -> bool:
    """Check whether a pattern embeds into a target as a node-induced subgraph.

    Example:
        >>> from molcompare.types import Graph
        >>> chain = Graph.from_records(["C"] * 4, [(0, 1), (1, 2), (2, 3)])
        >>> square = Graph.from_records(["C"] * 4, [(0, 1), (1, 2), (2, 3), (3, 0)])
        >>> substructure_match(chain, square), node_substructure_match(chain, square)
        (True, False)
    """
    found = node_substructure_matches(
        pattern, target, anchor=anchor, max_matches=1, budget=budget, config=config,
    )
    return bool(found)


def edge_substructure_matches(
    pattern: "AnyGraph | QueryProfile",
    target: Graph,
    uniquify: bool = True,
    *,
    max_matches: int | None = None,
    budget: SearchBudget | None = None,
    config: EngineConfig | None = None,
) -> list[tuple[int, ...]]:
    """Find all edge-induced embeddings of a pattern in a target graph.

    Only the bonds of the pattern are placed: pattern atoms without bonds
    are ignored, and each embedding maps pattern bonds onto target bonds.

    Args:
        pattern: Pattern, Graph, or a prebuilt QueryProfile of either.
        target: Graph to search in.
        uniquify: If True (default), return only one match per unique set
            of target bonds.
        max_matches: Stop after this many matches.
        budget: Search budget; defaults to the configured ``match_timeout``.
        config: Engine configuration.

    Returns:
        List of tuples of target edge indices in pattern edge order.
    """
    _require_graph(target, "Target")
    profile = QueryProfile.of(pattern)
    query = profile.graph
    if query.edge_count == 0 or target.edge_count == 0:
        return []
    if query.edge_count > target.edge_count or circuit_rank(query) > circuit_rank(target):
        return []

    index = CompatibilityIndex(profile, target, DegreeMode.SUBGRAPH)
    bonded = [q for q in range(query.vertex_count) if query.adjacency[q]]
    if any(not index.candidate_list(q) for q in bonded):
        return []

    clock = _start_clock(budget, config)
    edge_maps = (
        tuple(target.edge_index_between(images[e.u], images[e.v]) for e in query.edges)
        for images in _iter_mappings(index, clock, edges_only=True)
    )
    matches = _collect(edge_maps, uniquify, max_matches)
    if clock.exhausted:
        _warn_exhausted("Edge-induced substructure", clock, query, target)
    return matches


def edge_substructure_match(
    pattern: "AnyGraph",
    target: Graph,
    *,
    budget: SearchBudget | None = None,
    config: EngineConfig | None = None,
) -> bool:
    """Check whether the bonds of a pattern embed into a target graph."""
    return bool(edge_substructure_matches(pattern, target, max_matches=1,
                                          budget=budget, config=config))
