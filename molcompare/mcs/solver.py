"""
Maximum common subgraph search.

Finds the maximum common induced subgraph (MCIS) or maximum common edge
subgraph (MCES) of two graphs by depth-first branch and bound. The partial
mapping is extended one query vertex at a time, in CompatibilityIndex order:
each query vertex is either mapped to a compatible, unused target vertex or
skipped. A branch is pruned when its upper bound cannot beat the best
mapping found so far, so among equally large mappings the first one found
in the fixed search order is kept.

The search state lives in an explicit stack of frames, and the SearchBudget
is checked for every expanded node. When the budget runs out, the best
mapping so far is returned with ``exhaustive=False``.

Options beyond the plain search:

    connected     the common subgraph must be connected
    topological   mapped pairs within ``diameter`` bonds of each other (in
                  either graph) must have shortest-path distances that
                  differ by at most ``tolerance``
    target_size   stop as soon as a mapping of this size is found

Example:
    >>> from molcompare.types import Graph
    >>> ring = Graph.from_records(["C"] * 6, [(i, (i + 1) % 6) for i in range(6)])
    >>> chain = Graph.from_records(["C"] * 3, [(0, 1), (1, 2)])
    >>> max_common_edge_subgraph(chain, ring).size
    2
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from molcompare.budget import BudgetClock, SearchBudget
from molcompare.config import EngineConfig, resolve_config
from molcompare.match.index import CompatibilityIndex, DegreeMode, QueryProfile
from molcompare.mcs.result import CommonSubgraphKind, MCSResult
from molcompare.topology import distance_matrix
from molcompare.types import Graph, Pattern

if TYPE_CHECKING:
    from molcompare.types import AnyGraph

logger = logging.getLogger(__name__)

UNDECIDED = 0
MAPPED = 1
SKIPPED = 2
# Skipped for now; reopened once another query neighbor gets mapped
DEFERRED = 3

SKIP = -1


@dataclass(frozen=True)
class SearchOptions:
    """Resolved search options."""

    connected: bool = False
    topological: bool = False
    diameter: int = 8
    tolerance: int = 1
    target_size: int | None = None


class _Frame:
    """Decision point for one query vertex."""

    __slots__ = ("q", "options", "pos", "applied", "gain", "prev_state", "prev_deferred")

    def __init__(
        self, q: int, options: list[tuple[int, int]], prev_state: int, prev_deferred: int
    ) -> None:
        self.q = q
        self.options = options  # (target vertex or SKIP, gain)
        self.pos = 0
        self.applied = False
        self.gain = 0
        self.prev_state = prev_state
        self.prev_deferred = prev_deferred


class _CommonSubgraphSearch:
    """Branch-and-bound state for one query/target pair."""

    def __init__(
        self,
        index: CompatibilityIndex,
        kind: CommonSubgraphKind,
        clock: BudgetClock,
        options: SearchOptions,
    ) -> None:
        self.index = index
        self.kind = kind
        self.clock = clock
        self.options = options

        self.query = index.query
        self.target = index.target
        self.query_adj = self.query.adjacency
        self.target_adj = self.target.adjacency
        self.order = index.search_order()
        self.n = self.query.vertex_count
        self.m = self.target.vertex_count

        self.images = [-1] * self.n
        self.state = [UNDECIDED] * self.n
        self.owner = [-1] * self.m
        self.mapped: list[int] = []
        self.mapped_at = [-1] * self.n
        self.deferred_at = [-1] * self.n
        self.score = 0
        self.unused_targets = self.m

        self.best_score = 0
        self.best_images = list(self.images)

        # Label classes make a tighter vertex bound possible
        self.labels = index.labels
        if self.labels is not None:
            self.target_labels = tuple(v.label for v in self.target.vertices)

        if options.topological:
            self.query_dist = index.profile.distances()
            self.target_dist = distance_matrix(self.target)

    # Feasibility

    def _distance_ok(self, d1: int | None, d2: int | None) -> bool:
        if d1 is None and d2 is None:
            return True
        near = d1 if d2 is None else d2 if d1 is None else min(d1, d2)
        if near > self.options.diameter:
            return True
        if d1 is None or d2 is None:
            return False
        return abs(d1 - d2) <= self.options.tolerance

    def _gain(self, q: int, t: int) -> int:
        """Score gained by mapping q to t, or -1 if the pair is infeasible."""
        images = self.images
        target = self.target
        index = self.index
        gain = 0

        if self.kind is CommonSubgraphKind.INDUCED:
            mapped_nbrs = 0
            for nbr, edge_idx in self.query_adj[q]:
                t_nbr = images[nbr]
                if t_nbr >= 0:
                    t_edge = target.edge_between(t, t_nbr)
                    if t_edge is None or not index.edge_ok(edge_idx, t_edge):
                        return -1
                    mapped_nbrs += 1
            # Mapped non-neighbors of q must stay non-neighbors of t
            owner = self.owner
            image_nbrs = sum(1 for t_nbr, _ in self.target_adj[t] if owner[t_nbr] >= 0)
            if image_nbrs != mapped_nbrs:
                return -1
            gain = 1
        else:
            for nbr, edge_idx in self.query_adj[q]:
                t_nbr = images[nbr]
                if t_nbr >= 0:
                    t_edge = target.edge_between(t, t_nbr)
                    if t_edge is not None and index.edge_ok(edge_idx, t_edge):
                        gain += 1

        if self.options.topological:
            q_row = self.query_dist[q]
            t_row = self.target_dist[t]
            for other in self.mapped:
                if not self._distance_ok(q_row[other], t_row[images[other]]):
                    return -1

        return gain

    def _is_open(self, q: int) -> bool:
        s = self.state[q]
        return s == UNDECIDED or s == DEFERRED

    def _has_open_neighbor(self, q: int) -> bool:
        return any(self._is_open(nbr) for nbr, _ in self.query_adj[q])

    def _fresh_link(self, q: int, t: int) -> bool:
        """Whether q -> t shares an edge with a neighbor mapped since q was deferred."""
        since = self.deferred_at[q]
        for nbr, edge_idx in self.query_adj[q]:
            if self.state[nbr] == MAPPED and self.mapped_at[nbr] >= since:
                t_edge = self.target.edge_between(t, self.images[nbr])
                if t_edge is not None and self.index.edge_ok(edge_idx, t_edge):
                    return True
        return False

    def _frame(self, q: int) -> _Frame:
        """Enumerate the feasible choices for q under the current mapping."""
        owner = self.owner
        edge_kind = self.kind is CommonSubgraphKind.EDGE
        must_connect = self.options.connected and bool(self.mapped)
        reopened = self.state[q] == DEFERRED
        choices: list[tuple[int, int]] = []

        for t in self.index.candidate_list(q):
            if owner[t] >= 0:
                continue
            gain = self._gain(q, t)
            if gain < 0:
                continue
            if edge_kind:
                if must_connect and gain == 0:
                    continue
                if reopened and not self._fresh_link(q, t):
                    # Already offered before the deferral
                    continue
                if gain == 0 and not self._has_open_neighbor(q):
                    # Nothing can ever be gained; same as skipping q
                    continue
            choices.append((t, gain))

        if edge_kind:
            choices.sort(key=lambda c: (-c[1], c[0]))
        choices.append((SKIP, 0))
        return _Frame(q, choices, self.state[q], self.deferred_at[q])

    # State transitions

    def _apply(self, frame: _Frame, t: int, gain: int) -> None:
        q = frame.q
        if t == SKIP:
            if self._defers_skips():
                self.state[q] = DEFERRED
                self.deferred_at[q] = len(self.mapped)
            else:
                self.state[q] = SKIPPED
        else:
            self.state[q] = MAPPED
            self.images[q] = t
            self.owner[t] = q
            self.mapped_at[q] = len(self.mapped)
            self.mapped.append(q)
            self.score += gain
            self.unused_targets -= 1
        frame.applied = True
        frame.gain = gain

    def _undo(self, frame: _Frame) -> None:
        q = frame.q
        if self.state[q] == MAPPED:
            t = self.images[q]
            self.owner[t] = -1
            self.images[q] = -1
            self.mapped_at[q] = -1
            self.mapped.pop()
            self.score -= frame.gain
            self.unused_targets += 1
        self.state[q] = frame.prev_state
        self.deferred_at[q] = frame.prev_deferred
        frame.applied = False
        frame.gain = 0

    def _defers_skips(self) -> bool:
        """In connected MCES a frontier vertex may gain its first shared edge
        only after a later neighbor is mapped, so skipping it is not final."""
        return (
            self.options.connected
            and self.kind is CommonSubgraphKind.EDGE
            and bool(self.mapped)
        )

    def _next_vertex(self, depth: int) -> int | None:
        """Next query vertex to decide, or None at a leaf."""
        if not self.options.connected:
            return self.order[depth] if depth < self.n else None

        state = self.state
        if not self.mapped:
            for q in self.order:
                if state[q] == UNDECIDED:
                    return q
            return None
        mapped_at = self.mapped_at
        for q in self.order:
            s = state[q]
            if s == UNDECIDED:
                if any(state[nbr] == MAPPED for nbr, _ in self.query_adj[q]):
                    return q
            elif s == DEFERRED:
                since = self.deferred_at[q]
                if any(state[nbr] == MAPPED and mapped_at[nbr] >= since
                       for nbr, _ in self.query_adj[q]):
                    return q
        return None

    # Bounds

    def _available(self, q: int) -> bool:
        owner = self.owner
        return any(owner[t] < 0 for t in self.index.candidate_list(q))

    def _bound(self) -> int:
        """Upper bound on the score of any completion of the current state."""
        state = self.state
        if self.kind is CommonSubgraphKind.INDUCED:
            if self.labels is not None:
                open_by_label: dict = {}
                for q in range(self.n):
                    if self._is_open(q) and self.index.candidate_list(q):
                        label = self.labels[q]
                        open_by_label[label] = open_by_label.get(label, 0) + 1
                if not open_by_label:
                    return self.score
                free_by_label: dict = {}
                owner = self.owner
                for t in range(self.m):
                    if owner[t] < 0:
                        label = self.target_labels[t]
                        if label in open_by_label:
                            free_by_label[label] = free_by_label.get(label, 0) + 1
                extra = sum(
                    min(count, free_by_label.get(label, 0))
                    for label, count in open_by_label.items()
                )
            else:
                open_count = sum(
                    1 for q in range(self.n) if self._is_open(q) and self._available(q)
                )
                extra = min(open_count, self.unused_targets)
            return self.score + extra

        # Each still possible query edge is credited once, to its later endpoint
        position = self.index.position
        extra = 0
        for q in range(self.n):
            if not self._is_open(q):
                continue
            back = 0
            q_pos = position(q)
            for nbr, _ in self.query_adj[q]:
                s = state[nbr]
                if s == MAPPED or (self._is_open(nbr) and position(nbr) < q_pos):
                    back += 1
            if back and self._available(q):
                extra += min(back, self.index.max_candidate_degree(q))
        return self.score + extra

    def _trivial_cap(self) -> int:
        if self.kind is CommonSubgraphKind.INDUCED:
            return min(self.n, self.m)
        return min(self.query.edge_count, self.target.edge_count)

    # Search

    def run(self) -> tuple[int, list[int], bool]:
        """Run the search.

        Returns:
            Tuple of (best score, best images per query vertex, exhaustive).
        """
        cap = min(self._trivial_cap(), self._bound())
        stop_at = cap
        if self.options.target_size is not None:
            stop_at = min(cap, self.options.target_size)
        if stop_at <= 0 or self.n == 0:
            return 0, list(self.best_images), cap <= 0

        first = self._next_vertex(0)
        stack: list[_Frame] = [self._frame(first)]
        completed = True

        while stack:
            frame = stack[-1]
            if frame.applied:
                self._undo(frame)
            if frame.pos >= len(frame.options):
                stack.pop()
                continue
            if not self.clock.tick():
                completed = False
                break

            t, gain = frame.options[frame.pos]
            frame.pos += 1
            self._apply(frame, t, gain)

            if self.score > self.best_score:
                self.best_score = self.score
                self.best_images = list(self.images)
                if self.best_score >= stop_at:
                    completed = self.best_score >= cap
                    break

            nxt = self._next_vertex(len(stack))
            if nxt is None:
                continue
            if self._bound() <= self.best_score:
                continue
            stack.append(self._frame(nxt))

        return self.best_score, self.best_images, completed


def _options(
    config: EngineConfig,
    connected: bool,
    topological: bool,
    diameter: int | None,
    tolerance: int | None,
    target_size: int | None,
) -> SearchOptions:
    return SearchOptions(
        connected=connected,
        topological=topological,
        diameter=config.topological_diameter if diameter is None else diameter,
        tolerance=config.topological_tolerance if tolerance is None else tolerance,
        target_size=target_size,
    )


def _shared_edges(
    index: CompatibilityIndex,
    images: list[int],
) -> tuple[tuple[int, int], ...]:
    """Pairs of query and target edge indices preserved by a mapping."""
    pairs = []
    target = index.target
    for edge_idx, edge in enumerate(index.query.edges):
        t_u, t_v = images[edge.u], images[edge.v]
        if t_u < 0 or t_v < 0:
            continue
        t_idx = target.edge_index_between(t_u, t_v)
        if t_idx is not None and index.edge_ok(edge_idx, target.edge(t_idx)):
            pairs.append((edge_idx, t_idx))
    return tuple(pairs)


def max_common_subgraph(
    a: Union["AnyGraph", QueryProfile],
    b: "AnyGraph",
    kind: CommonSubgraphKind | str = CommonSubgraphKind.INDUCED,
    budget: SearchBudget | None = None,
    *,
    connected: bool = False,
    topological: bool = False,
    diameter: int | None = None,
    tolerance: int | None = None,
    target_size: int | None = None,
    config: EngineConfig | None = None,
) -> MCSResult:
    """Find a maximum common subgraph of two graphs.

    Args:
        a: First graph, pattern, or a prebuilt QueryProfile of either.
        b: Second graph (or pattern, if ``a`` is a concrete graph).
        kind: ``"induced"`` (MCIS) or ``"edge"`` (MCES).
        budget: Search budget; defaults to the configured MCS budget.
        connected: Require the common subgraph to be connected.
        topological: Apply the topological distance constraint.
        diameter: Distance cutoff of the topological constraint.
        tolerance: Allowed distance mismatch of the topological constraint.
        target_size: Stop as soon as this size is reached.
        config: Engine configuration.

    Returns:
        MCSResult with the mapping from ``a`` to ``b`` vertices.

    Raises:
        IncompatibleKind: If ``kind`` is not a supported kind.
        TypeError: If both inputs are patterns.
    """
    kind = CommonSubgraphKind.coerce(kind)
    config = resolve_config(config)
    if budget is None:
        budget = config.mcs_budget
    options = _options(config, connected, topological, diameter, tolerance, target_size)

    profile = QueryProfile.of(a)
    if isinstance(b, Pattern):
        if profile.is_pattern:
            raise TypeError("Cannot compare two patterns")
        # The pattern is always the query side
        swapped = _search(QueryProfile(b), profile.graph, kind, budget, options)
        return swapped.inverse()
    return _search(profile, b, kind, budget, options)


def _search(
    profile: QueryProfile,
    target: Graph,
    kind: CommonSubgraphKind,
    budget: SearchBudget,
    options: SearchOptions,
) -> MCSResult:
    clock = budget.start()
    index = CompatibilityIndex(profile, target, DegreeMode.COMMON)
    search = _CommonSubgraphSearch(index, kind, clock, options)
    size, images, completed = search.run()

    if kind is CommonSubgraphKind.EDGE:
        edges = _shared_edges(index, images)
        touched = {i for edge_idx, _ in edges for i in index.query.edge(edge_idx).key}
        mapping = {q: images[q] for q in sorted(touched)}
    else:
        edges = _shared_edges(index, images)
        mapping = {q: t for q, t in enumerate(images) if t >= 0}

    result = MCSResult(
        kind=kind,
        size=size,
        mapping=mapping,
        edges=edges,
        exhaustive=completed,
        expanded=clock.expanded,
        elapsed=clock.elapsed,
    )
    if completed:
        logger.debug(
            "%s search of %r vs %r: size %d, %d nodes, %.3fs",
            kind.value, profile.graph, target, size, clock.expanded, clock.elapsed,
        )
    else:
        logger.debug(
            "%s search of %r vs %r stopped early: best size %d after %d nodes, %.3fs",
            kind.value, profile.graph, target, size, clock.expanded, clock.elapsed,
        )
    return result


def max_common_induced_subgraph(
    a: Union["AnyGraph", QueryProfile],
    b: "AnyGraph",
    budget: SearchBudget | None = None,
    **options,
) -> MCSResult:
    """Maximum common induced subgraph (MCIS).

    For every pair of mapped vertices, an edge exists between them in ``a``
    if and only if one exists between their images in ``b``, and shared
    edges have compatible attributes. ``size`` counts mapped vertices.
    See ``max_common_subgraph`` for the keyword options.
    """
    return max_common_subgraph(a, b, CommonSubgraphKind.INDUCED, budget, **options)


def max_common_edge_subgraph(
    a: Union["AnyGraph", QueryProfile],
    b: "AnyGraph",
    budget: SearchBudget | None = None,
    **options,
) -> MCSResult:
    """Maximum common edge subgraph (MCES).

    Maximizes the number of attribute-compatible edges present in both
    graphs under the mapping; edges present on one side only impose no
    constraint. ``size`` counts shared edges and ``mapping`` holds the
    vertices incident to them. See ``max_common_subgraph`` for the keyword
    options.
    """
    return max_common_subgraph(a, b, CommonSubgraphKind.EDGE, budget, **options)
