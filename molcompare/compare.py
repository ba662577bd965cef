"""
Engine API.

The boundary calls of the comparison engine in one place. Every call is
stateless: it takes immutable graphs, allocates its own search state and
returns plain values, so calls can run concurrently on shared graphs.

Common-subgraph based calls take a ``kind`` ("induced" for MCIS, "edge" for
MCES) and an optional SearchBudget. Without a budget the configured default
(``EngineConfig.mcs_timeout``) applies.

Example:
    >>> from molcompare.types import Graph
    >>> square = Graph.from_records(["C"] * 4, [(0, 1), (1, 2), (2, 3), (3, 0)])
    >>> common_subgraph_size(square, square, "induced")
    (4, True)
    >>> similarity(square, square, "edge")
    1.0
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Union

from molcompare import metrics
from molcompare.budget import SearchBudget
from molcompare.config import EngineConfig
from molcompare.match.index import QueryProfile
from molcompare.match.isomorphism import (
    edge_substructure_match,
    exact_match,
    node_substructure_match,
    substructure_match,
)
from molcompare.mcs.result import CommonSubgraphKind, MCSResult
from molcompare.mcs.solver import max_common_subgraph
from molcompare.metrics import BatchError, gls_batch
from molcompare.types import edge_count, vertex_count

if TYPE_CHECKING:
    from molcompare.types import AnyGraph

__all__ = [
    "exact_match",
    "substructure_match",
    "node_substructure_match",
    "edge_substructure_match",
    "common_subgraph",
    "common_subgraph_size",
    "similarity",
    "distance",
    "gls",
    "gls_batch",
    "BatchError",
    "vertex_count",
    "edge_count",
]


def common_subgraph(
    a: Union["AnyGraph", QueryProfile],
    b: "AnyGraph",
    kind: CommonSubgraphKind | str = CommonSubgraphKind.INDUCED,
    budget: SearchBudget | None = None,
    *,
    config: EngineConfig | None = None,
    **options: Any,
) -> MCSResult:
    """Maximum common subgraph with its witness mapping."""
    return max_common_subgraph(a, b, kind, budget, config=config, **options)


def common_subgraph_size(
    a: "AnyGraph",
    b: "AnyGraph",
    kind: CommonSubgraphKind | str = CommonSubgraphKind.INDUCED,
    budget: SearchBudget | None = None,
    *,
    config: EngineConfig | None = None,
    **options: Any,
) -> tuple[int, bool]:
    """Size of a maximum common subgraph.

    Args:
        a: First graph or pattern.
        b: Second graph or pattern.
        kind: ``"induced"`` (vertex count of the MCIS) or ``"edge"`` (edge
            count of the MCES).
        budget: Search budget.
        config: Engine configuration.
        **options: ``connected``, ``topological``, ``diameter``,
            ``tolerance`` or ``target_size``.

    Returns:
        ``(size, exhaustive)``; ``exhaustive`` is False when the budget ran
        out before the size was proven maximal.

    Raises:
        IncompatibleKind: If ``kind`` is not a supported kind.
    """
    return common_subgraph(a, b, kind, budget, config=config, **options).as_tuple()


def _sized(
    a: "AnyGraph",
    b: "AnyGraph",
    kind: CommonSubgraphKind | str,
    budget: SearchBudget | None,
    config: EngineConfig | None,
    options: dict,
) -> tuple[int, int, int]:
    kind = CommonSubgraphKind.coerce(kind)
    size, _ = common_subgraph_size(a, b, kind, budget, config=config, **options)
    return size, metrics.element_count(a, kind), metrics.element_count(b, kind)


def similarity(
    a: "AnyGraph",
    b: "AnyGraph",
    kind: CommonSubgraphKind | str = CommonSubgraphKind.INDUCED,
    budget: SearchBudget | None = None,
    *,
    config: EngineConfig | None = None,
    **options: Any,
) -> float:
    """Tanimoto similarity over vertices (induced) or edges (edge), in [0, 1]."""
    return metrics.tanimoto(*_sized(a, b, kind, budget, config, options))


def distance(
    a: "AnyGraph",
    b: "AnyGraph",
    kind: CommonSubgraphKind | str = CommonSubgraphKind.INDUCED,
    budget: SearchBudget | None = None,
    *,
    config: EngineConfig | None = None,
    **options: Any,
) -> int:
    """Unmatched vertices (induced) or edges (edge) of the larger input."""
    return metrics.distance(*_sized(a, b, kind, budget, config, options))


def gls(
    a: "AnyGraph",
    b: "AnyGraph",
    kind: CommonSubgraphKind | str = CommonSubgraphKind.INDUCED,
    budget: SearchBudget | None = None,
    *,
    config: EngineConfig | None = None,
    **options: Any,
) -> float:
    """Graph-likeness score, see ``molcompare.metrics.gls``."""
    return metrics.gls(*_sized(a, b, kind, budget, config, options))
