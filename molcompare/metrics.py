"""
Similarity metrics derived from common-subgraph sizes.

The scalar functions take the common size and the element counts (vertices
for induced, edges for edge subgraphs) of both inputs:

    tanimoto  common / (n_a + n_b - common)
    distance  max(n_a, n_b) - common, never negative
    gls       tanimoto * min(n_a, n_b) / max(n_a, n_b)

``gls`` (graph-likeness score) is Tanimoto damped by the size ratio of the
two inputs, so a small graph fully contained in a large one ranks below a
pair of similar-sized graphs with the same overlap. It lies in [0, 1] and
never decreases as the common size grows.

``gls_batch`` scores one query against many targets on a worker pool.

Example:
    >>> tanimoto(4, 4, 4)
    1.0
    >>> distance(2, 3, 6)
    4
    >>> round(gls(3, 3, 6), 3)
    0.25
"""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Sequence, Union

from molcompare.budget import SearchBudget
from molcompare.config import EngineConfig, resolve_config
from molcompare.exceptions import CompareError
from molcompare.match.index import QueryProfile
from molcompare.mcs.result import CommonSubgraphKind
from molcompare.mcs.solver import max_common_subgraph
from molcompare.types import Graph, Pattern

if TYPE_CHECKING:
    from molcompare.types import AnyGraph

logger = logging.getLogger(__name__)


def tanimoto(common: int, n_a: int, n_b: int) -> float:
    """Tanimoto coefficient of a common subgraph.

    Args:
        common: Common subgraph size.
        n_a: Element count of the first input.
        n_b: Element count of the second input.

    Returns:
        Value in [0, 1]; 1.0 when both inputs are empty.
    """
    if n_a == 0 and n_b == 0:
        return 1.0
    denominator = n_a + n_b - common
    if denominator <= 0:
        return 0.0
    return min(1.0, max(0.0, common / denominator))


def distance(common: int, n_a: int, n_b: int) -> int:
    """Number of elements of the larger input left unmatched."""
    return max(0, max(n_a, n_b) - common)


def gls(common: int, n_a: int, n_b: int) -> float:
    """Graph-likeness score: Tanimoto damped by the size ratio."""
    larger = max(n_a, n_b)
    if larger == 0:
        return 1.0
    return tanimoto(common, n_a, n_b) * min(n_a, n_b) / larger


def element_count(graph: "AnyGraph", kind: CommonSubgraphKind) -> int:
    """Vertices for induced, edges for edge subgraphs."""
    if kind is CommonSubgraphKind.INDUCED:
        return graph.vertex_count
    return graph.edge_count


def pair_gls(
    a: Union["AnyGraph", QueryProfile],
    b: "AnyGraph",
    kind: CommonSubgraphKind,
    budget: SearchBudget,
    options: Mapping[str, Any] | None = None,
) -> float:
    """GLS of one pair, searching with the given budget."""
    result = max_common_subgraph(a, b, kind, budget, **(options or {}))
    first = a.graph if isinstance(a, QueryProfile) else a
    return gls(result.size, element_count(first, kind), element_count(b, kind))


@dataclass(frozen=True)
class BatchError:
    """Marker for a batch position that could not be scored.

    Attributes:
        index: Position of the target in the input sequence.
        error: Exception class name.
        message: Exception message.
    """

    index: int
    error: str
    message: str

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"target {self.index}: {self.error}: {self.message}"


def _coerce_target(target: Any) -> "AnyGraph":
    """Turn a batch element into a graph."""
    if isinstance(target, (Graph, Pattern)):
        return target
    if isinstance(target, Mapping):
        return Graph.from_records(
            target.get("vertices", ()),
            target.get("edges", ()),
            name=target.get("name"),
        )
    if isinstance(target, str):
        from molcompare.adapters.rdkit import parse

        return parse(target)
    raise TypeError(f"Cannot build a graph from {type(target).__name__}")


def _score_target(
    query: Union["AnyGraph", QueryProfile],
    target: Any,
    kind: CommonSubgraphKind,
    budget: SearchBudget,
    reverse: bool,
    options: Mapping[str, Any],
) -> float:
    """Worker body for one batch element."""
    graph = _coerce_target(target)
    if reverse:
        fixed = query.graph if isinstance(query, QueryProfile) else query
        return pair_gls(graph, fixed, kind, budget, options)
    return pair_gls(query, graph, kind, budget, options)


def _marker(index: int, exc: Exception) -> BatchError:
    logger.error("Batch element %d failed: %s: %s", index, type(exc).__name__, exc)
    return BatchError(index=index, error=type(exc).__name__, message=str(exc))


def gls_batch(
    query: "AnyGraph",
    targets: Sequence[Any],
    kind: CommonSubgraphKind | str = CommonSubgraphKind.INDUCED,
    budget: SearchBudget | None = None,
    *,
    reverse: bool = False,
    max_workers: int | None = None,
    config: EngineConfig | None = None,
    **options: Any,
) -> list[float | BatchError]:
    """Score one query against many targets.

    Each target gets its own search with its own budget. Failures are
    isolated: a target that cannot be built or scored yields a BatchError
    at its position and the other targets are still scored.

    Args:
        query: Fixed side of every comparison.
        targets: Graphs, ``{"vertices": ..., "edges": ...}`` records, or
            SMILES strings.
        kind: ``"induced"`` or ``"edge"``.
        budget: Per-target budget; defaults to the configured MCS budget.
        reverse: Use each target as the first operand and the query as
            the second.
        max_workers: Worker processes; defaults to the configuration. With
            one worker the batch runs in the calling process.
        config: Engine configuration.
        **options: Search options passed to ``max_common_subgraph``
            (``connected``, ``topological``, ``diameter``, ``tolerance``).

    Returns:
        One GLS score or BatchError per target, in input order.

    Raises:
        IncompatibleKind: If ``kind`` is not a supported kind.
    """
    kind = CommonSubgraphKind.coerce(kind)
    config = resolve_config(config)
    if budget is None:
        budget = config.mcs_budget
    workers = max_workers or config.workers
    options.setdefault("config", config)

    if not targets:
        return []
    if not isinstance(query, (Graph, Pattern)):
        raise TypeError(f"Query must be a Graph or Pattern, got {type(query).__name__}")

    # Query-side tables are built once for the whole batch
    fixed: Union["AnyGraph", QueryProfile] = query if reverse else QueryProfile(query)
    results: list[float | BatchError | None] = [None] * len(targets)

    if workers <= 1 or len(targets) == 1:
        for i, target in enumerate(targets):
            try:
                results[i] = _score_target(fixed, target, kind, budget, reverse, options)
            except (CompareError, TypeError, ValueError) as e:
                results[i] = _marker(i, e)
    else:
        workers = min(workers, len(targets))
        with concurrent.futures.ProcessPoolExecutor(max_workers=workers) as executor:
            future_to_index = {
                executor.submit(_score_target, fixed, target, kind, budget, reverse, options): i
                for i, target in enumerate(targets)
            }
            for future in concurrent.futures.as_completed(future_to_index):
                i = future_to_index[future]
                try:
                    results[i] = future.result()
                except Exception as e:
                    results[i] = _marker(i, e)

    failed = sum(1 for r in results if isinstance(r, BatchError))
    logger.debug("Scored %d targets with %d workers, %d failed", len(targets), workers, failed)
    return results
