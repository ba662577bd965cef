"""Maximum common subgraph search (MCIS and MCES)."""

from molcompare.mcs.result import CommonSubgraphKind, MCSResult
from molcompare.mcs.solver import (
    max_common_subgraph,
    max_common_induced_subgraph,
    max_common_edge_subgraph,
)

__all__ = [
    "CommonSubgraphKind",
    "MCSResult",
    "max_common_subgraph",
    "max_common_induced_subgraph",
    "max_common_edge_subgraph",
]
