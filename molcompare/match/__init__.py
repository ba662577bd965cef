"""Compatibility index and isomorphism matching."""

from molcompare.match.index import (
    CompatibilityIndex,
    DegreeMode,
    QueryProfile,
)
from molcompare.match.isomorphism import (
    exact_match,
    exact_mapping,
    substructure_match,
    substructure_matches,
    node_substructure_match,
    node_substructure_matches,
    edge_substructure_match,
    edge_substructure_matches,
    count_matches,
)

__all__ = [
    "CompatibilityIndex",
    "DegreeMode",
    "QueryProfile",
    "exact_match",
    "exact_mapping",
    "substructure_match",
    "substructure_matches",
    "node_substructure_match",
    "node_substructure_matches",
    "edge_substructure_match",
    "edge_substructure_matches",
    "count_matches",
]
