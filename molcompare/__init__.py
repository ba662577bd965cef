"""
molcompare - Molecular graph comparison.

Exact and substructure matching, maximum common induced and edge subgraphs
under a search budget, and the similarity scores derived from them.

    >>> from molcompare import Graph, similarity
    >>> square = Graph.from_records(["C"] * 4, [(0, 1), (1, 2), (2, 3), (3, 0)])
    >>> similarity(square, square)
    1.0

Submodules:
    molcompare.match    - Compatibility index, exact and substructure matching
    molcompare.mcs      - Maximum common subgraph search
    molcompare.metrics  - Tanimoto, distance and GLS scores, batch scoring
    molcompare.adapters - SMILES/SMARTS/molblock parsing via RDKit
"""

import logging

__version__ = "0.1.0"

# Core types
from molcompare.types import Vertex, Edge, Graph, Pattern, vertex_count, edge_count
from molcompare.query import VertexQuery, EdgeQuery, Exact, OneOf, NoneOf, ANY

# Search control
from molcompare.budget import SearchBudget
from molcompare.config import EngineConfig

# Engine API
from molcompare.compare import (
    exact_match,
    substructure_match,
    node_substructure_match,
    edge_substructure_match,
    common_subgraph,
    common_subgraph_size,
    similarity,
    distance,
    gls,
    gls_batch,
    BatchError,
)
from molcompare.mcs import CommonSubgraphKind, MCSResult

# Exceptions
from molcompare.exceptions import CompareError, MalformedGraph, IncompatibleKind, ParseError

# Element data
from molcompare.elements import BondOrder, HALOGENS

# Submodules
from molcompare import match, mcs, metrics, topology

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Types
    "Vertex", "Edge", "Graph", "Pattern", "vertex_count", "edge_count",
    # Pattern constraints
    "VertexQuery", "EdgeQuery", "Exact", "OneOf", "NoneOf", "ANY",
    # Search control
    "SearchBudget", "EngineConfig",
    # Engine API
    "exact_match", "substructure_match", "node_substructure_match", "edge_substructure_match",
    "common_subgraph", "common_subgraph_size",
    "similarity", "distance", "gls", "gls_batch", "BatchError",
    "CommonSubgraphKind", "MCSResult",
    # Exceptions
    "CompareError", "MalformedGraph", "IncompatibleKind", "ParseError",
    # Elements
    "BondOrder", "HALOGENS",
    # Submodules
    "match", "mcs", "metrics", "topology",
]
