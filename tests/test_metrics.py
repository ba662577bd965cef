"""Tests for similarity metrics and the engine API."""

from __future__ import annotations

import pytest

from molcompare import compare
from molcompare.budget import SearchBudget
from molcompare.config import EngineConfig
from molcompare.exceptions import IncompatibleKind
from molcompare.metrics import distance, gls, tanimoto
from molcompare.types import Graph, Pattern

from .conftest import path, ring, star


class TestScalarMetrics:
    """Metrics as functions of sizes."""

    def test_tanimoto(self) -> None:
        assert tanimoto(4, 4, 4) == 1.0
        assert tanimoto(2, 3, 6) == pytest.approx(2 / 7)
        assert tanimoto(0, 3, 5) == 0.0

    def test_tanimoto_empty(self) -> None:
        """Two empty inputs are identical."""
        assert tanimoto(0, 0, 0) == 1.0

    def test_tanimoto_degenerate_denominator(self) -> None:
        assert tanimoto(3, 1, 2) == 0.0

    def test_distance(self) -> None:
        assert distance(4, 4, 4) == 0
        assert distance(2, 3, 6) == 4
        assert distance(7, 3, 6) == 0

    def test_gls_range(self) -> None:
        for n_a in range(0, 6):
            for n_b in range(0, 6):
                for common in range(0, min(n_a, n_b) + 1):
                    assert 0.0 <= gls(common, n_a, n_b) <= 1.0

    def test_gls_monotonic_in_common_size(self) -> None:
        for n_a, n_b in [(3, 6), (5, 5), (1, 10), (0, 4)]:
            scores = [gls(m, n_a, n_b) for m in range(min(n_a, n_b) + 1)]
            assert scores == sorted(scores)

    def test_gls_penalizes_size_asymmetry(self) -> None:
        """Full containment in a larger graph ranks below an equal-size pair."""
        assert gls(3, 3, 3) == 1.0
        assert gls(3, 3, 6) < tanimoto(3, 3, 6)
        assert gls(3, 3, 6) == pytest.approx(0.25)

    def test_gls_empty(self) -> None:
        assert gls(0, 0, 0) == 1.0


class TestEngineAPI:
    """Boundary calls of the engine."""

    def test_common_subgraph_size(self, square: Graph, config: EngineConfig) -> None:
        assert compare.common_subgraph_size(square, square, "induced", config=config) == (4, True)
        assert compare.common_subgraph_size(square, square, "edge", config=config) == (4, True)

    def test_unknown_kind(self, square: Graph) -> None:
        with pytest.raises(IncompatibleKind):
            compare.similarity(square, square, "atoms")

    def test_similarity_over_vertices_and_edges(self, config: EngineConfig) -> None:
        a, b = path(3), ring(6)
        assert compare.similarity(a, b, "induced", config=config) == pytest.approx(3 / 6)
        assert compare.similarity(a, b, "edge", config=config) == pytest.approx(2 / 6)

    def test_distance(self, config: EngineConfig) -> None:
        assert compare.distance(path(3), ring(6), "induced", config=config) == 3
        assert compare.distance(path(3), ring(6), "edge", config=config) == 4

    def test_gls(self, config: EngineConfig) -> None:
        score = compare.gls(path(3), ring(6), "edge", config=config)
        assert score == pytest.approx(gls(2, 2, 6))

    def test_ranges(self, config: EngineConfig) -> None:
        graphs = [ring(3), ring(5), path(4), star(3), Graph.from_records(["O"], [])]
        for a in graphs:
            for b in graphs:
                for kind in ("induced", "edge"):
                    assert 0.0 <= compare.similarity(a, b, kind, config=config) <= 1.0
                    assert compare.distance(a, b, kind, config=config) >= 0
                    assert 0.0 <= compare.gls(a, b, kind, config=config) <= 1.0

    def test_accessors(self, ethanol: Graph, hydroxyl: Pattern) -> None:
        assert compare.vertex_count(ethanol) == 3
        assert compare.edge_count(ethanol) == 2
        assert compare.vertex_count(hydroxyl) == 2
        assert compare.edge_count(hydroxyl) == 1

    def test_budgeted_similarity_is_lower_bound(self, config: EngineConfig) -> None:
        a, b = ring(6), path(6)
        full = compare.similarity(a, b, "edge", config=config)
        starved = compare.similarity(a, b, "edge", SearchBudget(max_nodes=2), config=config)
        assert starved <= full


class TestScenarios:
    """End-to-end scenarios."""

    def test_identical_squares(self, config: EngineConfig) -> None:
        a = ring(4)
        b = Graph.from_records(["C"] * 4, [(3, 2), (2, 1), (1, 0), (0, 3)])
        assert compare.exact_match(a, b, config=config)
        assert compare.common_subgraph_size(a, b, "induced", config=config) == (4, True)
        assert compare.common_subgraph_size(a, b, "edge", config=config) == (4, True)
        assert compare.similarity(a, b, "induced", config=config) == 1.0
        assert compare.similarity(a, b, "edge", config=config) == 1.0
        assert compare.distance(a, b, "induced", config=config) == 0
        assert compare.distance(a, b, "edge", config=config) == 0

    def test_path_pattern_in_ring(self, config: EngineConfig) -> None:
        pattern = Pattern.from_records(["C", "C", "C"], [(0, 1), (1, 2)])
        hexagon = ring(6)
        assert compare.substructure_match(pattern, hexagon, config=config)
        size, exhaustive = compare.common_subgraph_size(pattern, hexagon, "edge", config=config)
        assert size == 2
        assert exhaustive

    def test_reflexive_and_symmetric(self, config: EngineConfig) -> None:
        graphs = [ring(4), path(5), star(4)]
        for g in graphs:
            assert compare.exact_match(g, g, config=config)
            assert compare.common_subgraph_size(g, g, "induced", config=config) == (g.vertex_count, True)
        for a in graphs:
            for b in graphs:
                assert compare.exact_match(a, b, config=config) == compare.exact_match(b, a, config=config)
                for kind in ("induced", "edge"):
                    forward = compare.common_subgraph_size(a, b, kind, config=config)
                    backward = compare.common_subgraph_size(b, a, kind, config=config)
                    assert forward[0] == backward[0]
