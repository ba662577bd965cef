"""
Tests for exact and substructure matching.

Where the semantics coincide, results are checked against RDKit's
substructure search on the same molecules.
"""

from __future__ import annotations

import logging

import pytest

from molcompare.budget import SearchBudget
from molcompare.config import EngineConfig
from molcompare.match import (
    count_matches,
    edge_substructure_match,
    edge_substructure_matches,
    exact_mapping,
    exact_match,
    node_substructure_match,
    node_substructure_matches,
    substructure_match,
    substructure_matches,
)
from molcompare.types import Graph, Pattern

from .conftest import path, ring, star

# Try to import RDKit for comparison tests
try:
    from rdkit import Chem
    HAS_RDKIT = True
except ImportError:
    HAS_RDKIT = False


class TestExactMatch:
    """Isomorphism of attributed graphs."""

    def test_reflexive(self, ethanol: Graph, benzene: Graph, config: EngineConfig) -> None:
        for g in (ethanol, benzene, ring(7), star(4), Graph()):
            assert exact_match(g, g, config=config)

    def test_relabelled(self, config: EngineConfig) -> None:
        """Vertex order does not matter."""
        a = Graph.from_records(["C", "C", "O"], [(0, 1), (1, 2)])
        b = Graph.from_records(["O", "C", "C"], [(2, 1), (1, 0)])
        assert exact_match(a, b, config=config)
        assert exact_match(b, a, config=config)
        assert exact_mapping(a, b, config=config) == (2, 1, 0)

    def test_squares(self, config: EngineConfig) -> None:
        """Two 4-cycles with identical vertices, built in different orders."""
        a = ring(4)
        b = Graph.from_records(["C"] * 4, [(0, 2), (2, 1), (1, 3), (3, 0)])
        assert exact_match(a, b, config=config)

    def test_symmetric_negative(self, config: EngineConfig) -> None:
        pairs = [
            (path(4), star(3)),
            (ring(6), Graph.from_records(["C"] * 6, [(0, 1), (1, 2), (2, 0), (3, 4), (4, 5), (5, 3)])),
            (path(3), ring(3)),
        ]
        for a, b in pairs:
            assert not exact_match(a, b, config=config)
            assert not exact_match(b, a, config=config)

    def test_attributes_matter(self, config: EngineConfig) -> None:
        """Charge, hydrogens and bond order all count."""
        base = Graph.from_records(["C", "O"], [(0, 1)])
        charged = Graph.from_records(["C", {"symbol": "O", "charge": -1}], [(0, 1)])
        hydrogens = Graph.from_records(["C", {"symbol": "O", "hydrogens": 1}], [(0, 1)])
        double = Graph.from_records(["C", "O"], [(0, 1, "double")])
        for other in (charged, hydrogens, double):
            assert not exact_match(base, other, config=config)

    def test_rejects_patterns(self, hydroxyl: Pattern, ethanol: Graph) -> None:
        with pytest.raises(TypeError):
            exact_match(hydroxyl, ethanol)


class TestSubstructureMatch:
    """Pattern embedding."""

    def test_path_in_ring(self, propane: Graph, hexagon: Graph, config: EngineConfig) -> None:
        assert substructure_match(propane, hexagon, config=config)
        assert not substructure_match(hexagon, propane, config=config)

    def test_empty_pattern(self, ethanol: Graph) -> None:
        assert substructure_match(Pattern(), ethanol)
        assert substructure_matches(Pattern(), ethanol) == [()]

    def test_empty_target(self, hydroxyl: Pattern) -> None:
        assert not substructure_match(hydroxyl, Graph())

    def test_hydroxyl(self, hydroxyl: Pattern, ethanol: Graph, acetic_acid: Graph) -> None:
        assert substructure_matches(hydroxyl, ethanol) == [(1, 2)]
        # Only the single-bonded oxygen of the acid matches
        assert substructure_matches(hydroxyl, acetic_acid) == [(1, 3)]

    def test_target_may_have_extra_bonds(self, config: EngineConfig) -> None:
        """Non-induced: a 3-path embeds in a triangle."""
        assert substructure_match(path(3), ring(3), config=config)

    def test_wildcards(self, any_path: Pattern, ethanol: Graph) -> None:
        assert substructure_match(any_path, ethanol)
        assert count_matches(any_path, ethanol) == 1
        assert len(substructure_matches(any_path, ethanol, uniquify=False)) == 2

    def test_uniquify(self, propane: Graph, hexagon: Graph) -> None:
        """Six unique vertex sets, each found in both directions."""
        assert len(substructure_matches(propane, hexagon)) == 6
        assert len(substructure_matches(propane, hexagon, uniquify=False)) == 12

    def test_max_matches(self, propane: Graph, hexagon: Graph) -> None:
        assert len(substructure_matches(propane, hexagon, max_matches=2)) == 2

    def test_anchor(self, propane: Graph, hexagon: Graph) -> None:
        """Mandatory pairs restrict the embeddings."""
        matches = substructure_matches(propane, hexagon, uniquify=False, anchor={1: 3})
        assert sorted(matches) == [(2, 3, 4), (4, 3, 2)]
        assert not substructure_match(propane, hexagon, anchor={0: 0, 2: 1})

    def test_ring_constraint(self, benzene: Graph, toluene: Graph) -> None:
        in_ring = Pattern.from_records(
            [{"symbol": "C", "is_in_ring": True}, {"symbol": "C", "is_in_ring": False}],
            [(0, 1)],
        )
        assert substructure_matches(in_ring, toluene) == [(0, 6)]
        assert not substructure_match(in_ring, benzene)

    def test_pattern_from_graph(self, propane: Graph, ethanol: Graph) -> None:
        """A graph used as a pattern matches on chemical identity."""
        assert substructure_match(Pattern.from_graph(propane), ring(5))
        assert not substructure_match(Pattern.from_graph(propane), ethanol)

    def test_budget_exhaustion_is_false_and_logged(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        big = ring(12)
        caplog.set_level(logging.WARNING, logger="molcompare")
        found = substructure_match(path(12), big, budget=SearchBudget(max_nodes=1))
        assert found is False
        assert "budget exhausted" in caplog.text


@pytest.mark.skipif(not HAS_RDKIT, reason="RDKit not installed")
class TestInducedSubstructure:
    """Node-induced and edge-induced embeddings."""

    def test_chain_is_not_node_induced_in_square(self, config: EngineConfig) -> None:
        """Closing the square bonds the chain ends, which the chain does not have."""
        assert substructure_match(path(4), ring(4), config=config)
        assert not node_substructure_match(path(4), ring(4), config=config)

    def test_node_induced_matches(self, config: EngineConfig) -> None:
        matches = node_substructure_matches(path(3), ring(4), config=config)
        assert len(matches) == 4
        for a, b, c in matches:
            assert not ring(4).has_edge(a, c)

    def test_triangle_closes_the_chain(self, config: EngineConfig) -> None:
        assert substructure_match(path(3), ring(3), config=config)
        assert node_substructure_matches(path(3), ring(3), config=config) == []

    def test_node_induced_anchor(self, config: EngineConfig) -> None:
        assert node_substructure_match(path(3), ring(5), anchor={1: 2}, config=config)
        assert not node_substructure_match(path(3), ring(3), anchor={1: 2}, config=config)

    def test_edge_matches_map_bonds(self, propane: Graph, hexagon: Graph,
                                    config: EngineConfig) -> None:
        matches = edge_substructure_matches(propane, hexagon, config=config)
        assert len(matches) == 6
        for first, second in matches:
            assert hexagon.edge(first).key != hexagon.edge(second).key
            assert set(hexagon.edge(first).key) & set(hexagon.edge(second).key)

    def test_edge_match_ignores_lone_atoms(self, config: EngineConfig) -> None:
        query = Graph.from_records(["C", "C", "O"], [(0, 1)])
        assert not substructure_match(query, path(2), config=config)
        assert edge_substructure_match(query, path(2), config=config)
        assert edge_substructure_matches(query, path(2), config=config) == [(0,)]

    def test_edge_match_needs_bonds(self, ethanol: Graph, config: EngineConfig) -> None:
        lone = Graph.from_records(["C"], [])
        assert not edge_substructure_match(lone, ethanol, config=config)
        assert not edge_substructure_match(star(3), ring(6), config=config)


class TestAgainstRDKit:
    """Compare substructure counts with RDKit on SMILES-derived graphs."""

    CASES = [
        ("CCO", "CO"),
        ("CCCC", "CC"),
        ("c1ccccc1", "cc"),
        ("c1ccccc1C", "cC"),
        ("CC(=O)O", "C=O"),
        ("CC(=O)O", "CO"),
        ("OCCO", "CO"),
        ("C1CCC1", "CCC"),
        ("C1CC2CCCCC2C1", "C1CCCCC1"),
    ]

    @pytest.mark.parametrize("smiles,fragment", CASES)
    def test_match_count(self, smiles: str, fragment: str) -> None:
        from molcompare.adapters.rdkit import parse, parse_pattern

        target = parse(smiles)
        pattern = parse_pattern(fragment)
        expected = len(Chem.MolFromSmiles(smiles).GetSubstructMatches(Chem.MolFromSmarts(fragment)))
        assert count_matches(pattern, target) == expected

    @pytest.mark.parametrize("smiles", ["CCO", "c1ccccc1O", "CC(C)Cc1ccc(cc1)C(C)C(=O)O"])
    def test_exact_match_with_reordered_smiles(self, smiles: str) -> None:
        from molcompare.adapters.rdkit import parse

        mol = Chem.MolFromSmiles(smiles)
        randomized = Chem.MolToSmiles(mol, doRandom=True, canonical=False)
        assert exact_match(parse(smiles), parse(randomized))
