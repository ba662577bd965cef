"""Test configuration and fixtures for molcompare tests."""

from __future__ import annotations

import pytest

from molcompare.budget import SearchBudget
from molcompare.config import EngineConfig
from molcompare.types import Graph, Pattern


def ring(n: int, symbol: str = "C", order: str = "single", name: str | None = None) -> Graph:
    """Build an n-membered ring of identical vertices.

    Args:
        n: Ring size.
        symbol: Element of every vertex.
        order: Bond order of every edge.
        name: Optional graph name.

    Returns:
        Ring graph with edges (0, 1), (1, 2), ..., (n - 1, 0).
    """
    return Graph.from_records(
        [symbol] * n,
        [(i, (i + 1) % n, order) for i in range(n)],
        name=name or f"ring{n}",
    )


def path(n: int, symbol: str = "C", name: str | None = None) -> Graph:
    """Build a linear chain of n identical vertices."""
    return Graph.from_records(
        [symbol] * n,
        [(i, i + 1) for i in range(n - 1)],
        name=name or f"path{n}",
    )


def star(leaves: int, symbol: str = "C") -> Graph:
    """Build a star: vertex 0 bonded to every other vertex."""
    return Graph.from_records(
        [symbol] * (leaves + 1),
        [(0, i) for i in range(1, leaves + 1)],
        name=f"star{leaves}",
    )


@pytest.fixture
def config() -> EngineConfig:
    """Configuration without deadlines, so results do not depend on machine speed."""
    return EngineConfig(mcs_timeout=None, match_timeout=None, max_workers=1)


@pytest.fixture
def unlimited() -> SearchBudget:
    return SearchBudget.unlimited()


@pytest.fixture
def square() -> Graph:
    """4-cycle of carbons."""
    return ring(4)


@pytest.fixture
def hexagon() -> Graph:
    """6-cycle of carbons."""
    return ring(6)


@pytest.fixture
def propane() -> Graph:
    """3-vertex carbon path."""
    return path(3)


@pytest.fixture
def ethanol() -> Graph:
    """C-C-O."""
    return Graph.from_records(["C", "C", "O"], [(0, 1), (1, 2)], name="ethanol")


@pytest.fixture
def acetic_acid() -> Graph:
    """CC(=O)O with a double bond to the carbonyl oxygen."""
    return Graph.from_records(
        ["C", "C", "O", "O"],
        [(0, 1), (1, 2, "double"), (1, 3)],
        name="acetic_acid",
    )


@pytest.fixture
def benzene() -> Graph:
    """Aromatic six-ring with ring flags."""
    return Graph.from_records(
        [{"symbol": "C", "is_aromatic": True, "hydrogens": 1}] * 6,
        [(i, (i + 1) % 6, "aromatic") for i in range(6)],
        name="benzene",
        perceive_rings=True,
    )


@pytest.fixture
def toluene() -> Graph:
    """Benzene ring with a methyl on vertex 0."""
    aromatic = {"symbol": "C", "is_aromatic": True, "hydrogens": 1}
    return Graph.from_records(
        [{"symbol": "C", "is_aromatic": True}] + [aromatic] * 5 + [{"symbol": "C", "hydrogens": 3}],
        [(i, (i + 1) % 6, "aromatic") for i in range(6)] + [(0, 6)],
        name="toluene",
        perceive_rings=True,
    )


@pytest.fixture
def hydroxyl() -> Pattern:
    """C-O with a single bond."""
    return Pattern.from_records(["C", "O"], [(0, 1, "single")], name="hydroxyl")


@pytest.fixture
def any_path() -> Pattern:
    """Three wildcard vertices joined by bonds of any order."""
    return Pattern.from_records(["*", "*", "*"], [(0, 1), (1, 2)], name="any_path")
