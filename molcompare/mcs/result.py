"""Common-subgraph kinds and search results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from molcompare.exceptions import IncompatibleKind


class CommonSubgraphKind(str, Enum):
    """Which common subgraph is maximized."""

    INDUCED = "induced"  # MCIS: vertices, edge presence and absence preserved
    EDGE = "edge"        # MCES: shared edges, non-induced

    @classmethod
    def coerce(cls, kind: "CommonSubgraphKind | str") -> "CommonSubgraphKind":
        """Accept a kind, its value, or the "mcis"/"mces" aliases.

        Raises:
            IncompatibleKind: If ``kind`` names no supported kind.
        """
        if isinstance(kind, cls):
            return kind
        if isinstance(kind, str):
            key = kind.strip().lower()
            key = _ALIASES.get(key, key)
            try:
                return cls(key)
            except ValueError:
                pass
        raise IncompatibleKind(kind)


_ALIASES = {
    "mcis": "induced",
    "node": "induced",
    "vertex": "induced",
    "mces": "edge",
}


@dataclass(frozen=True)
class MCSResult:
    """Outcome of a common-subgraph search.

    Attributes:
        kind: Kind of common subgraph searched.
        size: Mapped vertex count (induced) or shared edge count (edge).
        mapping: First graph vertex -> second graph vertex.
        edges: Shared edges as ``(first_edge_index, second_edge_index)``.
        exhaustive: True if ``size`` is provably maximal, False if the
            search was cut short by its budget or a target size.
        expanded: Search nodes expanded.
        elapsed: Wall-clock seconds spent searching.
    """

    kind: CommonSubgraphKind
    size: int
    mapping: dict[int, int] = field(default_factory=dict)
    edges: tuple[tuple[int, int], ...] = ()
    exhaustive: bool = True
    expanded: int = 0
    elapsed: float = 0.0

    def inverse(self) -> "MCSResult":
        """The same result seen from the second graph."""
        return MCSResult(
            kind=self.kind,
            size=self.size,
            mapping={t: q for q, t in self.mapping.items()},
            edges=tuple(sorted((f, e) for e, f in self.edges)),
            exhaustive=self.exhaustive,
            expanded=self.expanded,
            elapsed=self.elapsed,
        )

    def as_tuple(self) -> tuple[int, bool]:
        """``(size, exhaustive)``."""
        return (self.size, self.exhaustive)
