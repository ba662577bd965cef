"""
Pattern attribute constraints.

A pattern vertex or edge carries one constraint per attribute instead of a
concrete value. Constraints form a small closed set of tagged variants:

    Exact(value)      the attribute must equal ``value``
    OneOf(values)     the attribute must be one of ``values``
    NoneOf(values)    the attribute must not be any of ``values``
    Anything()        no constraint

``satisfied`` is the single function that evaluates a constraint against a
concrete attribute value.

Example:
    >>> from molcompare.elements import HALOGENS
    >>> from molcompare.types import Vertex
    >>> halogen = VertexQuery(symbol=OneOf(HALOGENS))
    >>> halogen.accepts(Vertex("Cl"))
    True
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Union

from molcompare.elements import BondOrder, normalize_symbol

if TYPE_CHECKING:
    from molcompare.types import Edge, Vertex


class Constraint:
    """Base class of attribute constraints."""

    __slots__ = ()


@dataclass(frozen=True, slots=True)
class Exact(Constraint):
    """Attribute must equal ``value``."""

    value: object


@dataclass(frozen=True, slots=True)
class OneOf(Constraint):
    """Attribute must be a member of ``values``."""

    values: frozenset

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", frozenset(self.values))


@dataclass(frozen=True, slots=True)
class NoneOf(Constraint):
    """Attribute must not be a member of ``values``."""

    values: frozenset

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", frozenset(self.values))


@dataclass(frozen=True, slots=True)
class Anything(Constraint):
    """No constraint ("don't care")."""


ANY = Anything()

ConstraintLike = Union[Constraint, object, None]


def satisfied(constraint: Constraint, value: object) -> bool:
    """Check a concrete attribute value against a constraint."""
    if isinstance(constraint, Anything):
        return True
    if isinstance(constraint, Exact):
        return value == constraint.value
    if isinstance(constraint, OneOf):
        return value in constraint.values
    if isinstance(constraint, NoneOf):
        return value not in constraint.values
    raise TypeError(f"Not a constraint: {constraint!r}")


def as_constraint(value: ConstraintLike, convert=None) -> Constraint:
    """Wrap a plain value into a constraint.

    ``None`` means no constraint, a set/list/tuple means one of its members,
    and any other value means an exact match. ``convert`` normalizes each
    plain value (e.g. bond order names to ``BondOrder``).
    """
    if isinstance(value, Constraint):
        if convert is None:
            return value
        if isinstance(value, Exact):
            return Exact(convert(value.value))
        if isinstance(value, OneOf):
            return OneOf(convert(v) for v in value.values)
        if isinstance(value, NoneOf):
            return NoneOf(convert(v) for v in value.values)
        return value
    if value is None:
        return ANY
    if isinstance(value, (set, frozenset, list, tuple)):
        items: Iterable = value
        if convert is not None:
            items = (convert(v) for v in items)
        return OneOf(items)
    return Exact(convert(value) if convert is not None else value)


def _symbol(value: object) -> str:
    return normalize_symbol(str(value))


@dataclass(frozen=True, slots=True)
class VertexQuery:
    """Constraints a concrete vertex must satisfy to match a pattern vertex.

    Attributes:
        symbol: Element symbol constraint.
        charge: Formal charge constraint.
        is_aromatic: Aromaticity constraint.
        isotope: Isotope constraint (``None`` value means natural abundance).
        hydrogens: Implicit hydrogen count constraint.
        is_in_ring: Ring membership constraint.
    """

    symbol: Constraint = ANY
    charge: Constraint = ANY
    is_aromatic: Constraint = ANY
    isotope: Constraint = ANY
    hydrogens: Constraint = ANY
    is_in_ring: Constraint = ANY

    @classmethod
    def build(
        cls,
        symbol: ConstraintLike = None,
        *,
        charge: ConstraintLike = None,
        is_aromatic: ConstraintLike = None,
        isotope: ConstraintLike = None,
        hydrogens: ConstraintLike = None,
        is_in_ring: ConstraintLike = None,
    ) -> "VertexQuery":
        """Build a query from plain values or constraints; ``"*"`` means any element."""
        if symbol == "*":
            symbol = None
        return cls(
            symbol=as_constraint(symbol, _symbol),
            charge=as_constraint(charge),
            is_aromatic=as_constraint(is_aromatic),
            isotope=as_constraint(isotope),
            hydrogens=as_constraint(hydrogens),
            is_in_ring=as_constraint(is_in_ring),
        )

    @classmethod
    def from_vertex(cls, vertex: "Vertex") -> "VertexQuery":
        """Derive the query that a concrete vertex imposes when used as a pattern."""
        return cls(
            symbol=Exact(vertex.symbol),
            charge=Exact(vertex.charge),
            is_aromatic=Exact(vertex.is_aromatic),
            isotope=Exact(vertex.isotope) if vertex.isotope is not None else ANY,
        )

    def accepts(self, vertex: "Vertex") -> bool:
        """Check whether a concrete vertex satisfies every constraint."""
        return (
            satisfied(self.symbol, vertex.symbol)
            and satisfied(self.is_aromatic, vertex.is_aromatic)
            and satisfied(self.charge, vertex.charge)
            and satisfied(self.isotope, vertex.isotope)
            and satisfied(self.hydrogens, vertex.hydrogens)
            and satisfied(self.is_in_ring, vertex.is_in_ring)
        )


@dataclass(frozen=True, slots=True)
class EdgeQuery:
    """Constraints a concrete edge must satisfy to match a pattern edge.

    Attributes:
        u: Index of the lower endpoint.
        v: Index of the higher endpoint.
        order: Bond order constraint.
        stereo: Stereo flag constraint.
        is_in_ring: Ring membership constraint.
    """

    u: int
    v: int
    order: Constraint = ANY
    stereo: Constraint = ANY
    is_in_ring: Constraint = ANY

    def __post_init__(self) -> None:
        if self.u > self.v:
            u, v = self.v, self.u
            object.__setattr__(self, "u", u)
            object.__setattr__(self, "v", v)

    @classmethod
    def build(
        cls,
        u: int,
        v: int,
        order: ConstraintLike = None,
        *,
        stereo: ConstraintLike = None,
        is_in_ring: ConstraintLike = None,
    ) -> "EdgeQuery":
        """Build a query from plain values or constraints."""
        return cls(
            u,
            v,
            order=as_constraint(order, BondOrder.coerce),
            stereo=as_constraint(stereo),
            is_in_ring=as_constraint(is_in_ring),
        )

    @classmethod
    def from_edge(cls, edge: "Edge") -> "EdgeQuery":
        """Derive the query that a concrete edge imposes when used as a pattern."""
        return cls(edge.u, edge.v, order=Exact(edge.order))

    @property
    def key(self) -> tuple[int, int]:
        return (self.u, self.v)

    def other(self, idx: int) -> int:
        """Get the endpoint opposite ``idx``."""
        if idx == self.u:
            return self.v
        if idx == self.v:
            return self.u
        raise ValueError(f"Vertex {idx} not in edge {self.u}-{self.v}")

    def accepts(self, edge: "Edge") -> bool:
        """Check whether a concrete edge satisfies every constraint."""
        return (
            satisfied(self.order, edge.order)
            and satisfied(self.is_in_ring, edge.is_in_ring)
            and satisfied(self.stereo, edge.stereo)
        )
