"""Boundary adapters between text formats, RDKit and molcompare graphs."""

from molcompare.adapters.rdkit import (
    parse,
    parse_pattern,
    parse_any,
    from_rdkit,
    to_rdkit,
    to_smiles,
    inchikey,
    standard_weight,
    draw_svg,
)

__all__ = [
    "parse",
    "parse_pattern",
    "parse_any",
    "from_rdkit",
    "to_rdkit",
    "to_smiles",
    "inchikey",
    "standard_weight",
    "draw_svg",
]
