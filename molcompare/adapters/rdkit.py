"""
RDKit boundary adapter.

Turns SMILES, SMARTS and MDL molblocks into molcompare graphs and patterns,
and graphs back into RDKit molecules for identifiers, properties and
rendering. The comparison engine itself never imports RDKit.

SMARTS support covers the primitives that map onto pattern constraints:

    atoms   element symbols, aromatic lowercase symbols, ``*``, ``a``,
            ``A``, ``#n``, isotopes, comma lists of elements, ``!``
            negation, charges, ``H`` counts, ``R`` / ``R0`` / ``rN``,
            conjunctions with ``;`` or ``&``
    bonds   ``- = # : ~ @ !@``, comma lists, ``!`` negation and the
            implicit single-or-aromatic bond

Anything else (recursive SMARTS, degree or valence queries) raises
ParseError.

Example:
    >>> graph = parse("CCO")
    >>> graph.vertex_count, graph.edge_count
    (3, 2)
    >>> pattern = parse_pattern("[C,N]-[OH]")
    >>> pattern.vertex_count, pattern.edge_count
    (2, 1)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rdkit import Chem
from rdkit.Chem import Descriptors
from rdkit.Chem.Draw import rdMolDraw2D

from molcompare.elements import AROMATIC_SUBSET, BondOrder
from molcompare.exceptions import ParseError
from molcompare.query import ANY, Constraint, EdgeQuery, Exact, NoneOf, OneOf, VertexQuery
from molcompare.types import Edge, Graph, Pattern, Vertex

if TYPE_CHECKING:
    from molcompare.types import AnyGraph

logger = logging.getLogger(__name__)

_RDKIT_TO_ORDER = {
    Chem.BondType.SINGLE: BondOrder.SINGLE,
    Chem.BondType.DOUBLE: BondOrder.DOUBLE,
    Chem.BondType.TRIPLE: BondOrder.TRIPLE,
    Chem.BondType.AROMATIC: BondOrder.AROMATIC,
}

_ORDER_TO_RDKIT = {order: bond_type for bond_type, order in _RDKIT_TO_ORDER.items()}

_PERIODIC_TABLE = Chem.GetPeriodicTable()

ELEMENT_SYMBOLS = frozenset(
    _PERIODIC_TABLE.GetElementSymbol(z) for z in range(1, 119)
)

# Lowercase forms allowed for aromatic atoms in SMARTS
_AROMATIC_SYMBOLS = {symbol.lower(): symbol for symbol in AROMATIC_SUBSET}

FORMATS = ("smiles", "sdf", "molblock")


# Molecules


def from_rdkit(mol: Chem.Mol, name: str | None = None) -> Graph:
    """Convert an RDKit molecule to a Graph.

    Hydrogens stay implicit unless the molecule carries explicit H atoms.

    Raises:
        ParseError: If the molecule contains a bond type with no BondOrder
            (dative, zero-order, ...).
    """
    vertices = [
        Vertex(
            symbol=atom.GetSymbol(),
            charge=atom.GetFormalCharge(),
            is_aromatic=atom.GetIsAromatic(),
            isotope=atom.GetIsotope() or None,
            hydrogens=atom.GetTotalNumHs(),
            is_in_ring=atom.IsInRing(),
        )
        for atom in mol.GetAtoms()
    ]

    edges = []
    for bond in mol.GetBonds():
        order = _RDKIT_TO_ORDER.get(bond.GetBondType())
        if order is None:
            raise ParseError(f"Unsupported bond type {bond.GetBondType()}", text=name)
        stereo = bond.GetStereo()
        edges.append(Edge(
            bond.GetBeginAtomIdx(),
            bond.GetEndAtomIdx(),
            order=order,
            stereo=None if stereo == Chem.BondStereo.STEREONONE else str(stereo),
            is_in_ring=bond.IsInRing(),
        ))

    if name is None and mol.HasProp("_Name"):
        name = mol.GetProp("_Name") or None
    return Graph(vertices, edges, name=name)


def parse(text: str, fmt: str = "smiles") -> Graph:
    """Parse a molecule into a Graph.

    Args:
        text: SMILES string or MDL molblock / SD record.
        fmt: ``"smiles"``, ``"sdf"`` or ``"molblock"``.

    Raises:
        ParseError: If RDKit rejects the input or the format is unknown.
    """
    fmt = fmt.lower()
    if fmt == "smiles":
        mol = Chem.MolFromSmiles(text)
        name = text
    elif fmt in ("sdf", "molblock"):
        mol = Chem.MolFromMolBlock(text)
        name = None
    else:
        raise ParseError(f"Unknown format {fmt!r}, expected one of {FORMATS}")

    if mol is None:
        raise ParseError("Invalid molecule", text=text, fmt=fmt)
    return from_rdkit(mol, name=name)


def to_rdkit(graph: Graph) -> Chem.Mol:
    """Build a sanitized RDKit molecule from a Graph.

    Raises:
        ParseError: If RDKit cannot sanitize the resulting structure.
    """
    rw = Chem.RWMol()
    for vertex in graph.vertices:
        atom = Chem.Atom(0 if vertex.symbol == "*" else vertex.symbol)
        atom.SetFormalCharge(vertex.charge)
        atom.SetIsAromatic(vertex.is_aromatic)
        if vertex.isotope is not None:
            atom.SetIsotope(vertex.isotope)
        atom.SetNumExplicitHs(vertex.hydrogens)
        atom.SetNoImplicit(True)
        rw.AddAtom(atom)

    for edge in graph.edges:
        rw.AddBond(edge.u, edge.v, _ORDER_TO_RDKIT[edge.order])
        if edge.order is BondOrder.AROMATIC:
            rw.GetBondBetweenAtoms(edge.u, edge.v).SetIsAromatic(True)

    mol = rw.GetMol()
    try:
        Chem.SanitizeMol(mol)
    except Exception as e:
        raise ParseError(f"Graph is not a valid molecule: {e}", text=graph.name) from e
    return mol


def to_smiles(graph: Graph) -> str:
    """Canonical SMILES of a Graph."""
    return Chem.MolToSmiles(to_rdkit(graph))


def inchikey(graph: Graph) -> str:
    """Standard InChIKey of a Graph.

    Raises:
        ParseError: If no InChIKey can be generated.
    """
    key = Chem.MolToInchiKey(to_rdkit(graph))
    if not key:
        raise ParseError("InChIKey generation failed", text=graph.name)
    return key


def standard_weight(graph: Graph) -> float:
    """Average molecular weight with standard atomic weights, hydrogens included."""
    return Descriptors.MolWt(to_rdkit(graph))


def draw_svg(graph: Graph, width: int = 300, height: int = 300) -> str:
    """Render a 2D depiction of a Graph as an SVG document."""
    drawer = rdMolDraw2D.MolDraw2DSVG(width, height)
    rdMolDraw2D.PrepareAndDrawMolecule(drawer, to_rdkit(graph))
    drawer.FinishDrawing()
    return drawer.GetDrawingText()


# Patterns


class _Reader:
    """Character cursor over one SMARTS atom or bond token."""

    __slots__ = ("_string", "_pos")

    def __init__(self, string: str) -> None:
        self._string = string
        self._pos = 0

    def peek(self, offset: int = 0) -> str | None:
        pos = self._pos + offset
        if pos >= len(self._string):
            return None
        return self._string[pos]

    def next(self) -> str | None:
        char = self.peek()
        if char is not None:
            self._pos += 1
        return char

    def read_number(self) -> int | None:
        start = self._pos
        while self._pos < len(self._string) and self._string[self._pos].isdigit():
            self._pos += 1
        digits = self._string[start:self._pos]
        return int(digits) if digits else None

    def is_eof(self) -> bool:
        return self._pos >= len(self._string)


def _split_top(text: str, separators: str) -> list[str]:
    parts = [text]
    for sep in separators:
        parts = [piece for part in parts for piece in part.split(sep)]
    return parts


def _read_element(reader: _Reader) -> tuple[str, bool] | None:
    """Read an element symbol; returns (symbol, aromatic) or None."""
    char = reader.peek()
    if char is None or not char.isalpha():
        return None
    if char.isupper():
        pair = char + (reader.peek(1) or "")
        if pair in ELEMENT_SYMBOLS:
            reader.next()
            reader.next()
            return pair, False
        if char in ELEMENT_SYMBOLS:
            reader.next()
            return char, False
        return None
    pair = char + (reader.peek(1) or "")
    if pair in _AROMATIC_SYMBOLS:
        reader.next()
        reader.next()
        return _AROMATIC_SYMBOLS[pair], True
    if char in _AROMATIC_SYMBOLS:
        reader.next()
        return _AROMATIC_SYMBOLS[char], True
    return None


def _read_atomic_number(reader: _Reader, smarts: str) -> str:
    reader.next()  # '#'
    number = reader.read_number()
    if number is None:
        raise ParseError("Atomic number expected after '#'", text=smarts, fmt="smarts")
    if number == 0:
        return "*"
    if not 0 < number < 119:
        raise ParseError(f"Invalid atomic number {number}", text=smarts, fmt="smarts")
    return _PERIODIC_TABLE.GetElementSymbol(number)


def _read_charge(reader: _Reader) -> int:
    sign_char = reader.next()
    sign = 1 if sign_char == "+" else -1
    count = 1
    while reader.peek() == sign_char:
        reader.next()
        count += 1
    number = reader.read_number()
    return sign * (number if number is not None else count)


class _AtomConstraints:
    """Attribute constraints collected while reading one SMARTS atom."""

    def __init__(self, smarts: str) -> None:
        self.smarts = smarts
        self.fields: dict[str, Constraint] = {}

    def set(self, name: str, constraint: Constraint) -> None:
        current = self.fields.get(name)
        if current is not None and current != constraint:
            raise ParseError(f"Conflicting {name} constraints", text=self.smarts, fmt="smarts")
        self.fields[name] = constraint

    def element(self, symbol: str, aromatic: bool | None) -> None:
        if symbol != "*":
            self.set("symbol", Exact(symbol))
        if aromatic is not None:
            self.set("is_aromatic", Exact(aromatic))

    def build(self) -> VertexQuery:
        return VertexQuery(**self.fields)


def _read_alternatives(term: str, smarts: str) -> tuple[Constraint, Constraint]:
    """Comma list of elements -> (symbol constraint, aromatic constraint)."""
    symbols = set()
    flags = set()
    for alternative in term.split(","):
        reader = _Reader(alternative)
        if reader.peek() == "#":
            symbols.add(_read_atomic_number(reader, smarts))
            flags.add(None)
        else:
            element = _read_element(reader)
            if element is None:
                raise ParseError(f"Unsupported list member {alternative!r}",
                                 text=smarts, fmt="smarts")
            symbols.add(element[0])
            flags.add(element[1])
        if not reader.is_eof():
            raise ParseError(f"Only element lists are supported, got {term!r}",
                             text=smarts, fmt="smarts")

    if "*" in symbols:
        return ANY, ANY
    aromatic = Exact(flags.pop()) if len(flags) == 1 and None not in flags else ANY
    return OneOf(symbols), aromatic


def _read_negation(reader: _Reader, atom: _AtomConstraints, smarts: str) -> None:
    reader.next()  # '!'
    char = reader.peek()
    if char == "#":
        atom.set("symbol", NoneOf({_read_atomic_number(reader, smarts)}))
    elif char == "R" and not _is_element_start(reader):
        reader.next()
        number = reader.read_number()
        atom.set("is_in_ring", Exact(number == 0))
    elif char == "a" and not _is_element_start(reader):
        reader.next()
        atom.set("is_aromatic", Exact(False))
    elif char == "A" and not _is_element_start(reader):
        reader.next()
        atom.set("is_aromatic", Exact(True))
    elif char == "H" and not _is_element_start(reader):
        reader.next()
        number = reader.read_number()
        atom.set("hydrogens", NoneOf({1 if number is None else number}))
    else:
        element = _read_element(reader)
        if element is None:
            raise ParseError(f"Unsupported negation in {smarts!r}", text=smarts, fmt="smarts")
        atom.set("symbol", NoneOf({element[0]}))


def _read_primitives(term: str, atom: _AtomConstraints, at_start: bool) -> None:
    """Read an implicit conjunction of atom primitives."""
    smarts = atom.smarts
    reader = _Reader(term)

    isotope = reader.read_number()
    if isotope is not None:
        atom.set("isotope", Exact(isotope))

    # A leading H not followed by a count is the hydrogen element
    if at_start and reader.peek() == "H" and not (reader.peek(1) or "").isdigit():
        following = reader.peek(1)
        if following is None or following in "+-":
            reader.next()
            atom.element("H", False)

    while not reader.is_eof():
        char = reader.peek()
        if char == "*":
            reader.next()
        elif char == "#":
            atom.element(_read_atomic_number(reader, smarts), None)
        elif char == "!":
            _read_negation(reader, atom, smarts)
        elif char == "a" and not _is_element_start(reader):
            reader.next()
            atom.set("is_aromatic", Exact(True))
        elif char == "A" and not _is_element_start(reader):
            reader.next()
            atom.set("is_aromatic", Exact(False))
        elif char in "+-":
            atom.set("charge", Exact(_read_charge(reader)))
        elif char == "H" and not _is_element_start(reader):
            reader.next()
            number = reader.read_number()
            atom.set("hydrogens", Exact(1 if number is None else number))
        elif char in "Rr" and not _is_element_start(reader):
            reader.next()
            number = reader.read_number()
            atom.set("is_in_ring", Exact(number != 0))
        else:
            element = _read_element(reader)
            if element is None:
                raise ParseError(f"Unsupported SMARTS primitive at {term!r}",
                                 text=smarts, fmt="smarts")
            atom.element(*element)


def _is_element_start(reader: _Reader) -> bool:
    """Tell H, R, a and A primitives apart from elements such as Hg, Ru, as or Al."""
    pair = (reader.peek() or "") + (reader.peek(1) or "")
    return len(pair) == 2 and (pair in ELEMENT_SYMBOLS or pair in _AROMATIC_SYMBOLS)


def _atom_query(token: str, smarts: str) -> VertexQuery:
    body = token[1:-1] if token.startswith("[") and token.endswith("]") else token
    if not body:
        raise ParseError("Empty atom", text=smarts, fmt="smarts")
    if "$(" in body or "@" in body:
        raise ParseError(f"Unsupported atom expression {token!r}", text=smarts, fmt="smarts")

    atom = _AtomConstraints(smarts)
    for position, term in enumerate(_split_top(body, ";&")):
        if not term:
            raise ParseError(f"Empty term in {token!r}", text=smarts, fmt="smarts")
        if "," in term:
            symbol, aromatic = _read_alternatives(term, smarts)
            atom.set("symbol", symbol)
            if aromatic is not ANY:
                atom.set("is_aromatic", aromatic)
        else:
            _read_primitives(term, atom, at_start=position == 0)
    return atom.build()


def _bond_query(u: int, v: int, token: str, smarts: str) -> EdgeQuery:
    if token == "":
        # Implicit SMARTS bond
        return EdgeQuery.build(u, v, {BondOrder.SINGLE, BondOrder.AROMATIC})

    order: Constraint = ANY
    ring: Constraint = ANY
    for term in _split_top(token, ";&"):
        if term == "~":
            continue
        if term == "@":
            ring = Exact(True)
        elif term == "!@":
            ring = Exact(False)
        elif term.startswith("!") and len(term) == 2:
            order = NoneOf({_bond_order(term[1], smarts)})
        else:
            orders = {_bond_order(sym, smarts) for sym in term.split(",")}
            order = OneOf(orders) if len(orders) > 1 else Exact(orders.pop())
    return EdgeQuery.build(u, v, order, is_in_ring=ring)


def _bond_order(symbol: str, smarts: str) -> BondOrder:
    if symbol in ("/", "\\"):
        return BondOrder.SINGLE
    try:
        return BondOrder.coerce(symbol)
    except ValueError:
        raise ParseError(f"Unsupported bond {symbol!r}", text=smarts, fmt="smarts") from None


def parse_pattern(smarts: str) -> Pattern:
    """Parse a SMARTS string into a Pattern.

    Raises:
        ParseError: If RDKit rejects the SMARTS or it uses primitives
            patterns cannot express.
    """
    mol = Chem.MolFromSmarts(smarts)
    if mol is None:
        raise ParseError("Invalid SMARTS", text=smarts, fmt="smarts")

    vertices = [_atom_query(atom.GetSmarts(), smarts) for atom in mol.GetAtoms()]
    edges = [
        _bond_query(bond.GetBeginAtomIdx(), bond.GetEndAtomIdx(), bond.GetSmarts(), smarts)
        for bond in mol.GetBonds()
    ]
    logger.debug("Parsed SMARTS %s into %d vertices, %d edges", smarts, len(vertices), len(edges))
    return Pattern(vertices, edges, name=smarts)


def parse_any(text: str, fmt: str = "smiles") -> "AnyGraph":
    """Parse a molecule, or a pattern when ``fmt`` is ``"smarts"``."""
    if fmt.lower() == "smarts":
        return parse_pattern(text)
    return parse(text, fmt)
