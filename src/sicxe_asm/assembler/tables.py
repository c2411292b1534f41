"""
Section Tables
==============

Per-section stores consulted by the two assembler passes:

- **SymbolTable**: label -> location
- **LiteralTable**: pooled literal data, in first-seen order
- **ExternalTable**: EXTDEF (exported) and EXTREF (imported) names
- **ModificationTable**: relocation entries for the linker
- **Section**: program name, start address, length, main flag

Each section owns one of each, so sections can be assembled
independently.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional

from sicxe_asm.assembler.expressions import (
    LiteralType,
    form_byte_length,
    form_to_hex,
    form_type,
    literal_text,
)
from sicxe_asm.errors import UndefinedSymbolError


# =============================================================================
# Symbol Table
# =============================================================================

class SymbolTable:
    """Maps symbol names to locations. Names are case-sensitive."""

    def __init__(self):
        self._symbols: dict[str, int] = {}

    def put(self, name: str, location: int) -> None:
        """Define or redefine a symbol."""
        self._symbols[name] = location

    def find(self, name: str) -> Optional[int]:
        """Return a symbol's location, None if undefined."""
        return self._symbols.get(name)

    def as_dict(self) -> dict[str, int]:
        return dict(self._symbols)

    def __contains__(self, name: str) -> bool:
        return name in self._symbols

    def __iter__(self) -> Iterator[tuple[str, int]]:
        return iter(self._symbols.items())

    def __len__(self) -> int:
        return len(self._symbols)


# =============================================================================
# Literal Table
# =============================================================================

@dataclass
class Literal:
    """
    One literal pool entry.

    Attributes:
        text: Data form without the '=' prefix (e.g. "C'EOF'")
        location: Pool address, None until LTORG/END places it
        type: Character or hex data
    """
    text: str
    location: Optional[int]
    type: LiteralType

    @property
    def byte_length(self) -> int:
        return form_byte_length(self.text)

    def render(self) -> str:
        """Return the literal's bytes as hex."""
        return form_to_hex(self.text)


class LiteralTable:
    """
    Literal pool in first-seen order.

    A literal is inserted unplaced the first time an operand mentions it
    and placed exactly once, at the next LTORG or END.
    """

    def __init__(self):
        self._literals: list[Literal] = []

    def find(self, text: str) -> Optional[int]:
        """Return the index of a literal, None if absent."""
        text = literal_text(text)
        for index, literal in enumerate(self._literals):
            if literal.text == text:
                return index
        return None

    def get(self, text: str) -> Optional[Literal]:
        index = self.find(text)
        return self._literals[index] if index is not None else None

    def insert(self, text: str, location: Optional[int] = None,
               literal_type: Optional[LiteralType] = None) -> Literal:
        """Add a literal, returning the existing entry if already present."""
        existing = self.get(text)
        if existing is not None:
            return existing

        text = literal_text(text)
        literal = Literal(text, location, literal_type or form_type(text))
        self._literals.append(literal)
        return literal

    def resolve(self, text: str, location: int) -> None:
        """Place a literal at a location."""
        literal = self.get(text)
        if literal is None:
            raise KeyError(text)
        literal.location = location

    def unplaced(self) -> list[Literal]:
        """Literals still waiting for an LTORG/END, in insertion order."""
        return [literal for literal in self._literals if literal.location is None]

    def render(self) -> str:
        """Hex bytes of every placed literal, in pool order."""
        return "".join(
            literal.render() for literal in self._literals
            if literal.location is not None
        )

    def __iter__(self) -> Iterator[Literal]:
        return iter(self._literals)

    def __len__(self) -> int:
        return len(self._literals)


# =============================================================================
# External Definitions and References
# =============================================================================

NAMES_PER_RECORD = 6


class ExternalTable:
    """EXTDEF and EXTREF names of one section, in declaration order."""

    def __init__(self):
        self.defs: list[str] = []
        self.refs: list[str] = []

    def add_defs(self, names: list[str]) -> None:
        for name in names:
            if name not in self.defs:
                self.defs.append(name)

    def add_refs(self, names: list[str]) -> None:
        for name in names:
            if name not in self.refs:
                self.refs.append(name)

    def is_import(self, name: str) -> bool:
        return name in self.refs

    def is_export(self, name: str) -> bool:
        return name in self.defs

    def render_defs(self, symbols: SymbolTable) -> str:
        """
        Render define records: D{name:6}{location:06X}...

        Locations are written as 24-bit two's complement, so a negative
        EQU value exports as FFFFFF rather than a signed field.

        Raises:
            UndefinedSymbolError: If an exported name has no definition
        """
        lines = []
        for chunk in _chunks(self.defs, NAMES_PER_RECORD):
            entries = []
            for name in chunk:
                location = symbols.find(name)
                if location is None:
                    raise UndefinedSymbolError(
                        name, hint=f"'{name}' is listed in EXTDEF but never defined"
                    )
                entries.append(f"{name:<6}{location & 0xFFFFFF:06X}")
            lines.append("D" + "".join(entries) + "\n")
        return "".join(lines)

    def render_refs(self) -> str:
        """Render refer records: R{name:6}..."""
        return "".join(
            "R" + "".join(f"{name:<6}" for name in chunk) + "\n"
            for chunk in _chunks(self.refs, NAMES_PER_RECORD)
        )


def _chunks(items: list[str], size: int) -> Iterator[list[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


# =============================================================================
# Modification Records
# =============================================================================

@dataclass(frozen=True)
class Modification:
    """
    One relocation entry.

    Attributes:
        location: Address of the field to modify
        length: Field length in half-bytes
        sign: '+' or '-'
        symbol: External symbol whose value is added or subtracted
    """
    location: int
    length: int
    sign: str
    symbol: str

    def render(self) -> str:
        return f"M{self.location:06X}{self.length:02X}{self.sign}{self.symbol}\n"


class ModificationTable:
    """Modification records in the order they were requested."""

    def __init__(self):
        self._entries: list[Modification] = []

    def add(self, location: int, length: int, sign: str, symbol: str) -> Modification:
        entry = Modification(location, length, sign, symbol)
        self._entries.append(entry)
        return entry

    def render(self) -> str:
        return "".join(entry.render() for entry in self._entries)

    def __iter__(self) -> Iterator[Modification]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# Section Record
# =============================================================================

@dataclass
class Section:
    """
    Metadata of one program section.

    Attributes:
        program_name: Label of the START/CSECT line
        start_address: START operand (0 for control sections)
        program_length: Final location counter value
        is_main: True only for the section opened with START
    """
    program_name: str = ""
    start_address: int = 0
    program_length: int = 0
    is_main: bool = False


@dataclass
class SectionContext:
    """Everything one section owns while it is being assembled."""
    section: Section = field(default_factory=Section)
    symbols: SymbolTable = field(default_factory=SymbolTable)
    literals: LiteralTable = field(default_factory=LiteralTable)
    externals: ExternalTable = field(default_factory=ExternalTable)
    modifications: ModificationTable = field(default_factory=ModificationTable)
    tokens: list = field(default_factory=list)

    def add_token(self, token) -> None:
        self.tokens.append(token)
