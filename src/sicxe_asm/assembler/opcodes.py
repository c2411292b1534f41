"""
SIC/XE Instruction Set Definition
=================================

This module defines the SIC/XE instruction directory: every machine
instruction with its format and opcode, plus the assembler directives the
two passes understand.

Instruction Formats
-------------------
1. **Format 1** (1 byte): opcode only (FIX, FLOAT, HIO, NORM, SIO, TIO)

2. **Format 2** (2 bytes): opcode + two 4-bit register fields
   - Example: COMPR A,S -> $A0 $04

3. **Format 3** (3 bytes): 6-bit opcode + nixbpe + 12-bit displacement
   - Example: STL RETADR -> $17 $20 $27 (PC-relative)

4. **Format 4** (4 bytes): 6-bit opcode + nixbpe + 20-bit address
   - Written with a '+' prefix: +JSUB RDREC -> $4B $10 $00 $00

Directives
----------
Directives carry no opcode. Their "format" is the number of bytes the
location counter advances when the directive itself is reached: zero for
most, one for BYTE and three for WORD (the declared data capacity).

Registers
---------
| Register | Number |
|----------|--------|
| A        | 0      |
| X        | 1      |
| L        | 2      |
| B        | 3      |
| S        | 4      |
| T        | 5      |
| F        | 6      |
| PC       | 8      |
| SW       | 9      |
"""

from dataclasses import dataclass, replace
from enum import Enum, auto
from pathlib import Path
from typing import Optional

from sicxe_asm.errors import AssemblySyntaxError, SourceLocation


# =============================================================================
# Operator Kind Enumeration
# =============================================================================

class OperatorKind(Enum):
    """
    What an operator does during assembly.

    Resolved once when the instruction directory is built, so the passes
    dispatch on an enum member instead of comparing mnemonic strings.
    """
    INSTRUCTION = auto()  # Ordinary machine instruction
    START = auto()        # Open the main section
    CSECT = auto()        # Open a control section
    EXTDEF = auto()       # Export symbols
    EXTREF = auto()       # Import symbols
    RESW = auto()         # Reserve words
    RESB = auto()         # Reserve bytes
    EQU = auto()          # Define a symbol value
    LTORG = auto()        # Place pending literals
    END = auto()          # End of source (places pending literals)
    BYTE = auto()         # One byte of data
    WORD = auto()         # One word (3 bytes) of data

    @property
    def is_directive(self) -> bool:
        return self is not OperatorKind.INSTRUCTION


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class Instruction:
    """
    One entry of the instruction directory.

    Attributes:
        mnemonic: Operator name as written (without the '+' prefix)
        format: Instruction length in bytes, or the location advance for
                directives (0, or 1/3 for BYTE/WORD)
        opcode: Opcode byte, None for directives
        min_operands: Minimum number of operands the operator accepts
        opens_section: True for operators that begin a new program section
        kind: Directive variant, INSTRUCTION for machine instructions
    """
    mnemonic: str
    format: int
    opcode: Optional[int]
    min_operands: int = 0
    opens_section: bool = False
    kind: OperatorKind = OperatorKind.INSTRUCTION

    @property
    def is_directive(self) -> bool:
        return self.opcode is None

    def __repr__(self) -> str:
        if self.opcode is None:
            return f"Instruction({self.mnemonic}, directive {self.kind.name})"
        return f"Instruction({self.mnemonic}, format={self.format}, opcode=${self.opcode:02X})"


# =============================================================================
# Instruction Table
# =============================================================================
# Key: mnemonic
# Value: (format, opcode, min_operands)
# =============================================================================

INSTRUCTION_TABLE: dict[str, tuple[int, int, int]] = {
    # Format 1
    "FIX": (1, 0xC4, 0),
    "FLOAT": (1, 0xC0, 0),
    "HIO": (1, 0xF4, 0),
    "NORM": (1, 0xC8, 0),
    "SIO": (1, 0xF0, 0),
    "TIO": (1, 0xF8, 0),

    # Format 2 (register-register)
    "ADDR": (2, 0x90, 2),
    "CLEAR": (2, 0xB4, 1),
    "COMPR": (2, 0xA0, 2),
    "DIVR": (2, 0x9C, 2),
    "MULR": (2, 0x98, 2),
    "RMO": (2, 0xAC, 2),
    "SHIFTL": (2, 0xA4, 2),
    "SHIFTR": (2, 0xA8, 2),
    "SUBR": (2, 0x94, 2),
    "SVC": (2, 0xB0, 1),
    "TIXR": (2, 0xB8, 1),

    # Format 3/4: arithmetic and logic
    "ADD": (3, 0x18, 1),
    "ADDF": (3, 0x58, 1),
    "AND": (3, 0x40, 1),
    "COMP": (3, 0x28, 1),
    "COMPF": (3, 0x88, 1),
    "DIV": (3, 0x24, 1),
    "DIVF": (3, 0x64, 1),
    "MUL": (3, 0x20, 1),
    "MULF": (3, 0x60, 1),
    "OR": (3, 0x44, 1),
    "SUB": (3, 0x1C, 1),
    "SUBF": (3, 0x5C, 1),

    # Format 3/4: jumps
    "J": (3, 0x3C, 1),
    "JEQ": (3, 0x30, 1),
    "JGT": (3, 0x34, 1),
    "JLT": (3, 0x38, 1),
    "JSUB": (3, 0x48, 1),
    "RSUB": (3, 0x4C, 0),

    # Format 3/4: loads
    "LDA": (3, 0x00, 1),
    "LDB": (3, 0x68, 1),
    "LDCH": (3, 0x50, 1),
    "LDF": (3, 0x70, 1),
    "LDL": (3, 0x08, 1),
    "LDS": (3, 0x6C, 1),
    "LDT": (3, 0x74, 1),
    "LDX": (3, 0x04, 1),
    "LPS": (3, 0xD0, 1),

    # Format 3/4: stores
    "STA": (3, 0x0C, 1),
    "STB": (3, 0x78, 1),
    "STCH": (3, 0x54, 1),
    "STF": (3, 0x80, 1),
    "STI": (3, 0xD4, 1),
    "STL": (3, 0x14, 1),
    "STS": (3, 0x7C, 1),
    "STSW": (3, 0xE8, 1),
    "STT": (3, 0x84, 1),
    "STX": (3, 0x10, 1),

    # Format 3/4: I/O and system
    "RD": (3, 0xD8, 1),
    "SSK": (3, 0xEC, 1),
    "TD": (3, 0xE0, 1),
    "TIX": (3, 0x2C, 1),
    "WD": (3, 0xDC, 1),
}

# Directive: (location advance, min_operands, opens_section)
DIRECTIVE_TABLE: dict[OperatorKind, tuple[int, int, bool]] = {
    OperatorKind.START: (0, 1, True),
    OperatorKind.CSECT: (0, 0, True),
    OperatorKind.EXTDEF: (0, 1, False),
    OperatorKind.EXTREF: (0, 1, False),
    OperatorKind.RESW: (0, 1, False),
    OperatorKind.RESB: (0, 1, False),
    OperatorKind.EQU: (0, 1, False),
    OperatorKind.LTORG: (0, 0, False),
    OperatorKind.END: (0, 0, False),
    OperatorKind.BYTE: (1, 1, False),
    OperatorKind.WORD: (3, 1, False),
}

# Register numbers for format 2 operands
REGISTERS: dict[str, int] = {
    "A": 0,
    "X": 1,
    "L": 2,
    "B": 3,
    "S": 4,
    "T": 5,
    "F": 6,
    "PC": 8,
    "SW": 9,
}

# Format 2 instructions whose second operand is a count, not a register
SHIFT_INSTRUCTIONS: frozenset[str] = frozenset({"SHIFTL", "SHIFTR"})

# RSUB has no operand and always encodes as this constant
RSUB_OBJECT_CODE = 0x4F0000

EXTENDED_PREFIX = "+"


# =============================================================================
# Instruction Directory
# =============================================================================

class InstructionDirectory:
    """
    Read-only mnemonic lookup shared by every section.

    Usage:
        directory = InstructionDirectory.default()
        directory.lookup("LDA")     # format 3
        directory.lookup("+LDA")    # format 4
        directory.lookup("BOGUS")   # None
    """

    def __init__(self, instructions: dict[str, Instruction]):
        self._instructions = dict(instructions)

    @classmethod
    def default(cls) -> "InstructionDirectory":
        """Build the directory from the built-in SIC/XE tables."""
        instructions: dict[str, Instruction] = {}

        for mnemonic, (fmt, opcode, min_operands) in INSTRUCTION_TABLE.items():
            instructions[mnemonic] = Instruction(mnemonic, fmt, opcode, min_operands)

        for kind, (advance, min_operands, opens_section) in DIRECTIVE_TABLE.items():
            instructions[kind.name] = Instruction(
                kind.name, advance, None, min_operands, opens_section, kind
            )

        return cls(instructions)

    @classmethod
    def from_file(cls, path: str | Path) -> "InstructionDirectory":
        """
        Load machine instructions from a tab-separated file.

        Each non-blank line that does not start with '#' holds:
            MNEMONIC  FORMAT  OPCODE(hex)  MIN_OPERANDS  [SECTION]

        A fifth column of "SECTION" marks an instruction that opens a new
        section. Directives are always taken from the built-in table.

        Raises:
            AssemblySyntaxError: If a line is malformed
        """
        path = Path(path)
        directory = cls.default()
        instructions = {
            name: inst for name, inst in directory._instructions.items()
            if inst.is_directive
        }

        for line_no, line in enumerate(path.read_text().splitlines(), start=1):
            text = line.strip()
            if not text or text.startswith("#"):
                continue

            fields = text.split()
            if len(fields) < 4:
                raise AssemblySyntaxError(
                    "instruction entry needs MNEMONIC FORMAT OPCODE MIN_OPERANDS",
                    SourceLocation(str(path), line_no, 1),
                    source_line=line,
                )
            try:
                fmt = int(fields[1])
                opcode = int(fields[2], 16)
                min_operands = int(fields[3])
            except ValueError:
                raise AssemblySyntaxError(
                    f"invalid number in instruction entry for '{fields[0]}'",
                    SourceLocation(str(path), line_no, 1),
                    source_line=line,
                ) from None

            if fmt not in (1, 2, 3):
                raise AssemblySyntaxError(
                    f"instruction format must be 1, 2 or 3, got {fmt}",
                    SourceLocation(str(path), line_no, 1),
                    source_line=line,
                    hint="format 4 is written with a '+' prefix in source",
                )

            mnemonic = fields[0].upper()
            opens_section = len(fields) > 4 and fields[4].upper() == "SECTION"
            instructions[mnemonic] = Instruction(
                mnemonic, fmt, opcode, min_operands, opens_section
            )

        return cls(instructions)

    def lookup(self, mnemonic: str) -> Optional[Instruction]:
        """
        Look up an operator.

        A leading '+' selects the format 4 variant of a format 3
        instruction that takes an operand.

        Args:
            mnemonic: Operator as written in source

        Returns:
            Instruction if known, None otherwise
        """
        name = mnemonic.upper()

        if name.startswith(EXTENDED_PREFIX):
            base = self._instructions.get(name[1:])
            if base is None or base.format != 3 or base.is_directive or base.min_operands == 0:
                return None
            return replace(base, format=4)

        return self._instructions.get(name)

    def __contains__(self, mnemonic: str) -> bool:
        return self.lookup(mnemonic) is not None

    def __len__(self) -> int:
        return len(self._instructions)


def register_number(name: str) -> Optional[int]:
    """
    Return the number of a format 2 register operand.

    Decimal values are accepted as-is (SVC n).

    Returns:
        Register number, or None if the name is not a register
    """
    name = name.strip().upper()
    if name.isdigit():
        return int(name)
    return REGISTERS.get(name)
