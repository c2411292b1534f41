"""
SIC/XE Source Line Tokenizer
============================

This module splits one logical source line into its fields and holds the
per-line state both assembler passes work on.

Line Format
-----------
Fields are separated by tab characters:

    LABEL <TAB> OPERATOR <TAB> OPERANDS <TAB> COMMENT

- LABEL is optional (the line starts with a tab when it is absent)
- OPERATOR is required
- OPERANDS is a comma-separated list of up to three operands
- COMMENT is free text; further tabs belong to the comment

Lines whose first non-blank character is '.' are whole-line comments and
are skipped by the line reader.

Example
-------
>>> token = Token.from_line("CLOOP\\t+JSUB\\tRDREC\\tread record")
>>> token.label, token.operator, token.operands, token.comment
('CLOOP', '+JSUB', ['RDREC'], 'read record')
"""

from dataclasses import dataclass, field, replace
from enum import IntFlag
from typing import Optional, TYPE_CHECKING

from sicxe_asm.errors import AssemblySyntaxError, SourceLocation

if TYPE_CHECKING:
    from sicxe_asm.assembler.opcodes import Instruction
    from sicxe_asm.assembler.tables import Literal


MAX_OPERAND = 3

COMMENT_PREFIX = "."


# =============================================================================
# Addressing Flags
# =============================================================================

class AddressingFlags(IntFlag):
    """
    The nixbpe bits of a format 3/4 instruction.

    The numeric weights match their position in the encoded instruction,
    so the flag value can be shifted straight into the object code.
    """
    NONE = 0
    N = 32  # Indirect
    I = 16  # Immediate
    X = 8   # Indexed
    B = 4   # Base-relative
    P = 2   # PC-relative
    E = 1   # Extended (format 4)

    SIMPLE = N | I


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass
class Token:
    """
    One parsed source line.

    Attributes:
        label: Label field, None when blank
        operator: Operator field in upper case, "+" kept (e.g. "+JSUB")
        operands: Operand list, None when the field is blank
        comment: Comment field, None when absent
        location: Address assigned by pass 1
        nixbpe: Addressing flags set by pass 2
        object_code: Hex object code set by pass 2
        byte_size: Number of bytes in object_code
        instruction: Directory entry resolved by validate()
        pool: Literals placed at this LTORG/END by pass 1
        source: Where the line came from, at the operand field when there
                is one and at the operator otherwise
        operator_source: Where the operator field starts
        source_line: The raw line text
    """
    label: Optional[str]
    operator: str
    operands: Optional[list[str]] = None
    comment: Optional[str] = None

    location: int = 0
    nixbpe: AddressingFlags = AddressingFlags.NONE

    object_code: Optional[str] = None
    byte_size: int = 0

    instruction: Optional["Instruction"] = None
    pool: list["Literal"] = field(default_factory=list)

    source: Optional[SourceLocation] = None
    operator_source: Optional[SourceLocation] = None
    source_line: Optional[str] = None

    @classmethod
    def from_line(cls, line: str, source: Optional[SourceLocation] = None) -> "Token":
        """
        Parse a tab-delimited source line.

        Args:
            line: One source line (without the newline)
            source: Location for error messages

        Raises:
            AssemblySyntaxError: If the operator is missing or there are
                                 too many operands
        """
        fields = line.rstrip("\r\n").split("\t", 3)

        label = fields[0].strip() or None

        operator = fields[1].strip().upper() if len(fields) > 1 else ""
        if not operator:
            raise AssemblySyntaxError(
                "operator is required", source, source_line=line,
                hint="fields are separated by tabs: LABEL<TAB>OPERATOR<TAB>OPERANDS",
            )

        operator_source = _field_location(source, fields, 1)

        operands = None
        operand_source = operator_source
        if len(fields) > 2 and fields[2].strip():
            operand_source = _field_location(source, fields, 2)
            operands = split_operands(fields[2].strip())
            if len(operands) > MAX_OPERAND:
                raise AssemblySyntaxError(
                    f"at most {MAX_OPERAND} operands are allowed, got {len(operands)}",
                    operand_source, source_line=line,
                )

        comment = fields[3] if len(fields) > 3 else None

        return cls(
            label=label,
            operator=operator,
            operands=operands,
            comment=comment,
            source=operand_source,
            operator_source=operator_source,
            source_line=line,
        )

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self, instruction: Optional["Instruction"]) -> None:
        """
        Check the operator exists and enough operands were supplied.

        On success the instruction is remembered on the token.

        Raises:
            AssemblySyntaxError: Unknown operator or too few operands
        """
        if instruction is None:
            raise AssemblySyntaxError(
                f"unknown operator '{self.operator}'",
                self.operator_source, source_line=self.source_line,
            )

        if self.operand_count < instruction.min_operands:
            raise AssemblySyntaxError(
                f"'{instruction.mnemonic}' needs at least "
                f"{instruction.min_operands} operand(s), got {self.operand_count}",
                self.source, source_line=self.source_line,
            )

        self.instruction = instruction

    @property
    def operand_count(self) -> int:
        return len(self.operands) if self.operands else 0

    def operand(self, index: int) -> Optional[str]:
        """Return an operand by position, None if absent."""
        if self.operands and index < len(self.operands):
            return self.operands[index]
        return None

    # =========================================================================
    # Flag Operations
    # =========================================================================

    def set_flag(self, flag: AddressingFlags, value: bool = True) -> None:
        """
        Set or clear nixbpe bits.

        Example:
            token.set_flag(AddressingFlags.P)
            token.set_flag(AddressingFlags.N | AddressingFlags.I)
        """
        if value:
            self.nixbpe |= flag
        else:
            self.nixbpe &= ~flag

    def get_flag(self, flags: AddressingFlags) -> AddressingFlags:
        """Return the subset of `flags` that is set (combinations allowed)."""
        return self.nixbpe & flags

    def has_flag(self, flag: AddressingFlags) -> bool:
        return (self.nixbpe & flag) == flag

    def __repr__(self) -> str:
        return (
            f"Token(location={self.location:04X}, label={self.label!r}, "
            f"operator={self.operator!r}, operands={self.operands!r}, "
            f"nixbpe={int(self.nixbpe):06b})"
        )


# =============================================================================
# Helpers
# =============================================================================

def _field_location(source: Optional[SourceLocation], fields: list[str],
                    index: int) -> Optional[SourceLocation]:
    """Location of the first non-blank character of fields[index]."""
    if source is None:
        return None
    text = fields[index]
    offset = sum(len(f) + 1 for f in fields[:index]) + len(text) - len(text.lstrip())
    return replace(source, column=source.column + offset)


def split_operands(text: str) -> list[str]:
    """
    Split an operand field on commas outside quotes.

        "BUFFER,X"  -> ['BUFFER', 'X']
        "C'A,B'"    -> ["C'A,B'"]
    """
    operands = []
    current = []
    quoted = False

    for ch in text:
        if ch == "'":
            quoted = not quoted
        if ch == "," and not quoted:
            operands.append("".join(current).strip())
            current = []
        else:
            current.append(ch)

    operands.append("".join(current).strip())
    return operands


def is_comment_line(line: str) -> bool:
    """True for blank lines and lines starting with '.'."""
    text = line.strip()
    return not text or text.startswith(COMMENT_PREFIX)
