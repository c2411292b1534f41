"""
SIC/XE Assembler Error Hierarchy
================================

This module defines the exception hierarchy for the SIC/XE assembler.
All exceptions inherit from SicxeError, allowing callers to catch every
assembler-related error with a single except clause if desired.

Exception Hierarchy
-------------------
SicxeError (base)
└── AssemblerError (assembler-related)
    ├── AssemblySyntaxError - malformed source line or directive parameter
    ├── UndefinedSymbolError - name is neither a local symbol nor an import
    ├── DuplicateSymbolError - label defined twice (strict mode only)
    ├── LiteralNotFoundError - literal operand missing from the literal pool
    ├── SizeOverflowError - data does not fit its declared capacity
    └── ExpressionError - error evaluating an operand expression

None of these errors are recoverable: they describe mistakes in the
assembly source, so the pass that raises one stops immediately.

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class SicxeError(Exception):
    """
    Base exception for all SIC/XE assembler errors.

        try:
            assembler.assemble_file("copy.asm")
        except SicxeError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(SicxeError):
    """
    Base exception for all assembler-related errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            copy.asm:12:6: error: undefined symbol 'BUFER'
                        STA     BUFER
                                ^
            hint: 'BUFER' is neither defined in this section nor listed in EXTREF
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line.expandtabs(8)}")
            if self.location.column > 0:
                # Column counts raw characters; the caret follows the tab-expanded line
                prefix = self.source_line[:self.location.column - 1].expandtabs(8)
                padding = " " * (4 + len(prefix))
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in assembly source code.

    Examples:
        - Missing or unknown operator
        - START/CSECT without a label
        - Non-numeric RESW/RESB/START parameter
        - Fewer operands than the instruction requires
    """
    pass


class UndefinedSymbolError(AssemblerError):
    """
    Reference to a symbol that is neither defined in the current section
    nor imported with EXTREF.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol

        if not hint:
            hint = f"'{symbol}' is neither defined in this section nor listed in EXTREF"

        super().__init__(
            f"undefined symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


# The name used by the object-record format documentation.
SymbolNotFoundError = UndefinedSymbolError


class DuplicateSymbolError(AssemblerError):
    """
    Symbol defined multiple times in one section.

    Only raised when the assembler runs with strict symbol checking; by
    default a later definition replaces the earlier one.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        original_value: Optional[int] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.original_value = original_value

        hint = None
        if original_value is not None:
            hint = f"'{symbol}' was first defined at {original_value:06X}"

        super().__init__(
            f"duplicate symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class LiteralNotFoundError(AssemblerError):
    """
    A literal operand (=C'..' or =X'..') has no entry in the literal pool,
    or was never placed by an LTORG/END directive.
    """

    def __init__(
        self,
        literal: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.literal = literal
        super().__init__(
            f"literal '{literal}' not found in literal pool",
            location=location,
            hint="literals are placed at the next LTORG or END directive",
            source_line=source_line,
        )


class SizeOverflowError(AssemblerError):
    """
    Data is larger than the space its directive or field declares.

    Example:
        BYTE X'0102'   ; Error: BYTE holds a single byte
    """

    def __init__(
        self,
        message: str,
        capacity: int,
        actual: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.capacity = capacity
        self.actual = actual
        super().__init__(
            f"{message} (capacity {capacity}, got {actual})",
            location=location,
            source_line=source_line,
        )


class ExpressionError(AssemblerError):
    """
    Error evaluating an operand expression.

    Raised for division by zero, or when an external reference is combined
    with '*' or '/' (only '+' and '-' can be relocated by the linker).
    """
    pass
