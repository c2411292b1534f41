"""
SIC/XE Assembler - Two-Pass Assembler for the SIC/XE Machine
============================================================

This package assembles SIC/XE source programs into the textual object
program format read by linking loaders (H, D, R, T, M and E records).

Main Components
---------------
- **assembler**: Token parsing, instruction directory, both assembler
  passes and the object program emitter
- **config**: Assembler settings (text record limit, strict symbols,
  instruction table file)
- **errors**: Exception hierarchy with source locations
- **cli**: The ``sicasm`` command-line tool

Quick Start
-----------
Assemble a program:
    >>> from sicxe_asm import Assembler
    >>> asm = Assembler()
    >>> program = asm.assemble_file("copy.asm")
    >>> asm.write_object("copy.obj")

Or use the command-line tool:
    $ sicasm copy.asm -o copy.obj -l copy.lst

Source Format
-------------
One statement per line, with tab-separated fields:

    LABEL<TAB>OPERATOR<TAB>OPERAND[,OPERAND...]<TAB>COMMENT

Lines starting with '.' are comments.

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from sicxe_asm.assembler import Assembler, assemble, assemble_file
from sicxe_asm.config import AssemblerConfig
from sicxe_asm.errors import (
    SicxeError,
    SourceLocation,
    AssemblerError,
    AssemblySyntaxError,
    UndefinedSymbolError,
    SymbolNotFoundError,
    DuplicateSymbolError,
    LiteralNotFoundError,
    SizeOverflowError,
    ExpressionError,
)

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler",
    "assemble",
    "assemble_file",
    "AssemblerConfig",
    # Exception hierarchy
    "SicxeError",
    "SourceLocation",
    "AssemblerError",
    "AssemblySyntaxError",
    "UndefinedSymbolError",
    "SymbolNotFoundError",
    "DuplicateSymbolError",
    "LiteralNotFoundError",
    "SizeOverflowError",
    "ExpressionError",
]
