"""
SIC/XE Assembler - Main Interface
=================================

This module provides the Assembler class, the primary interface for
assembling SIC/XE source code. It reads source lines, splits them into
program sections, runs both passes over each section and collects the
resulting object programs.

Example Usage
-------------
>>> from sicxe_asm.assembler import Assembler
>>>
>>> asm = Assembler()
>>> program = asm.assemble_string(
...     "COPY\\tSTART\\t0\\n"
...     "FIRST\\tLDA\\t#3\\n"
...     "\\tRSUB\\n"
...     "\\tEND\\tFIRST\\n"
... )
>>> print(program)
HCOPY  000000000006
T000000060100034F0000
E000000

Sections
--------
Every START or CSECT line opens a new section. Each section has its own
symbol, literal, external and modification tables, so a label defined in
one section is not visible in another; cross-section references go
through EXTDEF/EXTREF and become modification records.

Command-Line Usage
------------------
    $ sicasm copy.asm -o copy.obj -l copy.lst -s copy.sym
"""

import logging
from pathlib import Path
from typing import Optional

from sicxe_asm.assembler.codegen import CodeGenerator
from sicxe_asm.assembler.lexer import Token, is_comment_line
from sicxe_asm.assembler.opcodes import InstructionDirectory, OperatorKind
from sicxe_asm.assembler.records import build_object_program
from sicxe_asm.assembler.tables import SectionContext
from sicxe_asm.config import AssemblerConfig
from sicxe_asm.errors import SourceLocation


logger = logging.getLogger(__name__)

# Directives whose location is not an address worth listing
_UNLISTED_LOCATIONS = frozenset({
    OperatorKind.EXTDEF,
    OperatorKind.EXTREF,
    OperatorKind.LTORG,
    OperatorKind.END,
})


class Assembler:
    """
    Main SIC/XE assembler class.

    One Assembler holds the state of one assembly session: the sections
    read so far and how many section-opening lines were seen. The
    instruction directory is shared and never modified.

    Attributes:
        section_count: Number of START/CSECT lines read
    """

    def __init__(self, config: Optional[AssemblerConfig] = None,
                 directory: Optional[InstructionDirectory] = None):
        """
        Initialize the assembler.

        Args:
            config: Assembler settings (defaults if omitted)
            directory: Instruction directory; by default the one the
                       configuration selects
        """
        self._config = config or AssemblerConfig()
        self._directory = directory or self._config.load_directory()
        self._sections: list[SectionContext] = []
        self.section_count = 0

    @property
    def config(self) -> AssemblerConfig:
        return self._config

    # =========================================================================
    # Source Reading
    # =========================================================================

    def reset(self) -> None:
        """Forget all sections read so far."""
        self._sections = []
        self.section_count = 0

    def put_line(self, line: str, location: Optional[SourceLocation] = None) -> Optional[Token]:
        """
        Parse and validate one source line and add it to the current section.

        Comment lines and blank lines are skipped.

        Returns:
            The token, or None for a skipped line

        Raises:
            AssemblySyntaxError: If the line is malformed
        """
        if is_comment_line(line):
            return None

        token = Token.from_line(line, location)
        instruction = self._directory.lookup(token.operator)
        token.validate(instruction)

        if instruction.opens_section:
            self.section_count += 1
            if not self._sections or self._sections[-1].tokens:
                self._sections.append(SectionContext())
        elif not self._sections:
            self._sections.append(SectionContext())

        self._sections[-1].add_token(token)
        return token

    def read_source(self, source: str, filename: str = "<input>") -> None:
        """Read every line of a source text."""
        for line_no, line in enumerate(source.splitlines(), start=1):
            self.put_line(line, SourceLocation(filename, line_no, 1))

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_string(self, source: str, filename: str = "<input>") -> str:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            The object programs of all sections, concatenated

        Raises:
            AssemblerError: If assembly fails
        """
        self.reset()
        self.read_source(source, filename)

        for context in self._sections:
            codegen = CodeGenerator(
                context,
                self._directory,
                strict_symbols=self._config.strict_symbols,
            )
            codegen.pass1()
            codegen.pass2()

        logger.info(
            f"Assembled {len(self._sections)} section(s) from {filename}: "
            f"{', '.join(c.section.program_name or '<unnamed>' for c in self._sections)}"
        )

        return self.get_object_program()

    def assemble_file(self, filepath: str | Path) -> str:
        """
        Assemble source code from a file.

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        return self.assemble_string(filepath.read_text(), str(filepath))

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_sections(self) -> list[SectionContext]:
        return list(self._sections)

    def get_object_program(self) -> str:
        return "".join(
            build_object_program(context, self._config.text_record_limit)
            for context in self._sections
        )

    def get_symbols(self) -> dict[str, dict[str, int]]:
        """
        Get the symbol tables.

        Returns:
            Program name -> (symbol name -> location)
        """
        return {
            context.section.program_name: context.symbols.as_dict()
            for context in self._sections
        }

    def get_listing(self) -> str:
        """
        Get the assembly listing: location, source fields and object code
        of every line, with pooled literals after their LTORG/END.
        """
        lines = []

        for context in self._sections:
            for token in context.tokens:
                kind = token.instruction.kind
                location = "" if kind in _UNLISTED_LOCATIONS else f"{token.location:04X}"
                operands = ",".join(token.operands) if token.operands else ""
                lines.append(
                    f"{location}\t{token.label or ''}\t{token.operator}\t"
                    f"{operands}\t{token.object_code or ''}".rstrip()
                )

                for literal in token.pool:
                    lines.append(f"{literal.location:04X}\t*\t={literal.text}\t\t{literal.render()}")

            lines.append("")

        return "\n".join(lines)

    def get_symbol_report(self) -> str:
        """Symbol tables, one block per section."""
        lines = []
        for context in self._sections:
            for name, location in context.symbols:
                lines.append(f"{name}\t{location:X}")
            lines.append("")
        return "\n".join(lines)

    def get_literal_report(self) -> str:
        """Literal tables, one block per section."""
        lines = []
        for context in self._sections:
            for literal in context.literals:
                location = f"{literal.location:X}" if literal.location is not None else "?"
                lines.append(f"{literal.text}\t{location}")
            lines.append("")
        return "\n".join(lines)

    def write_object(self, filepath: str | Path) -> None:
        Path(filepath).write_text(self.get_object_program())
        logger.info(f"Wrote object program to {filepath}")

    def write_listing(self, filepath: str | Path) -> None:
        Path(filepath).write_text(self.get_listing())
        logger.info(f"Wrote listing to {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        """Write the symbol tables followed by the literal tables."""
        Path(filepath).write_text(self.get_symbol_report() + "\n" + self.get_literal_report())
        logger.info(f"Wrote symbols to {filepath}")


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, filename: str = "<input>",
             config: Optional[AssemblerConfig] = None) -> str:
    """
    Convenience function to assemble source code.

    Returns:
        The object program text

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler(config).assemble_string(source, filename)


def assemble_file(filepath: str | Path,
                  config: Optional[AssemblerConfig] = None) -> str:
    """
    Convenience function to assemble a file.

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler(config).assemble_file(filepath)
