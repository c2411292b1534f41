"""
SIC/XE Assembler - Configuration
================================

Assembler settings. Configuration can come from:
- Default values (defined here)
- Environment variables (AssemblerConfig.from_env)
- Command-line options (sicasm)

Environment variables (all optional):
    SICASM_TEXT_RECORD_LIMIT: Maximum hex characters per T record
    SICASM_STRICT_SYMBOLS: "1"/"true"/"yes" to reject redefined labels
    SICASM_INSTRUCTION_FILE: Instruction table file to use instead of the
                             built-in SIC/XE table
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os

from sicxe_asm.assembler.opcodes import InstructionDirectory
from sicxe_asm.assembler.records import DEFAULT_TEXT_RECORD_LIMIT


_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class AssemblerConfig:
    """
    Settings for an assembly session.

    Attributes:
        text_record_limit: Maximum hex characters per T record (default: 60)
        strict_symbols: Reject a label defined twice in one section instead
                        of keeping the later definition (default: False)
        instruction_file: Instruction table to load instead of the built-in
                          one (default: None)
    """

    text_record_limit: int = DEFAULT_TEXT_RECORD_LIMIT
    strict_symbols: bool = False
    instruction_file: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "AssemblerConfig":
        """
        Create AssemblerConfig from environment variables.

        Invalid values are ignored and the default is kept.
        """
        config = cls()

        if limit := os.environ.get("SICASM_TEXT_RECORD_LIMIT"):
            try:
                value = int(limit)
            except ValueError:
                value = 0
            if value > 0 and value % 2 == 0:
                config.text_record_limit = value

        if strict := os.environ.get("SICASM_STRICT_SYMBOLS"):
            config.strict_symbols = strict.strip().lower() in _TRUE_VALUES

        if instruction_file := os.environ.get("SICASM_INSTRUCTION_FILE"):
            config.instruction_file = Path(instruction_file)

        return config

    def load_directory(self) -> InstructionDirectory:
        """Build the instruction directory this configuration selects."""
        if self.instruction_file is not None:
            return InstructionDirectory.from_file(self.instruction_file)
        return InstructionDirectory.default()
