"""
SIC/XE Assembler
================

This module provides a two-pass assembler for SIC/XE, the extended
Simplified Instructional Computer.

Main Components
---------------
- **Assembler**: Main assembler class; splits the source into sections
  and drives both passes
- **Token**: One parsed source line with its nixbpe flags and object code
- **InstructionDirectory**: Mnemonic and directive lookup
- **CodeGenerator**: Pass 1 (locations, directives, symbols, literals) and
  pass 2 (instruction and data encoding)
- **build_object_program**: Serialises a section into object records

Assembly Process
----------------
1. **Token parsing**: every non-comment line becomes a Token and is
   validated against the instruction directory. START and CSECT open a
   new section.

2. **Code Generation (CodeGenerator)** (two-pass, per section):
   - Pass 1: Location assignment, directives, symbol table, literal pool
   - Pass 2: nixbpe flags, formats 1-4, BYTE/WORD data, modification
     records for external references

3. **Emission**: H, D, R, T, M and E records for each section.

Example Usage
-------------
>>> from sicxe_asm.assembler import Assembler
>>> asm = Assembler()
>>> program = asm.assemble_string("PROG\\tSTART\\t0\\n\\tEND\\t\\n")
>>> print(program)
HPROG  000000000000
E000000
"""

from sicxe_asm.assembler.assembler import Assembler, assemble, assemble_file
from sicxe_asm.assembler.lexer import AddressingFlags, Token
from sicxe_asm.assembler.opcodes import (
    Instruction,
    InstructionDirectory,
    OperatorKind,
    INSTRUCTION_TABLE,
    REGISTERS,
)
from sicxe_asm.assembler.codegen import CodeGenerator, generate_section
from sicxe_asm.assembler.records import TextRecordBuilder, build_object_program
from sicxe_asm.assembler.tables import (
    ExternalTable,
    Literal,
    LiteralTable,
    ModificationTable,
    Section,
    SectionContext,
    SymbolTable,
)
from sicxe_asm.assembler.expressions import LiteralType, evaluate_expression

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    # Tokens
    "AddressingFlags",
    "Token",
    # Instruction directory
    "Instruction",
    "InstructionDirectory",
    "OperatorKind",
    "INSTRUCTION_TABLE",
    "REGISTERS",
    # Code generator
    "CodeGenerator",
    "generate_section",
    # Object program
    "TextRecordBuilder",
    "build_object_program",
    # Tables
    "ExternalTable",
    "Literal",
    "LiteralTable",
    "ModificationTable",
    "Section",
    "SectionContext",
    "SymbolTable",
    # Expressions
    "LiteralType",
    "evaluate_expression",
]
