"""
SIC/XE Code Generator
=====================

This module turns the tokens of one program section into object code.
It implements the classic two-pass process:

Pass 1 (Location & Directive Resolution)
----------------------------------------
- Assign a location to every token
- Interpret START/CSECT, EXTDEF/EXTREF, RESW/RESB, EQU
- Record label locations in the symbol table
- Collect literals and place them at the next LTORG/END
- Set the section length from the final location counter

Pass 2 (Object Code Generation)
-------------------------------
- Work out the nixbpe flags of format 3/4 instructions
- Encode formats 1, 2, 3 and 4
- Resolve symbols and literals into displacements
- Request modification records for imported symbols
- Encode BYTE and WORD data

Format 3/4 Layout
-----------------
```
 23      18 17 16 15 14 13 12 11                    0
+----------+--+--+--+--+--+--+-----------------------+
|  opcode  | n| i| x| b| p| e|  disp (12 bits)       |   format 3
+----------+--+--+--+--+--+--+-----------------------+

 31      26 25 24 23 22 21 20 19                    0
+----------+--+--+--+--+--+--+-----------------------+
|  opcode  | n| i| x| b| p| e|  address (20 bits)    |   format 4
+----------+--+--+--+--+--+--+-----------------------+
```
"""

import logging
from typing import Optional

from sicxe_asm.errors import (
    AssemblySyntaxError,
    DuplicateSymbolError,
    ExpressionError,
    LiteralNotFoundError,
    SizeOverflowError,
    UndefinedSymbolError,
)
from sicxe_asm.assembler.expressions import (
    CURRENT_LOCATION,
    addressing_prefix,
    evaluate_expression,
    form_to_hex,
    is_data_form,
    is_expression,
    is_literal,
    is_number,
    is_symbol,
    split_expression,
)
from sicxe_asm.assembler.lexer import AddressingFlags, Token
from sicxe_asm.assembler.opcodes import (
    Instruction,
    InstructionDirectory,
    OperatorKind,
    RSUB_OBJECT_CODE,
    SHIFT_INSTRUCTIONS,
    register_number,
)
from sicxe_asm.assembler.tables import SectionContext


logger = logging.getLogger(__name__)

PC_RELATIVE_MIN = -2048
PC_RELATIVE_MAX = 2047

# Modification record for a format 4 address field: 5 half-bytes at +1
EXTENDED_FIELD_OFFSET = 1
EXTENDED_FIELD_LENGTH = 5


class CodeGenerator:
    """
    Runs both passes over the tokens of one section.

    Usage:
        context = SectionContext()
        for line in lines:
            token = Token.from_line(line)
            token.validate(directory.lookup(token.operator))
            context.add_token(token)

        codegen = CodeGenerator(context)
        codegen.generate()
        print(context.section.program_length)
    """

    def __init__(self, context: SectionContext,
                 directory: Optional[InstructionDirectory] = None,
                 strict_symbols: bool = False):
        """
        Args:
            context: Tokens and tables of the section
            directory: Used for tokens that were not validated yet
            strict_symbols: Raise DuplicateSymbolError on redefinition
                            instead of overwriting the earlier value
        """
        self._context = context
        self._directory = directory or InstructionDirectory.default()
        self._strict_symbols = strict_symbols

    # =========================================================================
    # Public Interface
    # =========================================================================

    def generate(self) -> None:
        """Run pass 1 then pass 2."""
        self.pass1()
        self.pass2()

    @property
    def context(self) -> SectionContext:
        return self._context

    # =========================================================================
    # Pass 1: Location & Directive Resolution
    # =========================================================================

    def pass1(self) -> None:
        """
        Assign locations, interpret directives and fill the symbol and
        literal tables.
        """
        context = self._context
        location = 0

        for token in context.tokens:
            instruction = self._instruction(token)

            token.location = location
            location += instruction.format

            kind = instruction.kind

            if kind in (OperatorKind.START, OperatorKind.CSECT):
                self._open_section(token, kind)

            elif kind is OperatorKind.EXTDEF:
                context.externals.add_defs(token.operands)

            elif kind is OperatorKind.EXTREF:
                context.externals.add_refs(token.operands)

            elif kind is OperatorKind.RESW:
                location += self._count(token) * 3

            elif kind is OperatorKind.RESB:
                location += self._count(token)

            elif kind is OperatorKind.EQU:
                token.location = self._evaluate_equ(token, location)

            elif kind in (OperatorKind.LTORG, OperatorKind.END):
                location = self._place_literals(token, location)

            if token.label:
                self._define_symbol(token)

            self._collect_literals(token)

        context.section.program_length = location

        logger.debug(
            f"Pass 1 of '{context.section.program_name}': "
            f"{len(context.tokens)} tokens, {len(context.symbols)} symbols, "
            f"length {location:06X}"
        )

    def _instruction(self, token: Token) -> Instruction:
        if token.instruction is None:
            token.validate(self._directory.lookup(token.operator))
        return token.instruction

    def _open_section(self, token: Token, kind: OperatorKind) -> None:
        """START/CSECT: name the section; START also sets the start address."""
        section = self._context.section

        if not token.label:
            raise AssemblySyntaxError(
                f"{kind.name} requires a label",
                token.source, source_line=token.source_line,
                hint="the label becomes the program name",
            )
        section.program_name = token.label

        if kind is OperatorKind.START:
            section.is_main = True
            section.start_address = self._count(token)

    def _count(self, token: Token) -> int:
        """Return operand 0 as a decimal number."""
        operand = token.operand(0)
        if operand is None or not is_number(operand):
            raise AssemblySyntaxError(
                f"{token.instruction.mnemonic} requires a decimal number, got {operand!r}",
                token.source, source_line=token.source_line,
            )
        return int(operand)

    def _evaluate_equ(self, token: Token, location: int) -> int:
        """Value of an EQU operand: '*', a number, a symbol or an expression."""
        operand = token.operand(0)

        if operand == CURRENT_LOCATION:
            return location

        if is_number(operand):
            return int(operand)

        if is_symbol(operand) or is_expression(operand):
            return evaluate_expression(
                operand,
                self._context.symbols.find,
                token.source,
                token.source_line,
            )

        raise AssemblySyntaxError(
            f"invalid EQU operand '{operand}'",
            token.source, source_line=token.source_line,
        )

    def _place_literals(self, token: Token, location: int) -> int:
        """Place every unplaced literal at the current location."""
        for literal in self._context.literals.unplaced():
            self._context.literals.resolve(literal.text, location)
            token.pool.append(literal)
            logger.debug(f"Literal {literal.text} placed at {location:06X}")
            location += literal.byte_length
        return location

    def _define_symbol(self, token: Token) -> None:
        symbols = self._context.symbols
        existing = symbols.find(token.label)

        if existing is not None and self._strict_symbols:
            raise DuplicateSymbolError(
                token.label,
                token.source,
                original_value=existing,
                source_line=token.source_line,
            )

        symbols.put(token.label, token.location)

    def _collect_literals(self, token: Token) -> None:
        for operand in token.operands or ():
            if is_literal(operand) and self._context.literals.find(operand) is None:
                self._data_hex(token, operand)
                self._context.literals.insert(operand)

    def _data_hex(self, token: Token, text: str) -> str:
        """form_to_hex with the token's location attached to any error."""
        try:
            return form_to_hex(text)
        except AssemblySyntaxError as exc:
            raise AssemblySyntaxError(
                exc.message, token.source, source_line=token.source_line,
            ) from exc

    # =========================================================================
    # Pass 2: Object Code Generation
    # =========================================================================

    def pass2(self) -> None:
        """Generate object code for every token."""
        for token in self._context.tokens:
            instruction = self._instruction(token)

            if instruction.opcode is not None:
                if token.operands:
                    self._set_addressing_flags(token, instruction)
                code = self._encode_instruction(token, instruction)
                token.object_code = f"{code:0{instruction.format * 2}X}"

            elif instruction.kind in (OperatorKind.BYTE, OperatorKind.WORD):
                token.object_code = self._encode_data(token, instruction)

            if token.object_code is not None:
                token.byte_size = len(token.object_code) // 2

        logger.debug(
            f"Pass 2 of '{self._context.section.program_name}': "
            f"{len(self._context.modifications)} modification records"
        )

    def _set_addressing_flags(self, token: Token, instruction: Instruction) -> None:
        mode = self._addressing_mode(token)
        token.set_flag(mode)

        if token.operand(1) == "X":
            token.set_flag(AddressingFlags.X)

        if instruction.format == 3 and mode in (AddressingFlags.N, AddressingFlags.SIMPLE):
            token.set_flag(AddressingFlags.P)

        if instruction.format == 4:
            token.set_flag(AddressingFlags.E)

    @staticmethod
    def _addressing_mode(token: Token) -> AddressingFlags:
        prefix = addressing_prefix(token.operand(0) or "")
        if prefix == "#":
            return AddressingFlags.I
        if prefix == "@":
            return AddressingFlags.N
        return AddressingFlags.SIMPLE

    def _encode_instruction(self, token: Token, instruction: Instruction) -> int:
        if instruction.format == 1:
            return instruction.opcode

        if instruction.format == 2:
            return self._encode_format2(token, instruction)

        if instruction.mnemonic == "RSUB" and instruction.format == 3:
            return RSUB_OBJECT_CODE

        width = 12 if instruction.format == 3 else 20
        disp = self._displacement(token, instruction) if token.operands else 0
        self._check_displacement(token, instruction, disp, width)

        high = ((instruction.opcode >> 2) << 6) | int(token.nixbpe)
        return (high << width) | (disp & ((1 << width) - 1))

    # -------------------------------------------------------------------------
    # Format 2
    # -------------------------------------------------------------------------

    def _encode_format2(self, token: Token, instruction: Instruction) -> int:
        r1 = self._register(token, token.operand(0))

        second = token.operand(1)
        if instruction.mnemonic in SHIFT_INSTRUCTIONS:
            if second is None or not is_number(second):
                raise AssemblySyntaxError(
                    f"{instruction.mnemonic} requires a decimal shift count, got {second!r}",
                    token.source, source_line=token.source_line,
                )
            r2 = int(second)
        elif second:
            r2 = self._register(token, second)
        else:
            r2 = 0

        for value in (r1, r2):
            if value > 0xF:
                raise SizeOverflowError(
                    "format 2 field does not fit in 4 bits", 15, value,
                    token.source, source_line=token.source_line,
                )

        return (instruction.opcode << 8) | (r1 << 4) | r2

    @staticmethod
    def _register(token: Token, name: Optional[str]) -> int:
        number = register_number(name) if name else None
        if number is None:
            raise AssemblySyntaxError(
                f"invalid register '{name}'",
                token.source, source_line=token.source_line,
                hint="registers are A, X, L, B, S, T, F, PC, SW",
            )
        return number

    # -------------------------------------------------------------------------
    # Format 3/4 displacement
    # -------------------------------------------------------------------------

    def _displacement(self, token: Token, instruction: Instruction) -> int:
        """
        Resolve operand 0 into a displacement (format 3) or address
        (format 4).

        Order of resolution:
        1. Literal operand with simple addressing: PC-relative to the pool
        2. Local symbol: its location (PC-relative for format 3)
        3. Imported symbol: 0 plus a modification record
        4. Decimal number: used as-is
        """
        context = self._context
        operand = token.operand(0)
        mode = token.get_flag(AddressingFlags.SIMPLE)

        if mode == AddressingFlags.SIMPLE and is_literal(operand):
            literal = context.literals.get(operand)
            if literal is None or literal.location is None:
                raise LiteralNotFoundError(operand, token.source, token.source_line)
            return literal.location - (token.location + instruction.format)

        if mode != AddressingFlags.SIMPLE:
            operand = operand[1:]

        if is_symbol(operand):
            location = context.symbols.find(operand)
            if location is not None:
                if instruction.format == 3:
                    return location - (token.location + 3)
                return location

            if context.externals.is_import(operand):
                context.modifications.add(
                    token.location + EXTENDED_FIELD_OFFSET,
                    EXTENDED_FIELD_LENGTH,
                    "+",
                    operand,
                )
                return 0

            raise UndefinedSymbolError(operand, token.source, source_line=token.source_line)

        if is_number(operand):
            return int(operand)

        raise AssemblySyntaxError(
            f"invalid operand '{token.operand(0)}'",
            token.source, source_line=token.source_line,
        )

    @staticmethod
    def _check_displacement(token: Token, instruction: Instruction,
                            disp: int, width: int) -> None:
        if token.has_flag(AddressingFlags.P):
            in_range = PC_RELATIVE_MIN <= disp <= PC_RELATIVE_MAX
        else:
            in_range = 0 <= disp < (1 << width)

        if not in_range:
            logger.warning(
                f"{token.source or 'line'}: displacement {disp} of "
                f"'{instruction.mnemonic}' does not fit in {width} bits and is truncated"
            )

    # -------------------------------------------------------------------------
    # BYTE / WORD
    # -------------------------------------------------------------------------

    def _encode_data(self, token: Token, instruction: Instruction) -> str:
        """
        Encode a BYTE or WORD operand.

        Supported forms, in order: C'..'/X'..' data, an expression, a bare
        symbol, a decimal number. Imported symbols produce modification
        records; local symbols contribute nothing to the data.
        """
        operand = token.operand(0)
        digits = instruction.format * 2

        if is_data_form(operand):
            data = self._data_hex(token, operand)
            if len(data) > digits:
                raise SizeOverflowError(
                    f"{instruction.mnemonic} data is too large",
                    instruction.format, (len(data) + 1) // 2,
                    token.source, source_line=token.source_line,
                )
            return data.rjust(digits, "0")

        if is_expression(operand) or is_symbol(operand):
            for operator, term in split_expression(operand):
                if is_symbol(term):
                    self._relocate_data_term(token, instruction, operator or "+", term)
            return "0" * digits

        if is_number(operand):
            value = int(operand)
            if value >= 1 << (8 * instruction.format):
                raise SizeOverflowError(
                    f"{instruction.mnemonic} value is too large",
                    instruction.format, (value.bit_length() + 7) // 8,
                    token.source, source_line=token.source_line,
                )
            return f"{value:0{digits}X}"

        raise AssemblySyntaxError(
            f"invalid {instruction.mnemonic} operand '{operand}'",
            token.source, source_line=token.source_line,
        )

    def _relocate_data_term(self, token: Token, instruction: Instruction,
                            sign: str, name: str) -> None:
        context = self._context

        if context.symbols.find(name) is not None:
            return

        if not context.externals.is_import(name):
            raise UndefinedSymbolError(name, token.source, source_line=token.source_line)

        if sign not in ("+", "-"):
            raise ExpressionError(
                f"external symbol '{name}' cannot follow '{sign}'",
                token.source,
                hint="only '+' and '-' can be applied to external references",
                source_line=token.source_line,
            )

        context.modifications.add(token.location, instruction.format * 2, sign, name)


def generate_section(context: SectionContext,
                     directory: Optional[InstructionDirectory] = None,
                     strict_symbols: bool = False) -> SectionContext:
    """Run both passes over a section and return it."""
    CodeGenerator(context, directory, strict_symbols).generate()
    return context
