"""
SIC/XE Object Program Records
=============================

This module serialises an assembled section into the textual object
program format read by SIC/XE linking loaders.

Record Format
-------------
Every record is one line starting with a record-type letter. Addresses and
lengths are upper-case hex, zero padded; names are left-justified to six
characters.

```
Record  Layout                                      Example
------  ------------------------------------------  ----------------------------
H       H name(6) start(6) length(6)                HCOPY  000000001033
D       D [name(6) location(6)]...                  DBUFFER000033BUFEND001033
R       R [name(6)]...                              RRDREC WRREC
T       T start(6) bytes(2) payload(<=60 hex)       T00003003454F46
M       M location(6) halfbytes(2) sign symbol      M00000405+RDREC
E       E [start(6), main section only]             E000000
```

The end record is followed by a blank line, so the programs of several
sections can be concatenated into one file.

Text Records
------------
A text record holds contiguous bytes. A new record starts when:
- the payload would exceed the limit (60 hex characters by default)
- a RESB or RESW reserves space (reserved space has no bytes)
- the next bytes do not continue the current record's addresses
"""

from typing import Optional

from sicxe_asm.errors import AssemblerError
from sicxe_asm.assembler.opcodes import OperatorKind
from sicxe_asm.assembler.tables import SectionContext


DEFAULT_TEXT_RECORD_LIMIT = 60

NAME_WIDTH = 6


# =============================================================================
# Text Record Builder
# =============================================================================

class TextRecordBuilder:
    """
    Packs object code pieces into T records.

    Usage:
        builder = TextRecordBuilder()
        builder.add(0x0000, "172027")
        builder.add(0x0003, "4B100000")
        builder.flush()
        builder.records  # ['T000000071720274B100000\\n']
    """

    def __init__(self, limit: int = DEFAULT_TEXT_RECORD_LIMIT):
        if limit < 2 or limit % 2:
            raise ValueError(f"text record limit must be a positive even number, got {limit}")
        self._limit = limit
        self._start = 0
        self._payload: list[str] = []
        self._size = 0  # Hex characters in _payload
        self.records: list[str] = []

    @property
    def is_empty(self) -> bool:
        return self._size == 0

    @property
    def _next_location(self) -> int:
        return self._start + self._size // 2

    def add(self, location: int, data: str) -> None:
        """
        Append the hex bytes of one piece that starts at `location`.

        Pieces longer than the limit are split across records.
        """
        while data:
            if not self.is_empty and (
                self._size + len(data) > self._limit
                or location != self._next_location
            ):
                self.flush()

            if self.is_empty:
                self._start = location

            chunk = data[:self._limit - self._size]
            self._payload.append(chunk)
            self._size += len(chunk)

            location += len(chunk) // 2
            data = data[len(chunk):]

    def flush(self) -> None:
        """Close the current record, if it holds any bytes."""
        if self.is_empty:
            return

        payload = "".join(self._payload)
        self.records.append(f"T{self._start:06X}{self._size // 2:02X}{payload}\n")

        self._payload = []
        self._size = 0


# =============================================================================
# Object Program
# =============================================================================

def header_record(context: SectionContext) -> str:
    section = context.section
    name = section.program_name[:NAME_WIDTH]
    return f"H{name:<{NAME_WIDTH}}{section.start_address:06X}{section.program_length:06X}\n"


def end_record(context: SectionContext) -> str:
    section = context.section
    if section.is_main:
        return f"E{section.start_address:06X}\n\n"
    return "E\n\n"


def text_records(context: SectionContext,
                 limit: int = DEFAULT_TEXT_RECORD_LIMIT) -> list[str]:
    """
    Build the T records of a section whose tokens have been through pass 2.

    Raises:
        AssemblerError: If an instruction has no object code yet
    """
    builder = TextRecordBuilder(limit)

    for token in context.tokens:
        instruction = token.instruction

        if token.object_code:
            builder.add(token.location, token.object_code)

        elif instruction is None or instruction.opcode is not None:
            raise AssemblerError(
                f"no object code for '{token.operator}'",
                token.source,
                hint="run both assembler passes before writing the object program",
                source_line=token.source_line,
            )

        elif instruction.kind in (OperatorKind.RESB, OperatorKind.RESW):
            builder.flush()

        elif instruction.kind in (OperatorKind.LTORG, OperatorKind.END):
            for literal in token.pool:
                builder.add(literal.location, literal.render())

    builder.flush()
    return builder.records


def build_object_program(context: SectionContext,
                         limit: Optional[int] = None) -> str:
    """
    Serialise one assembled section.

    Args:
        context: Section after pass 2
        limit: Maximum hex characters per text record (default 60)

    Returns:
        The H, D, R, T, M and E records followed by a blank line
    """
    parts = [header_record(context)]

    if context.externals.defs:
        parts.append(context.externals.render_defs(context.symbols))

    if context.externals.refs:
        parts.append(context.externals.render_refs())

    parts.extend(text_records(context, limit or DEFAULT_TEXT_RECORD_LIMIT))
    parts.append(context.modifications.render())
    parts.append(end_record(context))

    return "".join(parts)
