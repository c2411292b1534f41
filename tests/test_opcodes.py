# =============================================================================
# test_opcodes.py - Instruction Directory Unit Tests
# =============================================================================
# Tests for mnemonic and directive lookup.
#
# Test coverage includes:
#   - Built-in SIC/XE instructions (formats 1, 2 and 3)
#   - Format 4 lookup through the '+' prefix
#   - Directive kinds and location advances
#   - Loading an instruction table from a file
#   - Register numbers
# =============================================================================

import pytest
from sicxe_asm.assembler.opcodes import (
    InstructionDirectory,
    OperatorKind,
    register_number,
)
from sicxe_asm.errors import AssemblySyntaxError


@pytest.fixture
def directory():
    return InstructionDirectory.default()


# =============================================================================
# Instruction Lookup Tests
# =============================================================================

class TestInstructionLookup:
    """Test lookup of machine instructions."""

    def test_format3(self, directory):
        lda = directory.lookup("LDA")
        assert lda.format == 3
        assert lda.opcode == 0x00
        assert lda.min_operands == 1
        assert lda.kind is OperatorKind.INSTRUCTION

    def test_format2(self, directory):
        compr = directory.lookup("COMPR")
        assert compr.format == 2
        assert compr.opcode == 0xA0
        assert compr.min_operands == 2

    def test_format1(self, directory):
        fix = directory.lookup("FIX")
        assert fix.format == 1
        assert fix.opcode == 0xC4

    def test_case_insensitive(self, directory):
        assert directory.lookup("lda") == directory.lookup("LDA")

    def test_unknown(self, directory):
        assert directory.lookup("BOGUS") is None
        assert "BOGUS" not in directory

    def test_rsub_takes_no_operand(self, directory):
        assert directory.lookup("RSUB").min_operands == 0

    @pytest.mark.parametrize("mnemonic,opcode", [
        ("STL", 0x14),
        ("JSUB", 0x48),
        ("COMP", 0x28),
        ("J", 0x3C),
        ("STCH", 0x54),
        ("TIXR", 0xB8),
        ("CLEAR", 0xB4),
        ("TD", 0xE0),
        ("WD", 0xDC),
    ])
    def test_opcodes(self, directory, mnemonic, opcode):
        assert directory.lookup(mnemonic).opcode == opcode


# =============================================================================
# Format 4 Tests
# =============================================================================

class TestExtendedLookup:
    """Test the '+' prefix selecting format 4."""

    def test_extended(self, directory):
        jsub = directory.lookup("+JSUB")
        assert jsub.format == 4
        assert jsub.opcode == 0x48
        assert jsub.mnemonic == "JSUB"

    def test_base_entry_unchanged(self, directory):
        directory.lookup("+JSUB")
        assert directory.lookup("JSUB").format == 3

    def test_extended_rsub_unknown(self, directory):
        """RSUB takes no operand, so it has no format 4 form."""
        assert directory.lookup("+RSUB") is None

    def test_extended_format2_unknown(self, directory):
        assert directory.lookup("+CLEAR") is None

    def test_extended_directive_unknown(self, directory):
        assert directory.lookup("+WORD") is None


# =============================================================================
# Directive Tests
# =============================================================================

class TestDirectives:
    """Test directive entries."""

    @pytest.mark.parametrize("name,kind", [
        ("START", OperatorKind.START),
        ("CSECT", OperatorKind.CSECT),
        ("EXTDEF", OperatorKind.EXTDEF),
        ("EXTREF", OperatorKind.EXTREF),
        ("RESW", OperatorKind.RESW),
        ("RESB", OperatorKind.RESB),
        ("EQU", OperatorKind.EQU),
        ("LTORG", OperatorKind.LTORG),
        ("END", OperatorKind.END),
        ("BYTE", OperatorKind.BYTE),
        ("WORD", OperatorKind.WORD),
    ])
    def test_kind(self, directory, name, kind):
        entry = directory.lookup(name)
        assert entry.kind is kind
        assert entry.opcode is None
        assert entry.is_directive
        assert kind.is_directive

    def test_section_openers(self, directory):
        assert directory.lookup("START").opens_section
        assert directory.lookup("CSECT").opens_section
        assert not directory.lookup("EQU").opens_section
        assert not directory.lookup("LDA").opens_section

    def test_data_sizes(self, directory):
        """BYTE holds one byte, WORD three."""
        assert directory.lookup("BYTE").format == 1
        assert directory.lookup("WORD").format == 3
        assert directory.lookup("RESB").format == 0

    def test_minimum_operands(self, directory):
        assert directory.lookup("START").min_operands == 1
        assert directory.lookup("CSECT").min_operands == 0
        assert directory.lookup("LTORG").min_operands == 0
        assert directory.lookup("END").min_operands == 0
        assert directory.lookup("EXTREF").min_operands == 1


# =============================================================================
# Instruction File Tests
# =============================================================================

class TestInstructionFile:
    """Test loading instructions from a file."""

    def test_load(self, tmp_path):
        path = tmp_path / "inst.txt"
        path.write_text(
            "# mnemonic format opcode min\n"
            "LDA\t3\t00\t1\n"
            "\n"
            "halt 1 FF 0\n"
        )
        directory = InstructionDirectory.from_file(path)

        assert directory.lookup("LDA").opcode == 0x00
        assert directory.lookup("HALT").opcode == 0xFF
        assert directory.lookup("+LDA").format == 4
        assert directory.lookup("STA") is None

    def test_directives_always_available(self, tmp_path):
        path = tmp_path / "inst.txt"
        path.write_text("LDA 3 00 1\n")
        directory = InstructionDirectory.from_file(path)
        assert directory.lookup("START").kind is OperatorKind.START
        assert directory.lookup("END").kind is OperatorKind.END

    def test_section_column(self, tmp_path):
        path = tmp_path / "inst.txt"
        path.write_text("SEG 1 F0 0 SECTION\n")
        directory = InstructionDirectory.from_file(path)
        assert directory.lookup("SEG").opens_section

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "inst.txt"
        path.write_text("LDA 3 00\n")
        with pytest.raises(AssemblySyntaxError) as exc_info:
            InstructionDirectory.from_file(path)
        assert f"{path}:1:1" in str(exc_info.value)

    def test_bad_number(self, tmp_path):
        path = tmp_path / "inst.txt"
        path.write_text("LDA three 00 1\n")
        with pytest.raises(AssemblySyntaxError):
            InstructionDirectory.from_file(path)

    def test_format4_rejected(self, tmp_path):
        path = tmp_path / "inst.txt"
        path.write_text("LDA 4 00 1\n")
        with pytest.raises(AssemblySyntaxError) as exc_info:
            InstructionDirectory.from_file(path)
        assert "'+' prefix" in str(exc_info.value)


# =============================================================================
# Register Tests
# =============================================================================

class TestRegisters:
    """Test register operand numbers."""

    @pytest.mark.parametrize("name,number", [
        ("A", 0), ("X", 1), ("L", 2), ("B", 3), ("S", 4),
        ("T", 5), ("F", 6), ("PC", 8), ("SW", 9),
    ])
    def test_names(self, name, number):
        assert register_number(name) == number

    def test_lowercase(self):
        assert register_number("t") == 5

    def test_decimal(self):
        assert register_number("12") == 12

    def test_unknown(self):
        assert register_number("Q") is None
