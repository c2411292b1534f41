# =============================================================================
# test_expressions.py - Operand Classification and Expression Tests
# =============================================================================
# Tests for operand form recognition and expression evaluation.
#
# Test coverage includes:
#   - Numbers, symbols, data forms, literals and expressions
#   - Data form conversion to hex and byte lengths
#   - Left-to-right evaluation without precedence
#   - Division truncation and errors
# =============================================================================

import pytest
from sicxe_asm.assembler.expressions import (
    LiteralType,
    addressing_prefix,
    evaluate_expression,
    form_byte_length,
    form_to_hex,
    form_type,
    is_data_form,
    is_expression,
    is_literal,
    is_number,
    is_symbol,
    literal_text,
    split_expression,
)
from sicxe_asm.errors import (
    AssemblySyntaxError,
    ExpressionError,
    UndefinedSymbolError,
)


# =============================================================================
# Classification Tests
# =============================================================================

class TestClassification:
    """Test recognition of operand forms."""

    def test_number(self):
        assert is_number("4096")
        assert not is_number("-1")
        assert not is_number("1A")

    def test_symbol(self):
        assert is_symbol("BUFFER")
        assert is_symbol("buf_2")
        assert not is_symbol("2BUF")
        assert not is_symbol("#BUF")

    def test_data_form(self):
        assert is_data_form("C'EOF'")
        assert is_data_form("X'F1'")
        assert not is_data_form("=C'EOF'")
        assert not is_data_form("C'EOF")

    def test_literal(self):
        assert is_literal("=C'EOF'")
        assert is_literal("=X'05'")
        assert not is_literal("C'EOF'")
        assert not is_literal("=5")

    def test_expression(self):
        assert is_expression("BUFEND-BUFFER")
        assert is_expression("A+2*B")
        assert not is_expression("BUFFER")
        assert not is_expression("*")

    def test_data_form_with_operator_chars_is_not_expression(self):
        assert not is_expression("C'A-B'")
        assert not is_expression("=C'A+B'")

    def test_addressing_prefix(self):
        assert addressing_prefix("#3") == "#"
        assert addressing_prefix("@RETADR") == "@"
        assert addressing_prefix("BUFFER") == ""
        assert addressing_prefix("") == ""


# =============================================================================
# Data Form Tests
# =============================================================================

class TestDataForms:
    """Test conversion of C'..' and X'..' forms."""

    def test_character_hex(self):
        assert form_to_hex("C'EOF'") == "454F46"

    def test_hex_upper(self):
        assert form_to_hex("X'f1'") == "F1"

    def test_literal_prefix_ignored(self):
        assert form_to_hex("=X'05'") == "05"
        assert literal_text("=X'05'") == "X'05'"

    def test_type(self):
        assert form_type("C'EOF'") is LiteralType.CHARACTER
        assert form_type("=X'05'") is LiteralType.HEX

    def test_byte_length(self):
        """Characters count one byte each, hex digits half a byte."""
        assert form_byte_length("C'EOF'") == 3
        assert form_byte_length("X'05'") == 1
        assert form_byte_length("X'0102'") == 2

    def test_odd_hex_length_truncates(self):
        assert form_byte_length("X'ABC'") == 1

    def test_odd_hex_digit_dropped(self):
        """The hex text holds exactly the bytes the form occupies."""
        assert form_to_hex("X'ABC'") == "AB"
        assert form_to_hex("=X'f'") == ""
        assert len(form_to_hex("X'12345'")) == 2 * form_byte_length("X'12345'")

    def test_latin1_character(self):
        assert form_to_hex("C'\u00e9'") == "E9"

    def test_wide_character_rejected(self):
        """Characters above 0xFF do not fit in one byte."""
        with pytest.raises(AssemblySyntaxError) as exc_info:
            form_to_hex("C'A\u03a9'")
        assert "does not fit in a byte" in str(exc_info.value)

    def test_invalid_hex_digits(self):
        with pytest.raises(AssemblySyntaxError):
            form_to_hex("X'GG'")

    def test_not_a_form(self):
        with pytest.raises(AssemblySyntaxError):
            form_type("BUFFER")


# =============================================================================
# Expression Evaluation Tests
# =============================================================================

class TestEvaluation:
    """Test left-to-right expression evaluation."""

    @pytest.fixture
    def symbols(self):
        return {"BUFFER": 0x33, "BUFEND": 0x1033, "TWO": 2}

    def test_split(self):
        assert split_expression("BUFEND-BUFFER") == [(None, "BUFEND"), ("-", "BUFFER")]
        assert split_expression("A+B*C") == [(None, "A"), ("+", "B"), ("*", "C")]

    def test_difference(self, symbols):
        assert evaluate_expression("BUFEND-BUFFER", symbols.get) == 0x1000

    def test_single_symbol(self, symbols):
        assert evaluate_expression("BUFFER", symbols.get) == 0x33

    def test_numbers(self, symbols):
        assert evaluate_expression("10+5", symbols.get) == 15

    def test_no_precedence(self, symbols):
        """2+3*TWO is (2+3)*2, not 2+(3*2)."""
        assert evaluate_expression("2+3*TWO", symbols.get) == 10

    def test_division_truncates(self, symbols):
        assert evaluate_expression("7/TWO", symbols.get) == 3

    def test_negative_division_truncates_toward_zero(self, symbols):
        assert evaluate_expression("0-7/TWO", symbols.get) == -3

    def test_division_by_zero(self, symbols):
        with pytest.raises(ExpressionError) as exc_info:
            evaluate_expression("BUFFER/0", symbols.get)
        assert "division by zero" in str(exc_info.value)

    def test_undefined_symbol(self, symbols):
        with pytest.raises(UndefinedSymbolError) as exc_info:
            evaluate_expression("BUFEND-NOWHERE", symbols.get)
        assert exc_info.value.symbol == "NOWHERE"
