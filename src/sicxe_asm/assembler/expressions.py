"""
Operand Classification and Expression Evaluation
================================================

SIC/XE operands come in a handful of textual forms. This module recognises
them and evaluates the simple arithmetic expressions allowed in EQU, BYTE
and WORD operands.

Operand Forms
-------------
| Form        | Example       | Meaning                              |
|-------------|---------------|--------------------------------------|
| Number      | 4096          | Decimal constant                     |
| Symbol      | BUFFER        | Label or imported name               |
| Data form   | C'EOF', X'F1' | Character or hex bytes (BYTE)        |
| Literal     | =C'EOF'       | Data form placed in the literal pool |
| Expression  | BUFEND-BUFFER | Terms joined by + - * /              |
| Immediate   | #3            | Addressing prefix (i bit)            |
| Indirect    | @RETADR       | Addressing prefix (n bit)            |
| Current loc | *             | EQU * (current location counter)     |

Expression Grammar
------------------
Expressions are evaluated strictly left to right with single-character
operators and no precedence or parentheses:

    BUFEND-BUFFER*2   ==   (BUFEND - BUFFER) * 2

Division truncates toward zero.

Example Usage
-------------
>>> split_expression("BUFEND-BUFFER")
[(None, 'BUFEND'), ('-', 'BUFFER')]
>>> evaluate_expression("A+B*2", {"A": 1, "B": 3}.get)
8
>>> form_to_hex("C'EOF'")
'454F46'
"""

from enum import Enum
import re
from typing import Callable, Optional

from sicxe_asm.errors import (
    AssemblySyntaxError,
    ExpressionError,
    UndefinedSymbolError,
    SourceLocation,
)


# =============================================================================
# Patterns
# =============================================================================

_NUMBER_RE = re.compile(r"\d+")
_SYMBOL_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_FORM_RE = re.compile(r"([CX])'([^']*)'", re.IGNORECASE)
_OPERATOR_RE = re.compile(r"([+\-*/])")

LITERAL_PREFIX = "="
CURRENT_LOCATION = "*"
OPERATORS = "+-*/"


class LiteralType(Enum):
    """Data type of a C'...' or X'...' form."""
    CHARACTER = "C"
    HEX = "X"


# =============================================================================
# Predicates
# =============================================================================

def is_number(text: str) -> bool:
    """True for an unsigned decimal constant."""
    return bool(_NUMBER_RE.fullmatch(text))


def is_symbol(text: str) -> bool:
    """True for a bare symbol name."""
    return bool(_SYMBOL_RE.fullmatch(text))


def is_data_form(text: str) -> bool:
    """True for C'...' or X'...'."""
    return bool(_FORM_RE.fullmatch(text))


def is_literal(text: str) -> bool:
    """True for a literal operand (=C'...' or =X'...')."""
    return text.startswith(LITERAL_PREFIX) and is_data_form(text[1:])


def is_expression(text: str) -> bool:
    """
    True for an arithmetic expression over terms.

    A lone '*' means the current location, and data forms may contain
    operator characters inside their quotes, so neither counts.
    """
    if text == CURRENT_LOCATION or is_data_form(text) or is_literal(text):
        return False
    terms = [term for _, term in split_expression(text)]
    return len(terms) > 1 and all(is_symbol(t) or is_number(t) for t in terms)


# =============================================================================
# Data Forms and Literals
# =============================================================================

def literal_text(operand: str) -> str:
    """Strip the '=' prefix: "=C'EOF'" -> "C'EOF'"."""
    return operand[1:] if operand.startswith(LITERAL_PREFIX) else operand


def form_type(text: str) -> LiteralType:
    """Return the data type of a data form or literal."""
    match = _FORM_RE.fullmatch(literal_text(text))
    if not match:
        raise AssemblySyntaxError(f"invalid data form '{text}'")
    return LiteralType(match.group(1).upper())


def form_data(text: str) -> str:
    """Return the text between the quotes of a data form or literal."""
    match = _FORM_RE.fullmatch(literal_text(text))
    if not match:
        raise AssemblySyntaxError(f"invalid data form '{text}'")
    return match.group(2)


def form_byte_length(text: str) -> int:
    """
    Number of bytes a data form occupies.

    Character data uses one byte per character; hex data one byte per
    two digits (an odd trailing digit does not add a byte).
    """
    data = form_data(text)
    if form_type(text) is LiteralType.CHARACTER:
        return len(data)
    return len(data) // 2


def form_to_hex(text: str) -> str:
    """
    Convert a data form to upper-case hex.

        C'EOF' -> 454F46
        X'f1'  -> F1
        X'ABC' -> AB

    The result always holds form_byte_length(text) bytes, so an odd
    trailing hex digit is dropped.

    Raises:
        AssemblySyntaxError: If X'...' contains non-hex digits or C'...'
                             holds a character that does not fit a byte
    """
    data = form_data(text)
    if form_type(text) is LiteralType.CHARACTER:
        for ch in data:
            if ord(ch) > 0xFF:
                raise AssemblySyntaxError(
                    f"character '{ch}' in '{text}' does not fit in a byte"
                )
        return "".join(f"{ord(ch):02X}" for ch in data)

    if not all(ch in "0123456789abcdefABCDEF" for ch in data):
        raise AssemblySyntaxError(f"invalid hex digits in '{text}'")
    return data[:len(data) // 2 * 2].upper()


# =============================================================================
# Expressions
# =============================================================================

def split_expression(text: str) -> list[tuple[Optional[str], str]]:
    """
    Split an expression into (operator, term) pairs.

    The first term has no operator:

        "A-B+C" -> [(None, 'A'), ('-', 'B'), ('+', 'C')]
    """
    parts = [part for part in _OPERATOR_RE.split(text) if part != ""]
    result: list[tuple[Optional[str], str]] = []
    operator: Optional[str] = None

    for part in parts:
        if part in OPERATORS:
            operator = part
        else:
            result.append((operator, part))
            operator = None

    return result


def _apply(operator: str, left: int, right: int,
           location: Optional[SourceLocation]) -> int:
    if operator == "+":
        return left + right
    if operator == "-":
        return left - right
    if operator == "*":
        return left * right
    if right == 0:
        raise ExpressionError("division by zero", location)
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


def evaluate_expression(
    text: str,
    resolve: Callable[[str], Optional[int]],
    location: Optional[SourceLocation] = None,
    source_line: Optional[str] = None,
) -> int:
    """
    Evaluate an expression left to right.

    Args:
        text: Expression text (e.g. "BUFEND-BUFFER")
        resolve: Returns a symbol's value, or None if it is undefined
        location: Source location for error messages
        source_line: Source text for error messages

    Returns:
        The integer value

    Raises:
        UndefinedSymbolError: If a symbol does not resolve
        ExpressionError: On division by zero
    """
    value = 0

    for operator, term in split_expression(text):
        if is_number(term):
            term_value = int(term)
        else:
            resolved = resolve(term)
            if resolved is None:
                raise UndefinedSymbolError(term, location, source_line=source_line)
            term_value = resolved

        if operator is None:
            value = term_value
        else:
            value = _apply(operator, value, term_value, location)

    return value


def addressing_prefix(operand: str) -> str:
    """Return '#', '@' or '' for an operand."""
    if operand[:1] in ("#", "@"):
        return operand[0]
    return ""
