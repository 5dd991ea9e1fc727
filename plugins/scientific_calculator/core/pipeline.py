"""Rewrite, scope construction, evaluation and formatting for the ``=`` key."""

from __future__ import annotations

import re
from fractions import Fraction
from functools import partial
from typing import Any, Callable, Literal

import numpy as np
import sympy

from .backend import (
    ConversionError,
    ExpressionError,
    Result,
    evaluate,
    native_functions,
)
from .calculus import deriv, integrate
from .keymap import COMBINATION_MARKER, PERMUTATION_MARKER
from .memory import ANSWER_NAME, REGISTER_NAMES, MemoryBank

AngleMode = Literal["DEG", "RAD", "GRA"]

ANGLE_MODES: tuple[AngleMode, ...] = ("DEG", "RAD", "GRA")
ERROR_MARKER = "Syntax ERROR"
INTEGER_TOLERANCE = 1e-9
SIGNIFICANT_DIGITS = 10
FRACTION_MAX_DENOMINATOR = 1_000_000

_TOKEN_RE = re.compile(r'"[^"]*"|[A-Za-z0-9_.]+|\s+|.')
_OPERAND_RE = re.compile(
    r"\d+(?:\.\d*)?|\.\d+|" + ANSWER_NAME + "|[" + "".join(REGISTER_NAMES) + "]"
)
_INFIX_FUNCTIONS = {
    PERMUTATION_MARKER: "permutations",
    COMBINATION_MARKER: "combinations",
}
_CALCULUS_FUNCTIONS = frozenset({"integrate", "deriv"})


def _tokenize(expression: str) -> list[str]:
    return _TOKEN_RE.findall(expression)


def _rewrite_infix(word: str) -> str:
    # A word is rewritten only when it reads operand (marker operand)+.
    match = _OPERAND_RE.match(word)
    if match is None:
        return word
    result, pos = match.group(), match.end()
    while pos < len(word):
        function = _INFIX_FUNCTIONS.get(word[pos])
        operand = _OPERAND_RE.match(word, pos + 1) if function else None
        if operand is None:
            return word
        result = f"{function}({result}, {operand.group()})"
        pos = operand.end()
    return result


def _first_argument_end(tokens: list[str], start: int) -> int | None:
    depth = 0
    for index in range(start, len(tokens)):
        token = tokens[index]
        if token == "(":
            depth += 1
        elif token == ")":
            if depth == 0:
                return None
            depth -= 1
        elif token == "," and depth == 0:
            return index
    return None


def _quote_calculus_arguments(tokens: list[str]) -> list[str]:
    output: list[str] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        output.append(token)
        index += 1
        if token not in _CALCULUS_FUNCTIONS or index >= len(tokens) or tokens[index] != "(":
            continue
        output.append("(")
        index += 1
        end = _first_argument_end(tokens, index)
        if end is None:
            continue
        body = "".join(tokens[index:end]).strip()
        if body and not body.startswith('"'):
            output.append(f'"{body}"')
            index = end
    return output


def rewrite_expression(internal: str) -> str:
    """Turn infix nPr/nCr into calls and quote calculus function bodies."""

    tokens = [_rewrite_infix(token) for token in _tokenize(internal)]
    return "".join(_quote_calculus_arguments(tokens))


def _wrap_trig(fn: Callable[[Any], Any]) -> Callable[[Any], Any]:
    def wrapped(value: Any) -> Any:
        return fn(np.radians(value))

    return wrapped


def _wrap_inverse_trig(fn: Callable[[Any], Any]) -> Callable[[Any], Any]:
    def wrapped(value: Any) -> Any:
        return np.degrees(fn(value))

    return wrapped


def _degree_trig() -> dict[str, Callable[[Any], Any]]:
    return {
        "sin": _wrap_trig(np.sin),
        "cos": _wrap_trig(np.cos),
        "tan": _wrap_trig(np.tan),
        "asin": _wrap_inverse_trig(np.arcsin),
        "acos": _wrap_inverse_trig(np.arccos),
        "atan": _wrap_inverse_trig(np.arctan),
    }


def build_scope(memory: MemoryBank, angle_mode: AngleMode) -> dict[str, Any]:
    """Every binding an expression may reference.

    Trigonometry is only replaced in degree mode; radians and gradians use
    the plain numpy functions.
    """

    if angle_mode not in ANGLE_MODES:
        raise ValueError(f"Unknown angle mode '{angle_mode}'")
    values = {**memory.registers, ANSWER_NAME: memory.answer_value()}
    scope: dict[str, Any] = {**native_functions(), **values}
    scope["integrate"] = partial(integrate, constants=values)
    scope["deriv"] = partial(deriv, constants=values)
    if angle_mode == "DEG":
        scope.update(_degree_trig())
    return scope


def _format_number(value: float) -> str:
    nearest = round(value)
    if abs(value - nearest) < INTEGER_TOLERANCE:
        value = float(nearest)
    else:
        value = float(f"{value:.{SIGNIFICANT_DIGITS}g}")
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def format_result(value: Result) -> str:
    """Display form of a number or matrix result."""

    if isinstance(value, sympy.MatrixBase):
        rows = [[_format_number(float(item)) for item in value.row(i)] for i in range(value.rows)]
        if value.rows == 1:
            return "[" + ", ".join(rows[0]) + "]"
        return "[" + ", ".join("[" + ", ".join(row) + "]" for row in rows) + "]"
    return _format_number(float(value))


def evaluate_internal(internal: str, memory: MemoryBank, angle_mode: AngleMode) -> str:
    """Evaluate an internal buffer and return the formatted result.

    Raises :class:`ExpressionError` on any failure; nothing is committed here.
    """

    value = evaluate(
        rewrite_expression(internal),
        build_scope(memory, angle_mode),
        quoted_callables=_CALCULUS_FUNCTIONS,
    )
    return format_result(value)


def toggle_fraction(result: str) -> str:
    """Switch a displayed result between decimal and ``n/d`` form."""

    if not result or result == ERROR_MARKER:
        raise ConversionError("Nothing to convert")
    if "/" in result:
        try:
            return format_result(evaluate(result, {}))
        except ExpressionError as exc:
            raise ConversionError(str(exc)) from exc
    try:
        fraction = Fraction(result)
    except (ValueError, ZeroDivisionError) as exc:
        raise ConversionError(f"Cannot convert '{result}' to a fraction") from exc
    # Prefer the simplest fraction that still displays as the same decimal.
    simple = fraction.limit_denominator(FRACTION_MAX_DENOMINATOR)
    if _format_number(float(simple)) == result:
        fraction = simple
    return f"{fraction.numerator}/{fraction.denominator}"


__all__ = [
    "ANGLE_MODES",
    "ERROR_MARKER",
    "AngleMode",
    "build_scope",
    "evaluate_internal",
    "format_result",
    "rewrite_expression",
    "toggle_fraction",
]
