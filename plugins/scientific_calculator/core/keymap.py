"""Keypad token translation across the base, shift and alpha layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Layer = Literal["base", "shift", "alpha"]

LAYERS: tuple[Layer, ...] = ("base", "shift", "alpha")
CALCULATOR_MODES = ("COMP", "CMPLX", "STAT", "BASE-N", "EQN", "MATRIX", "TABLE", "VECTOR")

# Infix markers left in the internal buffer and rewritten before evaluation.
PERMUTATION_MARKER = "P"
COMBINATION_MARKER = "C"

ANSWER_KEY = "ans"


def answer_literal(last_answer: str) -> str:
    """Internal form of the last answer; negatives are parenthesised."""

    text = last_answer or "0"
    return f"({text})" if text.startswith("-") else text


@dataclass(frozen=True, slots=True)
class KeyMapping:
    """Visual glyph and evaluator token produced by a single key press."""

    visual: str
    internal: str
    modifier_consumed: bool = False


_BASE_LAYER: dict[str, tuple[str, str]] = {
    "*": ("×", "*"),
    "/": ("÷", "/"),
    "sin": ("sin(", "sin("),
    "cos": ("cos(", "cos("),
    "tan": ("tan(", "tan("),
    "log": ("log(", "log10("),
    "ln": ("ln(", "log("),
    "sqrt": ("√(", "sqrt("),
    "square": ("²", "^2"),
    "cube": ("³", "^3"),
    "recip": ("⁻¹", "^(-1)"),
    "abs": ("Abs(", "abs("),
    "exp": ("×10", "*10^"),
    "pwr": ("^(", "^("),
    "integral": ("∫(", "integrate("),
}

_SHIFT_LAYER: dict[str, tuple[str, str]] = {
    "sin": ("sin⁻¹(", "asin("),
    "cos": ("cos⁻¹(", "acos("),
    "tan": ("tan⁻¹(", "atan("),
    "ln": ("e^", "exp("),
    "log": ("10^", "10^"),
    "sqrt": ("³√(", "cbrt("),
    "square": ("³", "^3"),
    "*": ("P", PERMUTATION_MARKER),
    "/": ("C", COMBINATION_MARKER),
    ")": ("X", "X"),
    "exp": ("π", "pi"),
    ANSWER_KEY: ("%", "/100"),
    "integral": ("d/dx(", "deriv("),
}

_ALPHA_LAYER: dict[str, tuple[str, str]] = {
    "7": ("A", "A"),
    "8": ("B", "B"),
    "9": ("C", "C"),
    "4": ("D", "D"),
    "5": ("E", "E"),
    "6": ("F", "F"),
    ")": ("X", "X"),
    "sd": ("Y", "Y"),
    "m+": ("M", "M"),
}

_TABLES: dict[Layer, dict[str, tuple[str, str]]] = {
    "base": _BASE_LAYER,
    "shift": _SHIFT_LAYER,
    "alpha": _ALPHA_LAYER,
}

# Keys that select a memory register, used by the STO sequence.
REGISTER_KEYS: dict[str, str] = {token: internal for token, (_, internal) in _ALPHA_LAYER.items()}

FUNCTION_KEYS = frozenset({"SHIFT", "ALPHA", "ON", "AC", "DEL", "=", "sto"})
KEYPAD_TOKENS = frozenset(
    set("0123456789.+-*/^(),")
    | set(_BASE_LAYER)
    | set(_SHIFT_LAYER)
    | set(_ALPHA_LAYER)
    | FUNCTION_KEYS
    | {ANSWER_KEY}
)


def translate(
    token: str,
    layer: Layer = "base",
    mode: str = "COMP",
    *,
    last_answer: str = "0",
) -> KeyMapping:
    """Map a raw keypad ``token`` to its visual and internal forms.

    Tokens missing from the active layer fall back to the base layer and then
    to the literal token. The base ``ans`` key inserts ``last_answer`` as a
    literal numeral, parenthesised when negative. ``mode`` is accepted for
    every calculator mode but does not alter the mapping.
    """

    if layer not in _TABLES:
        raise ValueError(f"Unknown layer '{layer}'")
    if mode not in CALCULATOR_MODES:
        raise ValueError(f"Unknown calculator mode '{mode}'")

    entry = _TABLES[layer].get(token)
    if entry is None:
        if token == ANSWER_KEY:
            entry = ("Ans", answer_literal(last_answer))
        else:
            entry = _BASE_LAYER.get(token, (token, token))
    visual, internal = entry
    return KeyMapping(visual=visual, internal=internal, modifier_consumed=layer != "base")


__all__ = [
    "ANSWER_KEY",
    "CALCULATOR_MODES",
    "COMBINATION_MARKER",
    "FUNCTION_KEYS",
    "KEYPAD_TOKENS",
    "LAYERS",
    "PERMUTATION_MARKER",
    "REGISTER_KEYS",
    "KeyMapping",
    "answer_literal",
    "Layer",
    "translate",
]
