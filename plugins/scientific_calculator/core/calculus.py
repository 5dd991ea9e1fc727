"""Numerical integration and differentiation helpers.

Both helpers receive the function body as an unevaluated string in the
variable ``X`` and compile it once per call through the expression backend.
Trigonometry inside the body always uses radians.
"""

from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from .backend import EvaluationError, compile_expression

SIMPSON_INTERVALS = 100
DERIVATIVE_STEP = 1e-5
FREE_VARIABLE = "X"


def _as_float(value: Any, label: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise EvaluationError(f"{label} must be a real number") from exc


def _function_body(expression: Any) -> str:
    if not isinstance(expression, str):
        raise EvaluationError(f"First argument must be a function of {FREE_VARIABLE}")
    return expression


def simpson_weights(intervals: int = SIMPSON_INTERVALS) -> np.ndarray:
    """Return the 1-4-2-...-4-1 weights for composite Simpson's rule."""

    if intervals <= 0 or intervals % 2:
        raise ValueError("Simpson's rule needs a positive even number of intervals")
    weights = np.full(intervals + 1, 2.0)
    weights[1::2] = 4.0
    weights[0] = weights[-1] = 1.0
    return weights


def integrate(
    expression: str,
    lower: Any,
    upper: Any,
    *,
    constants: Mapping[str, Any] | None = None,
) -> float:
    """Definite integral of ``expression`` over ``[lower, upper]``."""

    a = _as_float(lower, "Lower limit")
    b = _as_float(upper, "Upper limit")
    func = compile_expression(_function_body(expression), FREE_VARIABLE, scope=constants)
    h = (b - a) / SIMPSON_INTERVALS
    samples = func(a + h * np.arange(SIMPSON_INTERVALS + 1))
    return float(h / 3 * np.dot(simpson_weights(), samples))


def deriv(
    expression: str,
    at: Any,
    *,
    constants: Mapping[str, Any] | None = None,
) -> float:
    """First derivative of ``expression`` at ``at`` by central difference."""

    x = _as_float(at, "Evaluation point")
    func = compile_expression(_function_body(expression), FREE_VARIABLE, scope=constants)
    f_plus, f_minus = func(np.array([x + DERIVATIVE_STEP, x - DERIVATIVE_STEP]))
    return float((f_plus - f_minus) / (2 * DERIVATIVE_STEP))


__all__ = ["DERIVATIVE_STEP", "SIMPSON_INTERVALS", "deriv", "integrate", "simpson_weights"]
