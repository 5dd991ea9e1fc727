"""Equation solving and function tables for the EQN and TABLE modes."""

from __future__ import annotations

import math
from typing import Literal, Mapping

import numpy as np

from .backend import ExpressionError, compile_expression

EquationKind = Literal["quad", "cubic", "2var", "3var"]

TABLE_SIGNIFICANT_DIGITS = 5
_ROOT_TOLERANCE = 1e-7

_COEFFICIENTS: dict[str, tuple[str, ...]] = {
    "quad": ("a", "b", "c"),
    "cubic": ("a", "b", "c", "d"),
    "2var": ("a1", "b1", "c1", "a2", "b2", "c2"),
    "3var": ("a1", "b1", "c1", "d1", "a2", "b2", "c2", "d2", "a3", "b3", "c3", "d3"),
}
_UNKNOWNS = ("X", "Y", "Z")


class SolverError(ValueError):
    """Raised when an equation or table request cannot be solved."""


def coefficient_names(kind: EquationKind) -> tuple[str, ...]:
    try:
        return _COEFFICIENTS[kind]
    except KeyError as exc:
        raise SolverError(f"Unknown equation type '{kind}'") from exc


def _read_coefficients(kind: EquationKind, raw: Mapping[str, float]) -> dict[str, float]:
    values: dict[str, float] = {}
    for name in coefficient_names(kind):
        value = raw.get(name)
        try:
            number = float(value) if value is not None else 0.0
        except (TypeError, ValueError) as exc:
            raise SolverError(f"Invalid value for {name}") from exc
        if not math.isfinite(number):
            raise SolverError(f"{name} must be finite")
        values[name] = number
    return values


def _quadratic_roots(a: float, b: float, c: float) -> list[float]:
    discriminant = b * b - 4 * a * c
    if discriminant < 0:
        return []
    root = math.sqrt(discriminant)
    return [(-b + root) / (2 * a), (-b - root) / (2 * a)]


def _polynomial_roots(coefficients: list[float]) -> list[float]:
    if coefficients[0] == 0:
        raise SolverError("Leading coefficient a must be non-zero")
    if len(coefficients) == 3:
        return _quadratic_roots(*coefficients)
    roots = np.roots(coefficients)
    scale = max(1.0, float(np.max(np.abs(roots))))
    return sorted(
        (float(root.real) for root in roots if abs(root.imag) < _ROOT_TOLERANCE * scale),
        reverse=True,
    )


def _linear_system(values: dict[str, float], size: int) -> list[float]:
    columns = "abcd"[: size + 1]
    matrix = [[values[f"{col}{row}"] for col in columns[:-1]] for row in range(1, size + 1)]
    rhs = [values[f"{columns[-1]}{row}"] for row in range(1, size + 1)]
    try:
        solution = np.linalg.solve(np.array(matrix), np.array(rhs))
    except np.linalg.LinAlgError as exc:
        raise SolverError("Infinite/No Sol") from exc
    return [float(item) for item in solution]


def solve_equation(kind: EquationKind, coefficients: Mapping[str, float]) -> dict[str, object]:
    """Solve a polynomial or linear system described by named coefficients.

    Polynomials report only their real roots (``X1``, ``X2``...); linear
    systems report ``X``, ``Y`` and, for three unknowns, ``Z``.
    """

    values = _read_coefficients(kind, coefficients)
    if kind in ("quad", "cubic"):
        roots = _polynomial_roots([values[name] for name in coefficient_names(kind)])
        solutions = {f"X{index}": root for index, root in enumerate(roots, start=1)}
        message = "" if solutions else "No Real Roots"
    else:
        size = 2 if kind == "2var" else 3
        solution = _linear_system(values, size)
        solutions = dict(zip(_UNKNOWNS, solution))
        message = ""
    return {"type": kind, "solutions": solutions, "message": message}


def _frange(start: float, stop: float, step: float, *, max_points: int) -> list[float]:
    if step <= 0:
        raise SolverError("Step must be greater than zero")
    if stop < start:
        raise SolverError("Stop must be greater than or equal to start")
    values: list[float] = []
    current = start
    # Include stop when the increment lands within floating tolerance.
    while current <= stop + (abs(step) * 1e-9):
        values.append(float(current))
        if len(values) > max_points:
            raise SolverError("Range produces too many points")
        current = start + len(values) * step
    return values


def function_table(
    expression: str,
    start: float,
    stop: float,
    step: float,
    *,
    max_points: int = 1000,
) -> dict[str, object]:
    """Tabulate ``f(X)`` over a range; ``x`` and ``X`` name the same variable."""

    xs = _frange(float(start), float(stop), float(step), max_points=max_points)
    try:
        func = compile_expression(expression, "X", aliases=("x",))
        ys = func(np.array(xs))
    except ExpressionError as exc:
        raise SolverError(str(exc)) from exc
    rows = [
        {"x": x, "y": float(f"{y:.{TABLE_SIGNIFICANT_DIGITS}g}")}
        for x, y in zip(xs, ys)
    ]
    return {"expression": expression, "points": len(rows), "rows": rows}


__all__ = [
    "EquationKind",
    "SolverError",
    "coefficient_names",
    "function_table",
    "solve_equation",
]
