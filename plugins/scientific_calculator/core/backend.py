"""Expression compilation and evaluation for the Scientific Calculator plugin.

Expressions are tokenised by sympy's parser (``^`` as power, implicit
multiplication) and compiled once to a Python code object. Evaluation runs
that code against an explicit namespace of float and numpy functions, so
every result is an IEEE double and overflow fails fast instead of growing an
exact integer.
"""

from __future__ import annotations

import ast
import math
from tokenize import NUMBER, TokenError
from types import CodeType
from typing import Any, Callable, Collection, Mapping

import numpy as np
import sympy
from sympy.parsing.sympy_parser import convert_xor, implicit_multiplication, stringify_expr


class ExpressionError(ValueError):
    """Raised when an expression cannot be parsed or evaluated."""


class ExpressionSyntaxError(ExpressionError):
    """Raised for malformed input such as unbalanced parentheses."""


class EvaluationError(ExpressionError):
    """Raised for unknown names, domain violations and type mismatches."""


class ConversionError(ExpressionError):
    """Raised when a result cannot be switched between decimal and fraction."""


Number = float
Result = float | sympy.MatrixBase

_MAX_EXPR_LENGTH = 1024
_MAX_COUNT = 10_000
_ALLOWED_NODES = (
    ast.Expression,
    ast.BinOp,
    ast.UnaryOp,
    ast.Call,
    ast.Name,
    ast.Load,
    ast.Constant,
    ast.Add,
    ast.Sub,
    ast.Mult,
    ast.Div,
    ast.Pow,
    ast.UAdd,
    ast.USub,
)
_EVAL_ERRORS = (
    TypeError,
    ValueError,
    AttributeError,
    ArithmeticError,
    NameError,
    sympy.SympifyError,
)


def _float_literals(tokens, local_dict, global_dict):
    # Every numeral becomes a float literal; no exact integer arithmetic.
    result = []
    for toknum, tokval in tokens:
        if toknum == NUMBER:
            try:
                value = float(tokval)
            except ValueError as exc:
                raise ExpressionSyntaxError(f"Invalid number '{tokval}'") from exc
            if not math.isfinite(value):
                raise EvaluationError(f"Number '{tokval}' is too large")
            tokval = repr(value)
        result.append((toknum, tokval))
    return result


_TRANSFORMATIONS = (_float_literals, implicit_multiplication, convert_xor)


def _as_count(value: Any, label: str) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise EvaluationError(f"{label} must be a number") from exc
    if not number.is_integer() or number < 0:
        raise EvaluationError(f"{label} must be a non-negative integer")
    if number > _MAX_COUNT:
        raise EvaluationError(f"{label} must not exceed {_MAX_COUNT}")
    return int(number)


def _count_result(value: int) -> float:
    try:
        return float(value)
    except OverflowError as exc:
        raise EvaluationError("Result is too large") from exc


def permutations(n: Any, k: Any) -> float:
    """Number of ordered selections of ``k`` items out of ``n``."""

    n, k = _as_count(n, "n"), _as_count(k, "r")
    if k > n:
        raise EvaluationError("r must not exceed n in nPr")
    return _count_result(math.perm(n, k))


def combinations(n: Any, k: Any) -> float:
    """Number of unordered selections of ``k`` items out of ``n``."""

    n, k = _as_count(n, "n"), _as_count(k, "r")
    if k > n:
        raise EvaluationError("r must not exceed n in nCr")
    return _count_result(math.comb(n, k))


def native_functions() -> dict[str, Callable[..., Any]]:
    """Functions the keypad emits that numpy spells differently."""

    return {
        "log10": np.log10,
        "cbrt": np.cbrt,
        "abs": np.abs,
        "permutations": permutations,
        "combinations": combinations,
    }


def _calculator_namespace() -> dict[str, Any]:
    # The complete vocabulary an expression may name besides its scope.
    namespace: dict[str, Any] = {
        "sin": np.sin,
        "cos": np.cos,
        "tan": np.tan,
        "asin": np.arcsin,
        "acos": np.arccos,
        "atan": np.arctan,
        "sqrt": np.sqrt,
        "exp": np.exp,
        "log": np.log,
        "Abs": np.abs,
        "pi": math.pi,
        "E": math.e,
        **native_functions(),
    }
    namespace["__builtins__"] = {}
    return namespace


_GLOBALS = _calculator_namespace()


def _normalize_expression(expression: str) -> str:
    if not expression or not isinstance(expression, str):
        raise ExpressionSyntaxError("Expression is required")
    expression = expression.strip()
    if not expression:
        raise ExpressionSyntaxError("Expression is required")
    if len(expression) > _MAX_EXPR_LENGTH:
        raise ExpressionSyntaxError("Expression is too long")
    if "__" in expression:
        raise ExpressionSyntaxError("Names starting with __ are not allowed")
    return expression


def _check_tree(
    tree: ast.Expression,
    known: Collection[str],
    quoted_callables: Collection[str],
) -> None:
    """Accept only arithmetic, plain calls and known names.

    Quoted text is allowed only as the first argument of ``quoted_callables``.
    """

    quoted: set[int] = set()
    unknown: set[str] = set()
    for node in ast.walk(tree):
        if not isinstance(node, _ALLOWED_NODES):
            raise ExpressionSyntaxError(f"Unsupported syntax: {type(node).__name__}")
        if isinstance(node, ast.Call):
            if not isinstance(node.func, ast.Name):
                raise ExpressionSyntaxError("Only named functions can be called")
            first = node.args[0] if node.args else None
            if node.func.id in quoted_callables and isinstance(first, ast.Constant):
                quoted.add(id(first))
        elif isinstance(node, ast.Name) and node.id not in known:
            unknown.add(node.id)
    for node in ast.walk(tree):
        if not isinstance(node, ast.Constant):
            continue
        if isinstance(node.value, str):
            if id(node) not in quoted:
                raise ExpressionSyntaxError("Text literals are not allowed here")
        elif type(node.value) is not float:
            raise ExpressionSyntaxError(f"Unsupported literal {node.value!r}")
    if unknown:
        raise EvaluationError(f"Unknown variable '{', '.join(sorted(unknown))}'")


def _compile(
    expression: str,
    local_dict: Mapping[str, Any],
    *,
    quoted_callables: Collection[str] = (),
) -> CodeType:
    normalized = _normalize_expression(expression)
    try:
        source = stringify_expr(normalized, dict(local_dict), dict(_GLOBALS), _TRANSFORMATIONS)
        tree = ast.parse(source, mode="eval")
    except ExpressionError:
        raise
    except (SyntaxError, TokenError) as exc:
        raise ExpressionSyntaxError(f"Could not parse expression: {exc}") from exc
    except _EVAL_ERRORS as exc:
        raise ExpressionSyntaxError(str(exc) or type(exc).__name__) from exc
    _check_tree(tree, {*_GLOBALS, *local_dict}, quoted_callables)
    return compile(tree, "<expression>", "eval")


def _run(code: CodeType, local_dict: Mapping[str, Any]) -> Any:
    try:
        with np.errstate(all="ignore"):
            return eval(code, dict(_GLOBALS), dict(local_dict))
    except ExpressionError:
        raise
    except _EVAL_ERRORS as exc:
        raise EvaluationError(str(exc) or type(exc).__name__) from exc


def _to_real(value: Any) -> Number:
    if isinstance(value, (bool, str)):
        raise EvaluationError("Expression returned a non-numeric value")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise EvaluationError("Result is not a real number") from exc
    if math.isnan(number) or math.isinf(number):
        raise EvaluationError("Result is not finite")
    return number


def _coerce_result(value: Any) -> Result:
    if isinstance(value, sympy.MatrixBase):
        return value.applyfunc(lambda entry: sympy.Float(_to_real(entry)))
    return _to_real(value)


def evaluate(
    expression: str,
    scope: Mapping[str, Any],
    *,
    quoted_callables: Collection[str] = (),
) -> Result:
    """Evaluate ``expression`` against ``scope`` and return a float or matrix.

    Quoted text is accepted only as the first argument of a function named in
    ``quoted_callables``.
    """

    code = _compile(expression, scope, quoted_callables=quoted_callables)
    return _coerce_result(_run(code, scope))


def compile_expression(
    expression: str,
    variable: str = "X",
    *,
    scope: Mapping[str, Any] | None = None,
    aliases: Collection[str] = (),
) -> Callable[[Any], np.ndarray]:
    """Compile ``expression`` into a vectorised function of ``variable``.

    ``aliases`` are extra names bound to the same sample points.
    """

    constants = dict(scope or {})
    bound = (variable, *aliases)
    code = _compile(expression, {**constants, **dict.fromkeys(bound, 0.0)})

    def evaluate_at(values: Any) -> np.ndarray:
        points = np.asarray(values, dtype=float)
        raw = _run(code, {**constants, **dict.fromkeys(bound, points)})
        if isinstance(raw, sympy.MatrixBase):
            raise EvaluationError("Function body must be scalar")
        try:
            raw = np.asarray(raw)
            if np.iscomplexobj(raw):
                if np.any(raw.imag != 0):
                    raise EvaluationError("Function is not real-valued over the range")
                raw = raw.real
            result = np.broadcast_to(raw.astype(float), points.shape)
        except ExpressionError:
            raise
        except _EVAL_ERRORS as exc:
            raise EvaluationError(str(exc) or type(exc).__name__) from exc
        if not np.all(np.isfinite(result)):
            raise EvaluationError("Function is not finite over the range")
        return result

    return evaluate_at


__all__ = [
    "ExpressionError",
    "ExpressionSyntaxError",
    "EvaluationError",
    "ConversionError",
    "combinations",
    "compile_expression",
    "evaluate",
    "native_functions",
    "permutations",
]
