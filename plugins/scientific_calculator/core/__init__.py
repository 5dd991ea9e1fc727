"""Exports for scientific calculator core."""

from .backend import (
    ConversionError,
    EvaluationError,
    ExpressionError,
    ExpressionSyntaxError,
    compile_expression,
    evaluate,
)
from .builder import ExpressionBuilder
from .calculus import deriv, integrate
from .keymap import CALCULATOR_MODES, KeyMapping, translate
from .memory import MATRIX_SLOTS, REGISTER_NAMES, MemoryBank
from .pipeline import (
    ANGLE_MODES,
    ERROR_MARKER,
    build_scope,
    evaluate_internal,
    format_result,
    rewrite_expression,
    toggle_fraction,
)
from .session import CalculatorSession, CalculatorStateError, DisplayState
from .settings import CalculatorSettings, load_settings
from .solvers import SolverError, function_table, solve_equation
from .store import SessionLimitError, SessionNotFoundError, SessionStore

__all__ = [
    "ANGLE_MODES",
    "CALCULATOR_MODES",
    "ERROR_MARKER",
    "MATRIX_SLOTS",
    "REGISTER_NAMES",
    "CalculatorSession",
    "CalculatorSettings",
    "CalculatorStateError",
    "ConversionError",
    "DisplayState",
    "EvaluationError",
    "ExpressionBuilder",
    "ExpressionError",
    "ExpressionSyntaxError",
    "KeyMapping",
    "MemoryBank",
    "SessionLimitError",
    "SessionNotFoundError",
    "SessionStore",
    "SolverError",
    "build_scope",
    "compile_expression",
    "deriv",
    "evaluate",
    "evaluate_internal",
    "format_result",
    "function_table",
    "integrate",
    "load_settings",
    "rewrite_expression",
    "solve_equation",
    "toggle_fraction",
    "translate",
]
