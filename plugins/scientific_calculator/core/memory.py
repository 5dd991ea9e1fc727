"""Memory registers and last-answer storage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

import sympy

from .backend import EvaluationError

REGISTER_NAMES = ("A", "B", "C", "D", "E", "F", "X", "Y", "M")
MATRIX_SLOTS = ("A", "B", "C", "D")
ANSWER_NAME = "Ans"


def _initial_registers() -> dict[str, Any]:
    return {name: 0.0 for name in REGISTER_NAMES}


def _as_real(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise EvaluationError("Memory cells only hold real numbers") from exc


def _check_slot(slot: str) -> str:
    slot = slot.strip().upper()
    if slot not in MATRIX_SLOTS:
        raise EvaluationError(f"Unknown slot '{slot}'; expected one of {', '.join(MATRIX_SLOTS)}")
    return slot


@dataclass(slots=True)
class MemoryBank:
    """Named registers plus the last committed answer.

    Registers start at zero and are only ever replaced. Matrix and vector
    saves land in the same mapping under ``MatA``/``VctA`` style names so the
    evaluation scope can reference them directly.
    """

    registers: dict[str, Any] = field(default_factory=_initial_registers)
    last_answer: str = "0"

    def store(self, name: str, value: Any) -> None:
        if name not in REGISTER_NAMES:
            raise EvaluationError(f"Unknown register '{name}'")
        self.registers[name] = _as_real(value)

    def recall(self, name: str) -> Any:
        try:
            return self.registers[name]
        except KeyError as exc:
            raise EvaluationError(f"Unknown register '{name}'") from exc

    def add_to(self, name: str, amount: Any) -> None:
        self.store(name, _as_real(self.recall(name)) + _as_real(amount))

    def store_matrix(self, slot: str, rows: Sequence[Iterable[float]]) -> str:
        data = [[_as_real(item) for item in row] for row in rows]
        if not data or not data[0]:
            raise EvaluationError("Matrix must have at least one element")
        if any(len(row) != len(data[0]) for row in data):
            raise EvaluationError("Matrix rows must have equal length")
        name = f"Mat{_check_slot(slot)}"
        self.registers[name] = sympy.Matrix(data)
        return name

    def store_vector(self, slot: str, values: Iterable[float]) -> str:
        data = [_as_real(item) for item in values]
        if not data:
            raise EvaluationError("Vector must have at least one element")
        name = f"Vct{_check_slot(slot)}"
        self.registers[name] = sympy.Matrix([data])
        return name

    def answer_value(self) -> float:
        try:
            return float(self.last_answer)
        except (TypeError, ValueError):
            return 0.0

    def commit_answer(self, text: str) -> None:
        self.last_answer = text

    def snapshot(self) -> dict[str, Any]:
        """Plain-data view suitable for JSON responses."""

        data: dict[str, Any] = {}
        for name, value in self.registers.items():
            if isinstance(value, sympy.MatrixBase):
                data[name] = [[float(item) for item in value.row(i)] for i in range(value.rows)]
            else:
                data[name] = value
        data[ANSWER_NAME] = self.last_answer
        return data


__all__ = ["ANSWER_NAME", "MATRIX_SLOTS", "REGISTER_NAMES", "MemoryBank"]
