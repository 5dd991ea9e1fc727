"""Calculator session: modifier state, key dispatch and display state."""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Any, Iterable

from common.logging import get_logger

from .backend import ConversionError, ExpressionError
from .builder import ExpressionBuilder
from .keymap import CALCULATOR_MODES, KEYPAD_TOKENS, REGISTER_KEYS, Layer, translate
from .memory import MemoryBank
from .pipeline import ANGLE_MODES, ERROR_MARKER, AngleMode, evaluate_internal, toggle_fraction

logger = get_logger()

SHIFT_KEY = "SHIFT"
ALPHA_KEY = "ALPHA"
ON_KEY = "ON"
CLEAR_KEY = "AC"
DELETE_KEY = "DEL"
EQUALS_KEY = "="
STORE_KEY = "sto"
MEMORY_PLUS_KEY = "m+"
TOGGLE_KEY = "sd"

_MODIFIER_LABELS: dict[Layer, str] = {"base": "", "shift": "SHIFT", "alpha": "ALPHA"}


class CalculatorStateError(ValueError):
    """Raised for invalid mode or angle selections."""


@dataclass(frozen=True, slots=True)
class DisplayState:
    """Everything a keypad front end needs to render."""

    expression: str
    result: str
    angle_mode: str
    modifier: str
    mode: str
    hyperbolic: bool
    internal: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class CalculatorSession:
    """One independent calculator: buffers, modifiers, memory and result."""

    def __init__(
        self,
        *,
        angle_mode: AngleMode = "DEG",
        mode: str = "COMP",
        memory: MemoryBank | None = None,
    ) -> None:
        self.memory = memory or MemoryBank()
        self.builder = ExpressionBuilder()
        self.layer: Layer = "base"
        self.hyperbolic = False
        self.store_pending = False
        self.result = "0"
        self.angle_mode: AngleMode = "DEG"
        self.mode = "COMP"
        self.lock = threading.Lock()
        self.set_angle_mode(angle_mode)
        self.set_mode(mode)

    # -- public operations -------------------------------------------------

    def handle_key(self, token: str) -> None:
        if token not in KEYPAD_TOKENS:
            raise CalculatorStateError(f"Unknown key '{token}'")
        if token in (SHIFT_KEY, ALPHA_KEY):
            self._toggle_modifier("shift" if token == SHIFT_KEY else "alpha")
            return
        if token == ON_KEY:
            self.reset()
            return
        if token == CLEAR_KEY:
            self.builder.clear()
            self.builder.awaiting_new_input = False
            self.result = "0"
            return
        if token == DELETE_KEY:
            self.builder.delete_last()
            return
        if token == EQUALS_KEY:
            self.calculate()
            return

        if self.store_pending:
            self.store_pending = False
            if token in REGISTER_KEYS:
                self.layer = "base"
                self._store(REGISTER_KEYS[token])
                return
        if self._run_command(token):
            return

        self.builder.prepare_for(token, self.layer, last_answer=self.memory.last_answer)
        mapping = translate(token, self.layer, self.mode, last_answer=self.memory.last_answer)
        self.builder.append(mapping.visual, mapping.internal)
        if mapping.modifier_consumed:
            self.layer = "base"

    def handle_keys(self, tokens: Iterable[str]) -> None:
        """Apply a batch of keys; an unknown key rejects the whole batch."""

        tokens = list(tokens)
        unknown = [token for token in tokens if token not in KEYPAD_TOKENS]
        if unknown:
            raise CalculatorStateError(f"Unknown key '{unknown[0]}'")
        for token in tokens:
            self.handle_key(token)

    def calculate(self) -> bool:
        """Evaluate the internal buffer; return whether it succeeded."""

        try:
            text = evaluate_internal(self.builder.internal, self.memory, self.angle_mode)
        except ExpressionError as exc:
            logger.debug("evaluation failed for %r: %s", self.builder.internal, exc)
            self.result = ERROR_MARKER
            return False
        self.result = text
        self.memory.commit_answer(text)
        self.builder.awaiting_new_input = True
        return True

    def toggle_fraction(self) -> None:
        try:
            self.result = toggle_fraction(self.result)
        except ConversionError as exc:
            logger.debug("fraction toggle ignored: %s", exc)

    def set_angle_mode(self, angle_mode: str) -> None:
        if angle_mode not in ANGLE_MODES:
            raise CalculatorStateError(f"angle_mode must be one of {', '.join(ANGLE_MODES)}")
        self.angle_mode = angle_mode  # type: ignore[assignment]

    def set_mode(self, mode: str) -> None:
        if mode not in CALCULATOR_MODES:
            raise CalculatorStateError(f"mode must be one of {', '.join(CALCULATOR_MODES)}")
        self.mode = mode
        self.reset()

    def reset(self) -> None:
        """Clear buffers, result and modifiers; memory survives."""

        self.builder.clear()
        self.builder.awaiting_new_input = False
        self.result = "0"
        self.layer = "base"
        self.hyperbolic = False
        self.store_pending = False

    def display_state(self) -> DisplayState:
        modifier = "STO" if self.store_pending else _MODIFIER_LABELS[self.layer]
        return DisplayState(
            expression=self.builder.visual,
            result=self.result,
            angle_mode=self.angle_mode,
            modifier=modifier,
            mode=self.mode,
            hyperbolic=self.hyperbolic,
            internal=self.builder.internal,
        )

    # -- helpers -----------------------------------------------------------

    def _toggle_modifier(self, layer: Layer) -> None:
        self.layer = "base" if self.layer == layer else layer

    def _run_command(self, token: str) -> bool:
        # Keys that act on memory or the result instead of the buffers.
        if token == STORE_KEY:
            self.layer = "base"
            self.store_pending = True
            return True
        if self.layer == "alpha":
            return False
        if token == MEMORY_PLUS_KEY:
            sign = -1 if self.layer == "shift" else 1
            self.layer = "base"
            self.memory.add_to("M", sign * self.memory.answer_value())
            logger.debug("memory M updated to %s", self.memory.recall("M"))
            return True
        if token == TOGGLE_KEY:
            self.layer = "base"
            self.toggle_fraction()
            return True
        return False

    def _store(self, register: str) -> None:
        self.memory.store(register, self.memory.answer_value())
        logger.debug("stored %s in register %s", self.memory.last_answer, register)


__all__ = ["CalculatorSession", "CalculatorStateError", "DisplayState"]
