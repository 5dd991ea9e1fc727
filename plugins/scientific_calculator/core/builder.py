"""Parallel visual/internal expression buffers."""

from __future__ import annotations

from dataclasses import dataclass

from .keymap import ANSWER_KEY, Layer, answer_literal

ANSWER_GLYPH = "Ans"

_CONTINUATION_KEYS: dict[str, frozenset[str]] = {
    "base": frozenset({"+", "-", "*", "/", "^", "pwr", "square", "cube", "(", ")"}),
    # nPr, nCr, percent and cube are postfix/infix forms on the shift layer.
    "shift": frozenset({"*", "/", ANSWER_KEY, "square"}),
    "alpha": frozenset(),
}


def continues_answer(token: str, layer: Layer) -> bool:
    """Whether ``token`` on ``layer`` extends the previous result."""

    return token in _CONTINUATION_KEYS.get(layer, frozenset())


@dataclass(slots=True)
class ExpressionBuilder:
    """Owns the display and evaluator buffers and keeps them in lock-step."""

    visual: str = ""
    internal: str = ""
    awaiting_new_input: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.internal

    def append(self, visual: str, internal: str) -> None:
        self.visual += visual
        self.internal += internal

    def delete_last(self) -> None:
        self.visual = self.visual[:-1]
        self.internal = self.internal[:-1]

    def clear(self) -> None:
        self.visual = ""
        self.internal = ""

    def start_from_answer(self, last_answer: str) -> None:
        self.visual = ANSWER_GLYPH
        self.internal = answer_literal(last_answer)

    def prepare_for(self, token: str, layer: Layer, *, last_answer: str) -> None:
        """Apply the auto-clear policy once, before ``token`` is appended.

        After a successful evaluation an operator continues from the answer,
        a plain key starts a new calculation, and a modified key keeps the
        buffers (seeding ``Ans`` only when they are empty).
        """

        if not self.awaiting_new_input:
            return
        self.awaiting_new_input = False
        if continues_answer(token, layer):
            self.start_from_answer(last_answer)
        elif layer == "base":
            self.clear()
        elif self.is_empty:
            self.start_from_answer(last_answer)


__all__ = ["ANSWER_GLYPH", "ExpressionBuilder", "continues_answer"]
