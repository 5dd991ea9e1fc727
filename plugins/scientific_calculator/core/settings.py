"""Configuration helpers for the scientific calculator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .pipeline import ANGLE_MODES


@dataclass(frozen=True)
class CalculatorSettings:
    default_angle_mode: str
    max_sessions: int
    session_ttl_minutes: int
    max_keys_per_request: int
    max_table_points: int


def _positive_int(raw: Mapping[str, object], key: str, default: int) -> int:
    try:
        value = int(float(raw.get(key, default)))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        value = default
    return max(value, 1)


def load_settings(raw: Mapping[str, object] | None) -> CalculatorSettings:
    """Build settings from the ``plugins.scientific_calculator`` config block.

    Missing or malformed values fall back to defaults.
    """

    raw = raw or {}
    angle_mode = str(raw.get("default_angle_mode", "DEG")).upper()
    if angle_mode not in ANGLE_MODES:
        angle_mode = "DEG"
    return CalculatorSettings(
        default_angle_mode=angle_mode,
        max_sessions=_positive_int(raw, "max_sessions", 256),
        session_ttl_minutes=_positive_int(raw, "session_ttl_minutes", 30),
        max_keys_per_request=_positive_int(raw, "max_keys_per_request", 512),
        max_table_points=_positive_int(raw, "max_table_points", 1000),
    )


__all__ = ["CalculatorSettings", "load_settings"]
