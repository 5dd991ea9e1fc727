"""API routes for the Scientific Calculator plugin."""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from flask import Blueprint, Response, current_app, request

from common.errors import AppError, LimitAppError, NotFoundAppError, ValidationAppError
from common.logging import get_logger
from common.responses import fail, ok
from common.validation import SchemaModel, ValidationError, parse_model

from ..core import (
    CalculatorSession,
    CalculatorSettings,
    CalculatorStateError,
    EvaluationError,
    SessionLimitError,
    SessionNotFoundError,
    SessionStore,
    SolverError,
    function_table,
    load_settings,
    solve_equation,
)

logger = get_logger()

_PLUGIN_KEY = "scientific_calculator"
_STORE_EXTENSION = "scientific_calculator.sessions"

AngleModeName = Literal["DEG", "RAD", "GRA"]
ModeName = Literal["COMP", "CMPLX", "STAT", "BASE-N", "EQN", "MATRIX", "TABLE", "VECTOR"]


class SessionPayload(SchemaModel):
    angle_mode: AngleModeName | None = None
    mode: ModeName = "COMP"


class KeysPayload(SchemaModel):
    keys: list[str]


class AngleModePayload(SchemaModel):
    angle_mode: AngleModeName


class ModePayload(SchemaModel):
    mode: ModeName


class MatrixPayload(SchemaModel):
    name: Literal["A", "B", "C", "D"]
    rows: list[list[float | int]]


class VectorPayload(SchemaModel):
    name: Literal["A", "B", "C", "D"]
    values: list[float | int]


class EquationPayload(SchemaModel):
    type: Literal["quad", "cubic", "2var", "3var"]
    coefficients: dict[str, float | int]


class TablePayload(SchemaModel):
    expression: str
    start: float | int
    stop: float | int
    step: float | int


api_bp = Blueprint("scientific_calculator_api", __name__, url_prefix="/api/scientific_calculator")


def _settings() -> CalculatorSettings:
    plugin_settings = current_app.config.get("PLUGIN_SETTINGS", {}) or {}
    return load_settings(plugin_settings.get(_PLUGIN_KEY))


def _store() -> SessionStore:
    store = current_app.extensions.get(_STORE_EXTENSION)
    if store is None:
        settings = _settings()
        store = SessionStore(
            max_sessions=settings.max_sessions,
            ttl=timedelta(minutes=settings.session_ttl_minutes),
        )
        current_app.extensions[_STORE_EXTENSION] = store
    return store


def _parse(model: type[SchemaModel]) -> SchemaModel:
    raw_payload = request.get_json(silent=True) or {}
    try:
        return parse_model(model, raw_payload)
    except ValidationError as exc:
        raise ValidationAppError(
            message=str(exc),
            code="sci_calc.invalid_request",
            details={"errors": getattr(exc, "details", None)},
        ) from exc


def _session(session_id: str) -> CalculatorSession:
    try:
        return _store().get(session_id)
    except SessionNotFoundError as exc:
        raise NotFoundAppError(message="Session expired or not found", code="sci_calc.unknown_session") from exc


def _state(session_id: str, session: CalculatorSession) -> dict[str, object]:
    return {"session_id": session_id, **session.display_state().to_dict()}


@api_bp.errorhandler(AppError)
def _handle_app_error(error: AppError) -> Response:
    return fail(error)


@api_bp.post("/sessions")
def create_session() -> Response:
    payload = _parse(SessionPayload)
    settings = _settings()
    session = CalculatorSession(
        angle_mode=payload.angle_mode or settings.default_angle_mode,
        mode=payload.mode,
    )
    try:
        session_id = _store().create(session)
    except SessionLimitError as exc:
        return fail(LimitAppError(message=str(exc), code="sci_calc.session_limit"))
    logger.info("opened calculator session %s", session_id)
    return ok(_state(session_id, session), status=201)


@api_bp.get("/sessions/<session_id>")
def get_session(session_id: str) -> Response:
    session = _session(session_id)
    with session.lock:
        return ok(_state(session_id, session))


@api_bp.delete("/sessions/<session_id>")
def delete_session(session_id: str) -> Response:
    try:
        _store().delete(session_id)
    except SessionNotFoundError:
        return fail(NotFoundAppError(message="Session expired or not found", code="sci_calc.unknown_session"))
    return ok({"session_id": session_id, "deleted": True})


@api_bp.post("/sessions/<session_id>/keys")
def press_keys(session_id: str) -> Response:
    payload = _parse(KeysPayload)
    limit = _settings().max_keys_per_request
    if len(payload.keys) > limit:
        return fail(
            ValidationAppError(message=f"At most {limit} keys per request", code="sci_calc.too_many_keys")
        )
    session = _session(session_id)
    with session.lock:
        try:
            session.handle_keys(payload.keys)
        except CalculatorStateError as exc:
            return fail(ValidationAppError(message=str(exc), code="sci_calc.invalid_key"))
        return ok(_state(session_id, session))


@api_bp.post("/sessions/<session_id>/angle_mode")
def set_angle_mode(session_id: str) -> Response:
    payload = _parse(AngleModePayload)
    session = _session(session_id)
    with session.lock:
        session.set_angle_mode(payload.angle_mode)
        return ok(_state(session_id, session))


@api_bp.post("/sessions/<session_id>/mode")
def set_mode(session_id: str) -> Response:
    payload = _parse(ModePayload)
    session = _session(session_id)
    with session.lock:
        try:
            session.set_mode(payload.mode)
        except CalculatorStateError as exc:
            return fail(ValidationAppError(message=str(exc), code="sci_calc.invalid_mode"))
        return ok(_state(session_id, session))


@api_bp.post("/sessions/<session_id>/reset")
def reset_session(session_id: str) -> Response:
    session = _session(session_id)
    with session.lock:
        session.reset()
        return ok(_state(session_id, session))


@api_bp.get("/sessions/<session_id>/memory")
def read_memory(session_id: str) -> Response:
    session = _session(session_id)
    with session.lock:
        return ok({"session_id": session_id, "memory": session.memory.snapshot()})


@api_bp.post("/sessions/<session_id>/memory/matrix")
def save_matrix(session_id: str) -> Response:
    payload = _parse(MatrixPayload)
    session = _session(session_id)
    with session.lock:
        try:
            name = session.memory.store_matrix(payload.name, payload.rows)
        except EvaluationError as exc:
            return fail(ValidationAppError(message=str(exc), code="sci_calc.invalid_matrix"))
        session.result = f"{name} Saved"
        return ok({**_state(session_id, session), "saved": name})


@api_bp.post("/sessions/<session_id>/memory/vector")
def save_vector(session_id: str) -> Response:
    payload = _parse(VectorPayload)
    session = _session(session_id)
    with session.lock:
        try:
            name = session.memory.store_vector(payload.name, payload.values)
        except EvaluationError as exc:
            return fail(ValidationAppError(message=str(exc), code="sci_calc.invalid_vector"))
        session.result = f"{name} Saved"
        return ok({**_state(session_id, session), "saved": name})


@api_bp.post("/equations/solve")
def solve() -> Response:
    payload = _parse(EquationPayload)
    try:
        result = solve_equation(payload.type, payload.coefficients)
    except SolverError as exc:
        return fail(ValidationAppError(message=str(exc), code="sci_calc.unsolvable"))
    return ok(result)


@api_bp.post("/table")
def table() -> Response:
    payload = _parse(TablePayload)
    try:
        result = function_table(
            payload.expression,
            payload.start,
            payload.stop,
            payload.step,
            max_points=_settings().max_table_points,
        )
    except SolverError as exc:
        return fail(ValidationAppError(message=str(exc), code="sci_calc.invalid_table"))
    return ok(result)


blueprints = [api_bp]


__all__ = [
    "blueprints",
    "create_session",
    "delete_session",
    "get_session",
    "press_keys",
    "read_memory",
    "reset_session",
    "save_matrix",
    "save_vector",
    "set_angle_mode",
    "set_mode",
    "solve",
    "table",
]
