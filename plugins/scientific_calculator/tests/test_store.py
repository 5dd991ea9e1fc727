from datetime import timedelta

import pytest

from plugins.scientific_calculator.core import (
    CalculatorSession,
    SessionLimitError,
    SessionNotFoundError,
    SessionStore,
)


def test_create_get_delete():
    store = SessionStore()
    session = CalculatorSession()
    session_id = store.create(session)
    assert store.get(session_id) is session
    assert len(store) == 1
    store.delete(session_id)
    with pytest.raises(SessionNotFoundError):
        store.get(session_id)


def test_delete_unknown_session():
    with pytest.raises(SessionNotFoundError):
        SessionStore().delete("missing")


def test_session_limit():
    store = SessionStore(max_sessions=1)
    store.create(CalculatorSession())
    with pytest.raises(SessionLimitError):
        store.create(CalculatorSession())


def test_expired_sessions_are_purged():
    store = SessionStore(ttl=timedelta(seconds=-1))
    session_id = store.create(CalculatorSession())
    with pytest.raises(SessionNotFoundError):
        store.get(session_id)


def test_sessions_are_independent():
    store = SessionStore()
    first = store.get(store.create(CalculatorSession()))
    second = store.get(store.create(CalculatorSession(angle_mode="RAD")))
    first.handle_keys(["9", "=", "sto", "7"])
    assert first.memory.recall("A") == 9.0
    assert second.memory.recall("A") == 0
