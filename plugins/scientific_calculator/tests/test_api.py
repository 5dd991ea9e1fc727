import pytest

from app import create_app

BASE = "/api/scientific_calculator"


@pytest.fixture
def client():
    app = create_app("TestingConfig")
    return app.test_client()


def _open(client, **payload):
    resp = client.post(f"{BASE}/sessions", json=payload)
    assert resp.status_code == 201
    return resp.get_json()["data"]["session_id"]


def test_create_session_returns_display_state(client):
    resp = client.post(f"{BASE}/sessions", json={})
    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert data["result"] == "0"
    assert data["expression"] == ""
    assert data["angle_mode"] == "DEG"
    assert data["mode"] == "COMP"
    assert data["modifier"] == ""


def test_press_keys_evaluates(client):
    session_id = _open(client)
    resp = client.post(f"{BASE}/sessions/{session_id}/keys", json={"keys": ["sin", "9", "0", ")", "="]})
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["expression"] == "sin(90)"
    assert data["result"] == "1"


def test_state_persists_between_requests(client):
    session_id = _open(client)
    client.post(f"{BASE}/sessions/{session_id}/keys", json={"keys": ["2", "+", "3", "="]})
    client.post(f"{BASE}/sessions/{session_id}/keys", json={"keys": ["+", "1", "="]})
    data = client.get(f"{BASE}/sessions/{session_id}").get_json()["data"]
    assert data["expression"] == "Ans+1"
    assert data["result"] == "6"


def test_syntax_error_is_a_display_state(client):
    session_id = _open(client)
    resp = client.post(f"{BASE}/sessions/{session_id}/keys", json={"keys": ["(", "="]})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["result"] == "Syntax ERROR"


def test_unknown_key_is_rejected(client):
    session_id = _open(client)
    resp = client.post(f"{BASE}/sessions/{session_id}/keys", json={"keys": ["1", "exec"]})
    assert resp.status_code == 400
    payload = resp.get_json()
    assert payload["success"] is False
    assert payload["error"]["code"] == "sci_calc.invalid_key"


def test_invalid_payload_is_rejected(client):
    session_id = _open(client)
    resp = client.post(f"{BASE}/sessions/{session_id}/keys", json={"keys": "123"})
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "sci_calc.invalid_request"


def test_unknown_session(client):
    resp = client.get(f"{BASE}/sessions/missing")
    assert resp.status_code == 404
    assert resp.get_json()["error"]["code"] == "sci_calc.unknown_session"


def test_delete_session(client):
    session_id = _open(client)
    resp = client.delete(f"{BASE}/sessions/{session_id}")
    assert resp.get_json()["data"]["deleted"] is True
    assert client.get(f"{BASE}/sessions/{session_id}").status_code == 404
    assert client.delete(f"{BASE}/sessions/{session_id}").status_code == 404


def test_angle_mode_and_mode_endpoints(client):
    session_id = _open(client, angle_mode="RAD")
    resp = client.post(f"{BASE}/sessions/{session_id}/angle_mode", json={"angle_mode": "GRA"})
    assert resp.get_json()["data"]["angle_mode"] == "GRA"
    client.post(f"{BASE}/sessions/{session_id}/keys", json={"keys": ["4"]})
    resp = client.post(f"{BASE}/sessions/{session_id}/mode", json={"mode": "EQN"})
    data = resp.get_json()["data"]
    assert data["mode"] == "EQN"
    assert data["expression"] == ""
    bad = client.post(f"{BASE}/sessions/{session_id}/mode", json={"mode": "GRAPH"})
    assert bad.status_code == 400


def test_reset_keeps_memory(client):
    session_id = _open(client)
    client.post(f"{BASE}/sessions/{session_id}/keys", json={"keys": ["5", "=", "sto", "9"]})
    resp = client.post(f"{BASE}/sessions/{session_id}/reset")
    assert resp.get_json()["data"]["result"] == "0"
    memory = client.get(f"{BASE}/sessions/{session_id}/memory").get_json()["data"]["memory"]
    assert memory["C"] == 5.0
    assert memory["Ans"] == "5"


def test_save_matrix_and_vector(client):
    session_id = _open(client)
    resp = client.post(
        f"{BASE}/sessions/{session_id}/memory/matrix",
        json={"name": "A", "rows": [[1, 2], [3, 4]]},
    )
    data = resp.get_json()["data"]
    assert data["saved"] == "MatA"
    assert data["result"] == "MatA Saved"
    resp = client.post(f"{BASE}/sessions/{session_id}/memory/vector", json={"name": "B", "values": [1, 2]})
    assert resp.get_json()["data"]["result"] == "VctB Saved"
    memory = client.get(f"{BASE}/sessions/{session_id}/memory").get_json()["data"]["memory"]
    assert memory["MatA"] == [[1.0, 2.0], [3.0, 4.0]]
    assert memory["VctB"] == [[1.0, 2.0]]


def test_ragged_matrix_is_rejected(client):
    session_id = _open(client)
    resp = client.post(
        f"{BASE}/sessions/{session_id}/memory/matrix",
        json={"name": "A", "rows": [[1, 2], [3]]},
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "sci_calc.invalid_matrix"


def test_solve_endpoint(client):
    resp = client.post(f"{BASE}/equations/solve", json={"type": "quad", "coefficients": {"a": 1, "b": -3, "c": 2}})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["solutions"] == {"X1": 2.0, "X2": 1.0}
    bad = client.post(
        f"{BASE}/equations/solve",
        json={"type": "2var", "coefficients": {"a1": 1, "b1": 1, "c1": 1, "a2": 1, "b2": 1, "c2": 1}},
    )
    assert bad.status_code == 400
    assert bad.get_json()["error"]["message"] == "Infinite/No Sol"


def test_table_rejects_code_in_text_literals(client):
    resp = client.post(
        f"{BASE}/table",
        json={
            "expression": "sympify('_'+'_import_'+'_(\"os\").getpid()')+0*X",
            "start": 0,
            "stop": 0,
            "step": 1,
        },
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "sci_calc.invalid_table"


def test_table_endpoint(client):
    resp = client.post(f"{BASE}/table", json={"expression": "x^2", "start": 0, "stop": 2, "step": 1})
    assert resp.status_code == 200
    assert [row["y"] for row in resp.get_json()["data"]["rows"]] == [0.0, 1.0, 4.0]
    bad = client.post(f"{BASE}/table", json={"expression": "x", "start": 0, "stop": 2, "step": 0})
    assert bad.status_code == 400


def test_session_limit_from_settings():
    app = create_app("TestingConfig")
    app.config["PLUGIN_SETTINGS"] = {"scientific_calculator": {"max_sessions": 1}}
    client = app.test_client()
    assert client.post(f"{BASE}/sessions", json={}).status_code == 201
    resp = client.post(f"{BASE}/sessions", json={})
    assert resp.status_code == 429
    assert resp.get_json()["error"]["code"] == "sci_calc.session_limit"


def test_key_batch_limit_from_settings():
    app = create_app("TestingConfig")
    app.config["PLUGIN_SETTINGS"] = {"scientific_calculator": {"max_keys_per_request": 2}}
    client = app.test_client()
    session_id = _open(client)
    resp = client.post(f"{BASE}/sessions/{session_id}/keys", json={"keys": ["1", "+", "1"]})
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "sci_calc.too_many_keys"
