from app import create_app


def test_home_lists_plugins():
    app = create_app("TestingConfig")
    client = app.test_client()
    response = client.get("/")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["success"] is True
    manifests = payload["data"]["plugins"]
    titles = [item["title"] for item in manifests]
    assert "Scientific Calculator" in titles
    calculator = next(item for item in manifests if item["blueprint"] == "scientific_calculator")
    assert calculator["api"] == "/api/scientific_calculator"
    assert payload["data"]["site"]["title"]
    assert response.headers.get("Content-Security-Policy")
    assert response.headers.get("X-Request-ID")


def test_unknown_route_uses_error_envelope():
    client = create_app("TestingConfig").test_client()
    response = client.get("/does-not-exist")
    assert response.status_code == 404
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"]["code"] == "not_found"
