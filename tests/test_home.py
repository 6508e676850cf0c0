from app import create_app


def test_home_lists_plugins():
    app = create_app("TestingConfig")
    client = app.test_client()
    response = client.get("/")
    assert response.status_code == 200
    data = response.get_json()
    assert data["success"] is True
    titles = [item["title"] for item in data["data"]["plugins"]]
    assert "Expression Evaluator" in titles
    assert response.headers.get("Content-Security-Policy")
    assert response.headers.get("X-Request-ID")


def test_plugin_summary_comes_from_config():
    app = create_app("TestingConfig")
    manifests = {item["blueprint"]: item for item in app.config["PLUGIN_MANIFESTS"]}
    expected = app.config["PLUGIN_SETTINGS"]["expression_evaluator"]["summary"]
    assert manifests["expression_evaluator"]["summary"] == expected


def test_unknown_route_returns_json_envelope():
    client = create_app("TestingConfig").test_client()
    response = client.get("/does-not-exist")
    assert response.status_code == 404
    data = response.get_json()
    assert data["success"] is False
    assert data["error"]["code"] == "not_found"
