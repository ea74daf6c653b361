import sys

import pytest
from fastapi.testclient import TestClient

from gemini_mcp.api import deps
from gemini_mcp.main import create_app
from stubs import emit_line


@pytest.fixture
def client(make_stub, make_config) -> TestClient:
    stub = make_stub(
        emit_line({"type": "init", "session_id": "http-session"})
        + emit_line({"type": "message", "role": "assistant", "content": "pong"})
    )
    return TestClient(create_app(make_config(stub, additional_args=("--yolo",))))


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["gemini_binary"].endswith("gemini-stub")


def test_health_reports_missing_binary(make_config, tmp_path) -> None:
    app = create_app(make_config(str(tmp_path / "no-such-gemini")))

    body = TestClient(app).get("/health").json()

    assert body["status"] == "degraded"


def test_health_before_config_is_loaded() -> None:
    app = create_app()

    body = TestClient(app).get("/health").json()

    assert body["status"] == "starting"
    assert body["gemini_binary"] is None


def test_status_reports_config(client: TestClient) -> None:
    body = client.get("/status").json()

    assert body["invocations"]["active"] == 0
    assert body["gemini"]["additional_args"] == 1
    assert body["gemini"]["timeout_secs"] == 10.0


def test_token_is_required_when_configured(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(deps, "GEMINI_MCP_TOKEN", "secret")

    assert client.get("/health").status_code == 401
    assert client.get("/health", headers={"X-Gemini-MCP-Token": "secret"}).status_code == 200


def test_validation_failure_over_http(client: TestClient) -> None:
    response = client.post("/gemini", json={"prompt": ""})

    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "prompt required"}


@pytest.mark.skipif(sys.platform == "win32", reason="stub CLIs are POSIX scripts")
def test_gemini_call_over_http(client: TestClient) -> None:
    response = client.post("/gemini", json={"prompt": "ping", "unused": True})

    assert response.json() == {
        "success": True,
        "SESSION_ID": "http-session",
        "message": "pong",
    }
    assert client.get("/status").json()["invocations"]["completed"] >= 1


def test_uninitialized_app_reports_unavailable() -> None:
    app = create_app()

    response = TestClient(app).post("/gemini", json={"prompt": "x"})

    assert response.status_code == 503
