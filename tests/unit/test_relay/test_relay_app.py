"""
Tests for the relay HTTP surface (POST /api/execute, GET /health)
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
from fastapi.testclient import TestClient

from devrate.relay.app import create_app
from tests.unit.fakes import make_relay


def _client(handler):
    relay, transport = make_relay(handler)
    return TestClient(create_app(relay)), transport


def test_health_check():
    client, _ = _client(lambda r: httpx.Response(200, json={}))
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"].lower() == "ok"


def test_execute_success_passes_upstream_body_through():
    client, _ = _client(lambda r: httpx.Response(200, json={"output": "42"}))

    response = client.post("/api/execute", json={"script": "print(42)", "language": "python3"})

    assert response.status_code == 200
    assert response.json() == {"output": "42"}


def test_execute_missing_language_is_400():
    client, transport = _client(lambda r: httpx.Response(200, json={"output": "x"}))

    response = client.post("/api/execute", json={"script": "print(1)"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing code or language in request."}
    assert transport.requests == []


def test_execute_non_json_body_is_400_not_422():
    client, transport = _client(lambda r: httpx.Response(200, json={"output": "x"}))

    response = client.post(
        "/api/execute",
        content=b"script=print(1)",
        headers={"content-type": "text/plain"},
    )

    assert response.status_code == 400
    assert "error" in response.json()
    assert transport.requests == []


def test_execute_json_array_body_is_400():
    client, _ = _client(lambda r: httpx.Response(200, json={"output": "x"}))

    response = client.post("/api/execute", json=["print(1)", "python3"])

    assert response.status_code == 400


def test_execute_upstream_failure_is_502_with_detail():
    client, _ = _client(lambda r: httpx.Response(401, text="Unauthorized Request"))

    response = client.post("/api/execute", json={"script": "print(1)", "language": "python3"})

    assert response.status_code == 502
    data = response.json()
    assert data["error"] == "Compiler Service Authentication or API Error."
    assert data["detail"] == "JDoodle returned status 401"
    assert data["jdoodleError"] == "Unauthorized Request"


def test_execute_transport_failure_is_500():
    def boom(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client, _ = _client(boom)

    response = client.post("/api/execute", json={"script": "print(1)", "language": "python3"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error while executing code."}


def test_responses_never_contain_credentials():
    client, _ = _client(lambda r: httpx.Response(403, text="forbidden"))

    response = client.post("/api/execute", json={"script": "print(1)", "language": "python3"})

    assert "test-client-secret" not in response.text
    assert "test-client-id" not in response.text


def test_shutdown_closes_relay():
    relay = MagicMock()
    relay.upstream.has_credentials = True
    relay.close = AsyncMock()

    with TestClient(create_app(relay)):
        relay.close.assert_not_awaited()

    relay.close.assert_awaited_once()


def test_startup_warns_without_credentials():
    relay = MagicMock()
    relay.upstream.has_credentials = False
    relay.close = AsyncMock()

    with patch("devrate.relay.app.logger") as mock_logger:
        with TestClient(create_app(relay)):
            pass

    events = [c.args[0] for c in mock_logger.warning.call_args_list]
    assert events == ["relay_missing_credentials"]


def test_execute_lone_surrogate_still_returns_json_500():
    client, _ = _client(lambda r: httpx.Response(200, json={"output": "x"}))

    response = client.post(
        "/api/execute",
        content=b'{"script": "print(\\"\\ud800\\")", "language": "python3"}',
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error while executing code."}
