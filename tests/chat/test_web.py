from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from code_assistant_mcp.chat.dispatcher import ToolDispatcher
from code_assistant_mcp.chat.intent import IntentResolver
from code_assistant_mcp.chat.web import DEFAULT_PORT, create_app, get_port
from tests.conftest import FakeModelClient, bug_analysis_response


def app_for(model_client: FakeModelClient, static_dir: Path | None = None) -> FastAPI:
    return create_app(
        resolver=IntentResolver(),
        dispatcher=ToolDispatcher.from_model_client(model_client=model_client),
        static_dir=static_dir,
    )


def test_health():
    response = TestClient(app_for(FakeModelClient())).get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "Code Assistant backend is running"}


@pytest.mark.parametrize("path", ["/ws", "/"])
def test_websocket_ping(path: str):
    with TestClient(app_for(FakeModelClient())).websocket_connect(path) as websocket:
        assert websocket.receive_json()["type"] == "connected"

        websocket.send_json({"type": "ping"})

        assert websocket.receive_json() == {"type": "pong"}


def test_websocket_invalid_message_keeps_connection():
    with TestClient(app_for(FakeModelClient())).websocket_connect("/ws") as websocket:
        _ = websocket.receive_json()

        websocket.send_text("{not json")
        assert websocket.receive_json()["type"] == "error"

        websocket.send_json({"type": "tools"})
        assert websocket.receive_json()["status"] == "success"


def test_websocket_binary_frames():
    with TestClient(app_for(FakeModelClient())).websocket_connect("/ws") as websocket:
        _ = websocket.receive_json()

        websocket.send_bytes(b'{"type": "ping"}')
        assert websocket.receive_json() == {"type": "pong"}

        websocket.send_bytes(b"\xff\xfe\x00bad")
        assert websocket.receive_json()["type"] == "error"

        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}


def test_websocket_detect_bugs():
    model_client = FakeModelClient(responses=[bug_analysis_response()])

    with TestClient(app_for(model_client)).websocket_connect("/ws") as websocket:
        _ = websocket.receive_json()

        websocket.send_json({"type": "message", "content": "Find bugs in this code: ```x.tostring()``` language: javascript"})

        assert websocket.receive_json()["type"] == "thinking"
        assert websocket.receive_json()["params"] == {"language": "javascript", "code": "x.tostring()"}

        response = websocket.receive_json()
        assert response["status"] == "success"
        assert response["tool"] == "detect-bugs"
        assert "project" not in response


def test_static_files(tmp_path: Path):
    (tmp_path / "index.html").write_text("<h1>Code Assistant</h1>")

    client = TestClient(app_for(FakeModelClient(), static_dir=tmp_path))

    assert client.get("/").text == "<h1>Code Assistant</h1>"
    assert client.get("/api/health").json()["status"] == "ok"


def test_get_port(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("WEB_PORT", raising=False)
    assert get_port() == DEFAULT_PORT

    monkeypatch.setenv("WEB_PORT", "4000")
    assert get_port() == 4000

    monkeypatch.setenv("PORT", "5000")
    assert get_port() == 5000
