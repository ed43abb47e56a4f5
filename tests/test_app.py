"""End-to-end tests through the FastAPI app and a real WebSocket."""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from plan_relay.config import RelaySettings
from plan_relay.transport import create_app


def build_client(generator=None, **settings) -> TestClient:
    app = create_app(RelaySettings(**settings), plan_generator_factory=lambda s: generator)
    return TestClient(app)


class TestWebSocket:
    """Tests for the /ws endpoint."""

    def test_analyze_task_round_trip(self, generator):
        with build_client(generator) as client:
            with client.websocket_connect("/ws") as ws:
                greeting = ws.receive_json()
                assert greeting["type"] == "CONNECTION_ESTABLISHED"
                assert greeting["clientId"]

                ws.send_json({"type": "ANALYZE_TASK", "task": "open example.com", "taskId": "t-1"})
                reply = ws.receive_json()

        assert reply == {
            "type": "TASK_PLAN",
            "taskId": "t-1",
            "plan": {"steps": [{"action": "navigate", "params": {"url": "https://example.com"}}]},
        }
        assert generator.calls == ["open example.com"]

    def test_bad_frames_do_not_close_connection(self, generator):
        with build_client(generator) as client:
            with client.websocket_connect("/ws") as ws:
                ws.receive_json()

                ws.send_json({"type": "BOGUS"})
                assert ws.receive_json() == {"type": "ERROR", "error": "unknown message type"}

                ws.send_text("not json")
                assert ws.receive_json() == {"type": "ERROR", "error": "failed to process message"}

                ws.send_bytes(b'{"type": "INIT", "sessionId": "s-1"}')
                assert ws.receive_json() == {"type": "SESSION_INIT", "sessionId": "s-1"}

    @pytest.mark.parametrize("data", [
        '{"type": "INIT", "n": ' + "1" * 5000 + "}",
        "[" * 100000,
    ], ids=["huge-integer", "deep-nesting"])
    def test_undecodable_frame_keeps_connection(self, generator, data):
        with build_client(generator) as client:
            with client.websocket_connect("/ws") as ws:
                ws.receive_json()

                ws.send_text(data)
                assert ws.receive_json() == {"type": "ERROR", "error": "failed to process message"}
                assert client.get("/health").json()["connections"] == 1

                ws.send_json({"type": "INIT", "sessionId": "s-2"})
                assert ws.receive_json() == {"type": "SESSION_INIT", "sessionId": "s-2"}

    def test_frame_processing_failure_keeps_connection(self, generator, monkeypatch):
        with build_client(generator) as client:
            protocol = client.app.state.protocol
            handle_frame = protocol.handle_frame
            calls = []

            async def flaky_handle_frame(conn_id, data):
                calls.append(data)
                if len(calls) == 1:
                    raise RuntimeError("boom")
                await handle_frame(conn_id, data)

            monkeypatch.setattr(protocol, "handle_frame", flaky_handle_frame)

            with client.websocket_connect("/ws") as ws:
                ws.receive_json()

                ws.send_json({"type": "INIT", "sessionId": "lost"})
                ws.send_json({"type": "INIT", "sessionId": "s-3"})
                assert ws.receive_json() == {"type": "SESSION_INIT", "sessionId": "s-3"}
                assert client.get("/health").json()["connections"] == 1

    def test_degraded_mode(self):
        with build_client(None) as client:
            assert client.get("/health").json()["status"] == "degraded"

            with client.websocket_connect("/ws") as ws:
                ws.receive_json()
                ws.send_json({"type": "EXECUTE_COMMAND", "command": "search cats", "taskId": "t-2"})
                assert ws.receive_json() == {
                    "type": "ERROR",
                    "error": "service unavailable",
                    "taskId": "t-2",
                }

    def test_rejected_origin(self, generator):
        with build_client(generator, allowed_origins=["chrome-extension://abc"]) as client:
            with pytest.raises(WebSocketDisconnect):
                with client.websocket_connect("/ws", headers={"origin": "https://evil.example"}) as ws:
                    ws.receive_json()
            assert client.get("/health").json()["connections"] == 0

            with client.websocket_connect("/ws", headers={"origin": "chrome-extension://abc"}) as ws:
                assert ws.receive_json()["type"] == "CONNECTION_ESTABLISHED"


class TestHealth:
    """Tests for /health."""

    def test_counts_while_connected(self, generator):
        with build_client(generator) as client:
            assert client.get("/health").json() == {
                "status": "ok",
                "planner": "available",
                "connections": 0,
                "sessions": 0,
                "inflight_plans": 0,
            }

            with client.websocket_connect("/ws") as ws:
                ws.receive_json()
                ws.send_json({"type": "INIT"})
                ws.receive_json()

                health = client.get("/health").json()
                assert health["connections"] == 1
                assert health["sessions"] == 1

    def test_apps_are_independent(self, generator):
        with build_client(generator) as first, build_client(generator) as second:
            with first.websocket_connect("/ws") as ws:
                ws.receive_json()
                assert first.get("/health").json()["connections"] == 1
                assert second.get("/health").json()["connections"] == 0
