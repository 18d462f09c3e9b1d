from __future__ import annotations

from starlette.testclient import TestClient

from tests.helpers import MINIMAL_CONFIG


def test_websocket_receives_init_and_answers_requests(client: TestClient) -> None:
    with client.websocket_connect("/v1/channel") as ws:
        assert ws.receive_json() == {"type": "init", "connected": False, "config": None}

        ws.send_json({"id": "r1", "action": "connect", "config": {"raw": MINIMAL_CONFIG}})
        assert ws.receive_json() == {"type": "status", "connected": True, "config": MINIMAL_CONFIG}
        assert ws.receive_json() == {"type": "response", "success": True, "id": "r1"}

        ws.send_json({"action": "getStatus"})
        assert ws.receive_json() == {
            "type": "response",
            "success": True,
            "connected": True,
            "config": MINIMAL_CONFIG,
        }


def test_websocket_reports_bad_requests_without_closing(client: TestClient) -> None:
    with client.websocket_connect("/v1/channel") as ws:
        ws.receive_json()

        ws.send_text("{oops")
        malformed = ws.receive_json()
        ws.send_json({"id": 2, "action": "connect", "config": {"raw": "proto udp\n"}})
        rejected = ws.receive_json()

    assert malformed["type"] == "response"
    assert malformed["success"] is False
    assert malformed["kind"] == "invalid_request"
    assert rejected == {
        "type": "response",
        "success": False,
        "error": "No remote servers found in config",
        "kind": "no_remote_found",
        "id": 2,
    }


def test_websocket_sees_changes_made_over_http(client: TestClient) -> None:
    with client.websocket_connect("/v1/channel") as ws:
        ws.receive_json()
        assert client.get("/health").json()["subscribers"] == 1

        client.put("/v1/config", json={"config": {"raw": MINIMAL_CONFIG}})

        assert ws.receive_json() == {"type": "status", "connected": False, "config": MINIMAL_CONFIG}

    assert client.get("/health").json()["subscribers"] == 0
