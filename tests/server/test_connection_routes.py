from __future__ import annotations

from starlette.testclient import TestClient

from tests.helpers import MINIMAL_CONFIG, SAMPLE_CONFIG


def test_health_reports_connection_summary(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "connected": False, "subscribers": 0}


def test_generic_request_route_dispatches_gateway_messages(client: TestClient) -> None:
    saved = client.post("/v1/requests", json={"action": "saveConfig", "config": {"raw": MINIMAL_CONFIG}})
    status = client.post("/v1/requests", json={"action": "getStatus"})

    assert saved.json() == {"success": True}
    assert status.json() == {"success": True, "connected": False, "config": MINIMAL_CONFIG}


def test_generic_request_route_answers_bad_messages_in_band(client: TestClient) -> None:
    response = client.post("/v1/requests", json={"action": "selfDestruct"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["kind"] == "invalid_request"
    assert body["error"].startswith("Invalid request: ")


def test_per_action_routes_cover_the_connection_lifecycle(client: TestClient) -> None:
    assert client.get("/v1/config").json() == {"success": True, "config": None}

    assert client.put("/v1/config", json={"config": {"raw": SAMPLE_CONFIG}}).json() == {"success": True}
    assert client.get("/v1/config").json() == {"success": True, "config": SAMPLE_CONFIG}

    assert client.post("/v1/connect", json={"config": {"raw": SAMPLE_CONFIG}}).json() == {"success": True}
    assert client.get("/v1/status").json() == {"success": True, "connected": True, "config": SAMPLE_CONFIG}
    assert client.get("/health").json()["connected"] is True

    assert client.post("/v1/disconnect").json() == {"success": True}
    assert client.get("/v1/status").json()["connected"] is False


def test_connect_route_reports_parse_failures(client: TestClient) -> None:
    response = client.post("/v1/connect", json={"config": {"raw": "proto udp\n"}})

    assert response.status_code == 200
    assert response.json() == {
        "success": False,
        "error": "No remote servers found in config",
        "kind": "no_remote_found",
    }
    assert client.get("/v1/status").json()["connected"] is False


def test_connect_route_without_config_is_an_invalid_request(client: TestClient) -> None:
    body = client.post("/v1/connect").json()

    assert body["success"] is False
    assert body["kind"] == "invalid_request"


def test_config_details_describe_active_config_and_proxy(client: TestClient) -> None:
    assert client.get("/v1/config/details").json() == {
        "configured": False,
        "connected": False,
        "details": None,
        "proxy": None,
    }

    client.post("/v1/connect", json={"config": {"raw": SAMPLE_CONFIG}})
    body = client.get("/v1/config/details").json()

    assert body["configured"] is True
    assert body["connected"] is True
    assert body["details"]["server"] == "vpn.example.com:1194 (udp)"
    assert body["details"]["cipher"] == "AES-256-GCM"
    assert body["details"]["auth"] == "Username/Password"
    assert body["proxy"] == {
        "scheme": "socks5",
        "host": "vpn.example.com",
        "port": 1194,
        "bypass": ["localhost", "127.0.0.1"],
    }


def test_responses_carry_request_ids(client: TestClient) -> None:
    generated = client.get("/health")
    echoed = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert len(generated.headers["X-Request-ID"]) == 16
    assert echoed.headers["X-Request-ID"] == "req-123"
