"""Tests for the public-facing gateway."""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from canary.exceptions import UpstreamError
from canary.main import create_app, create_gateway_app
from canary.services import UpstreamRelay

MAC = "AA:BB:CC:DD:EE:FF"


class RecordingUpstream:
    """Mock internal API that records what reached it."""

    def __init__(self, status_code=200, json_body=None, text=None, error=None):
        self.status_code = status_code
        self.json_body = json_body
        self.text = text
        self.error = error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error:
            raise self.error
        if self.json_body is not None:
            return httpx.Response(self.status_code, json=self.json_body)
        return httpx.Response(self.status_code, text=self.text or "")


@pytest.fixture()
def gateway(settings):
    def build(upstream):
        return TestClient(create_gateway_app(settings, transport=httpx.MockTransport(upstream)))
    return build


class TestPerformanceRelay:
    def test_body_forwarded_and_response_mirrored(self, gateway, report_payload):
        upstream = RecordingUpstream(200, text="Data received")
        payload = report_payload(MAC, "k" * 32)

        with gateway(upstream) as client:
            response = client.post("/canaryPerformanceFromPi", json=payload)

        assert response.status_code == 200
        assert response.text == "Data received"
        [request] = upstream.requests
        assert request.method == "POST"
        assert request.url.path == "/api/canaryPerformanceFromPi"
        assert json.loads(request.content) == payload

    @pytest.mark.parametrize("status_code", [400, 401, 500])
    def test_upstream_failures_pass_through(self, gateway, report_payload, status_code):
        upstream = RecordingUpstream(status_code, json_body={"detail": "Invalid mac_address or authenticator_key"})

        with gateway(upstream) as client:
            response = client.post("/canaryPerformanceFromPi", json=report_payload(MAC, "wrong"))

        assert response.status_code == status_code
        assert response.json() == {"detail": "Invalid mac_address or authenticator_key"}

    @pytest.mark.parametrize("error", [
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("timed out"),
    ])
    def test_transport_failure_is_500(self, gateway, report_payload, error):
        with gateway(RecordingUpstream(error=error)) as client:
            response = client.post("/canaryPerformanceFromPi", json=report_payload(MAC, "k"))

        assert response.status_code == 500
        assert "refused" not in response.text


class TestConfigRelay:
    def test_query_forwarded(self, gateway):
        config = {"destinations": ["https://a.example"], "interval_minutes": 5, "authenticator_key": None, "update_script": 0}
        upstream = RecordingUpstream(200, json_body=config)

        with gateway(upstream) as client:
            response = client.get("/canaryConfig", params={"mac_address": MAC})

        assert response.status_code == 200
        assert response.json() == config
        [request] = upstream.requests
        assert request.url.path == "/api/canaryConfig"
        assert request.url.params["mac_address"] == MAC

    def test_not_found_passes_through(self, gateway):
        upstream = RecordingUpstream(404, json_body={"detail": "Device not found for the given MAC address"})

        with gateway(upstream) as client:
            response = client.get("/canaryConfig", params={"mac_address": MAC})

        assert response.status_code == 404

    def test_missing_mac_rejected_locally(self, gateway):
        upstream = RecordingUpstream(200, json_body={})

        with gateway(upstream) as client:
            response = client.get("/canaryConfig")

        assert response.status_code == 400
        assert upstream.requests == []

    def test_transport_failure_is_500(self, gateway):
        with gateway(RecordingUpstream(error=httpx.ConnectError("down"))) as client:
            response = client.get("/canaryConfig", params={"mac_address": MAC})
        assert response.status_code == 500


class TestResetFlagRelay:
    def test_forwarded(self, gateway):
        upstream = RecordingUpstream(200, json_body={"message": "update_script reset successfully"})

        with gateway(upstream) as client:
            response = client.post("/canaryConfig/resetFlag", json={"mac_address": MAC, "update_script": 0})

        assert response.status_code == 200
        [request] = upstream.requests
        assert request.url.path == "/api/canaryConfig/resetFlag"
        assert json.loads(request.content) == {"mac_address": MAC, "update_script": 0}

    def test_missing_mac_rejected_locally(self, gateway):
        upstream = RecordingUpstream(200, json_body={})

        with gateway(upstream) as client:
            response = client.post("/canaryConfig/resetFlag", json={"update_script": 0})

        assert response.status_code == 400
        assert upstream.requests == []


class TestCanaryScript:
    def test_download(self, gateway, settings):
        with open(settings.get_update_script_path(), "wb") as f:
            f.write(b"PK\x03\x04bundle")

        with gateway(RecordingUpstream()) as client:
            response = client.get("/getCanaryScript")

        assert response.status_code == 200
        assert response.content == b"PK\x03\x04bundle"
        assert "RaspberryCode.zip" in response.headers["content-disposition"]

    def test_missing_file_is_500(self, gateway):
        with gateway(RecordingUpstream()) as client:
            response = client.get("/getCanaryScript")
        assert response.status_code == 500


def test_gateway_does_not_expose_admin_routes(gateway):
    with gateway(RecordingUpstream()) as client:
        assert client.get("/api/canaryRegister").status_code == 404
        assert client.get("/health").json() == {"status": "healthy", "mode": "gateway"}


def test_end_to_end_through_gateway(settings, report_payload):
    """Device traffic through the gateway sees the same statuses as the internal API."""
    internal = create_app(settings)
    with TestClient(internal) as admin:
        device_id = admin.post("/api/registerCanary", json={"device_name": "pi-1", "mac_address": MAC}).json()["id"]
        key = admin.put(f"/api/canaryRegister/approve/{device_id}").json()["auth_key"]

    gateway_app = create_gateway_app(settings, transport=httpx.ASGITransport(app=internal))
    with TestClient(gateway_app) as device:
        config = device.get("/canaryConfig", params={"mac_address": MAC})
        assert config.status_code == 200
        assert config.json()["authenticator_key"] == key

        assert device.post("/canaryPerformanceFromPi", json=report_payload(MAC, key)).status_code == 200
        assert device.post("/canaryPerformanceFromPi", json=report_payload(MAC, "wrong")).status_code == 401
        assert device.get("/canaryConfig", params={"mac_address": "00:00:00:00:00:00"}).status_code == 404
        # Release pooled connections on the loop that opened them
        device.portal.call(internal.state.db.close)

    with TestClient(internal) as admin:
        history = admin.get(f"/api/canaryPerformance/allByMac/{MAC}").json()
    assert len(history) == 1


class TestUpstreamRelay:
    @pytest.mark.asyncio
    async def test_only_safe_headers_forwarded(self):
        upstream = RecordingUpstream(200, text="ok")
        relay = UpstreamRelay("http://internal.test/", transport=httpx.MockTransport(upstream))
        try:
            result = await relay.forward(
                "POST",
                "/api/canaryPerformanceFromPi",
                content=b"{}",
                headers={"Content-Type": "application/json", "Host": "public.example", "Cookie": "x=1"},
            )
        finally:
            await relay.close()

        assert result.status_code == 200
        assert result.content == b"ok"
        [request] = upstream.requests
        assert request.headers["content-type"] == "application/json"
        assert request.headers["host"] == "internal.test"
        assert "cookie" not in request.headers

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        relay = UpstreamRelay(
            "http://internal.test",
            transport=httpx.MockTransport(RecordingUpstream(error=httpx.ConnectTimeout("slow"))),
        )
        try:
            with pytest.raises(UpstreamError):
                await relay.forward("GET", "/api/canaryConfig", params={"mac_address": MAC})
        finally:
            await relay.close()


def test_config_relay_keeps_full_query(gateway):
    upstream = RecordingUpstream(200, json_body={})

    with gateway(upstream) as client:
        client.get("/canaryConfig", params={"mac_address": MAC, "firmware": "1.4.2"})

    [request] = upstream.requests
    assert request.url.params["mac_address"] == MAC
    assert request.url.params["firmware"] == "1.4.2"
