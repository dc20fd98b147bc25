"""
Unit tests for the local edge service.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from shared.config import EdgeAuthSettings
from shared.test_helpers import APEX, PARAMETER_NAME
from service_edge_auth.app.main import GATE_STATE_HEADER, EdgeAuthService


def _origin_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/app/app.js":
        return httpx.Response(200, text="console.log(1)", headers={"content-type": "application/javascript"})
    if request.url.path == "/_errors/404.html":
        return httpx.Response(200, text="<h1>missing</h1>", headers={"content-type": "text/html"})
    return httpx.Response(403, text="AccessDenied")


class TestEdgeAuthService:
    """Test cases for EdgeAuthService."""

    @pytest.fixture
    def service(self, settings, gate):
        return EdgeAuthService(settings=settings, gate=gate)

    @pytest.fixture
    def client(self, service):
        return TestClient(service.app, base_url="http://app.example.com")

    @pytest.fixture
    def proxy_client(self, gate):
        settings = EdgeAuthSettings(apex_domain=APEX, parameter_name=PARAMETER_NAME, origin_url="http://origin.local")
        origin = httpx.AsyncClient(transport=httpx.MockTransport(_origin_handler))
        service = EdgeAuthService(settings=settings, gate=gate, origin_client=origin)
        return TestClient(service.app, base_url="http://app.example.com")

    def test_health_endpoint(self, client):
        response = client.get("/_edge/health")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "edge_auth"
        assert data["status"] == "ok"
        assert data["dependencies"] == {"config": "not_loaded", "origin": "none"}

    def test_metrics_endpoint(self, client):
        response = client.get("/_edge/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text

    def test_unauthenticated_request_redirects_to_login(self, client):
        response = client.get("/dashboard", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"].startswith("https://auth.example.com/login?")
        assert response.headers["cache-control"] == "no-store"
        assert response.headers[GATE_STATE_HEADER] == "redirect_to_login"

    def test_authenticated_request_reports_origin_uri(self, client, valid_token):
        response = client.get("/app.js?v=2", headers={"cookie": f"hosting_auth={valid_token}"})

        assert response.status_code == 200
        assert response.json() == {"origin_uri": "/app/app.js", "querystring": "v=2"}
        assert response.headers[GATE_STATE_HEADER] == "route"

    def test_callback_sets_cookie(self, client):
        response = client.get("/_auth/callback?code=abc", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com/"
        cookies = response.headers.get_list("set-cookie")
        assert len(cookies) == 1
        assert cookies[0].startswith("hosting_auth=header.payload.signature; Domain=.example.com;")

    def test_config_error_renders_page(self, settings, gate):
        gate.config_loader.store.values.clear()
        client = TestClient(EdgeAuthService(settings=settings, gate=gate).app, base_url="http://app.example.com")

        response = client.get("/")

        assert response.status_code == 500
        assert "text/html" in response.headers["content-type"]
        assert response.headers[GATE_STATE_HEADER] == "config_error"

    def test_proxies_to_origin(self, proxy_client, valid_token):
        response = proxy_client.get("/app.js", headers={"cookie": f"hosting_auth={valid_token}"})

        assert response.status_code == 200
        assert response.text == "console.log(1)"

    def test_missing_origin_object_serves_error_page(self, proxy_client, valid_token):
        response = proxy_client.get("/missing.css", headers={"cookie": f"hosting_auth={valid_token}"})

        assert response.status_code == 404
        assert response.text == "<h1>missing</h1>"

    def test_unreachable_origin_is_bad_gateway(self, gate, valid_token):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        settings = EdgeAuthSettings(apex_domain=APEX, parameter_name=PARAMETER_NAME, origin_url="http://origin.local")
        origin = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
        client = TestClient(
            EdgeAuthService(settings=settings, gate=gate, origin_client=origin).app,
            base_url="http://app.example.com",
        )

        response = client.get("/app.js", headers={"cookie": f"hosting_auth={valid_token}"})

        assert response.status_code == 502
        assert response.json()["code"] == "EXTERNAL_SERVICE_ERROR"
