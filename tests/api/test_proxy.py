"""
Tests for the /api pass-through proxy.
"""

import json

import httpx
import pytest

from increase_demo.api.proxy import get_proxy_client
from increase_demo.main import app


@pytest.fixture
def upstream():
    """A recording stand-in for the sandbox, plus the client wired to it."""
    received = []
    state = {"fail": False}

    def handler(request):
        if state["fail"]:
            raise httpx.ConnectError("connection refused")
        received.append(request)
        return httpx.Response(
            201,
            json={"id": "account_1"},
            headers={"x-request-id": "req_1", "connection": "keep-alive"},
        )

    async def override_get_proxy_client():
        async with httpx.AsyncClient(
            base_url="https://sandbox.increase.test",
            transport=httpx.MockTransport(handler),
        ) as proxy_client:
            yield proxy_client

    app.dependency_overrides[get_proxy_client] = override_get_proxy_client
    yield received, state
    app.dependency_overrides.pop(get_proxy_client, None)


class TestProxy:

    def test_rewrites_path_and_keeps_query(self, client, upstream):
        received, _ = upstream
        client.get("/api/accounts?limit=5&status=open")

        assert received[0].method == "GET"
        assert received[0].url.path == "/accounts"
        assert received[0].url.params["limit"] == "5"
        assert received[0].url.params["status"] == "open"

    def test_forwards_body_and_authorization(self, client, upstream):
        received, _ = upstream
        client.post(
            "/api/accounts",
            json={"name": "Operating Account"},
            headers={"Authorization": "Bearer sandbox_key"},
        )

        assert received[0].headers["authorization"] == "Bearer sandbox_key"
        assert json.loads(received[0].content) == {"name": "Operating Account"}

    def test_strips_browser_headers(self, client, upstream):
        received, _ = upstream
        client.get("/api/accounts", headers={
            "Origin": "http://localhost:3000",
            "Referer": "http://localhost:3000/banking",
            "Sec-Fetch-Site": "same-origin",
            "Sec-Ch-Ua-Platform": "macOS",
            "X-Custom": "kept",
        })

        headers = received[0].headers
        assert "origin" not in headers
        assert "referer" not in headers
        assert "sec-fetch-site" not in headers
        assert "sec-ch-ua-platform" not in headers
        assert headers["x-custom"] == "kept"
        assert headers["host"] == "sandbox.increase.test"

    def test_returns_upstream_response(self, client, upstream):
        response = client.patch("/api/accounts/account_1", json={"name": "Renamed"})

        assert response.status_code == 201
        assert response.json() == {"id": "account_1"}
        assert response.headers["x-request-id"] == "req_1"

    def test_unreachable_upstream_returns_502(self, client, upstream):
        _, state = upstream
        state["fail"] = True

        response = client.delete("/api/cards/card_1")

        assert response.status_code == 502
