import json
import os
import sys
import httpx
import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path for `import metafield_proxy`
_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _ROOT not in sys.path:
    sys.path.insert(0, _ROOT)

from metafield_proxy.main import create_app
from metafield_proxy.api import deps
from metafield_proxy.core.config import Settings
from metafield_proxy.services.bigcommerce_service import BigCommerceService

STORE = "/stores/abc123"

_BASE_SETTINGS = {
    "bc_store_hash": "abc123",
    "bc_admin_api_token": "admin-token",
    "bc_oauth_client_id": None,
    "bc_api_base_url": "https://api.bigcommerce.com/stores",
    "bc_sf_token": "sf-token-123456789",
    "bc_sf_graphql_endpoint": None,
    "bc_channel_id": None,
    "allowed_origins": "",
    "proxy_api_key": None,
    "enable_diagnostics": False,
    "debug": False,
}


def build_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **{**_BASE_SETTINGS, **overrides})


class FakeBigCommerce:
    """Routing table standing in for BigCommerce; records every outbound request."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, status=200, json=None, text=None, handler=None):
        self.routes[(method, path)] = handler or (status, json, text)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"status": 404, "title": "Not Found"})
        if callable(route):
            return route(request)
        status, payload, text = route
        if text is not None:
            return httpx.Response(status, text=text)
        return httpx.Response(status, json=payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def last_json(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def upstream():
    return FakeBigCommerce()


@pytest.fixture()
def make_client(upstream):
    def _make(raise_server_exceptions=True, **overrides):
        settings = build_settings(**overrides)
        app = create_app(settings)
        app.dependency_overrides[deps.get_bigcommerce_service] = (
            lambda: BigCommerceService(settings, transport=upstream.transport)
        )
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)
    return _make


@pytest.fixture()
def client(make_client):
    return make_client()
