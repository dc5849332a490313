"""Shared fixtures — in-memory endpoint catalog, settings and a counting HTTP transport."""
import json
import logging

import httpx
import pytest

from commerce_bridge.capabilities import derive_capabilities
from commerce_bridge.config import Settings
from commerce_bridge.dataapi.client import DataAPIClient, OCAPIConfig, StaticTokenProvider
from commerce_bridge.dataapi.endpoints import EndpointRegistry
from commerce_bridge.dataapi.router import DataAPIToolRouter, HandlerContext

SEARCH_BODY = {"query": {"match_all_query": {}}, "count": 25, "start": 0}

ENV_KEYS = ["SFCC_HOSTNAME", "SFCC_CLIENT_ID", "SFCC_CLIENT_SECRET", "SFCC_USERNAME",
            "SFCC_PASSWORD", "SFCC_SITE_ID", "SFCC_API_VERSION", "SFCC_DEBUG", "SFCC_LOG_DIR"]

MOCK_ENDPOINTS = [
    {
        "toolName": "search_products",
        "path": "/product_search",
        "method": "POST",
        "parameters": [
            {"name": "site_id", "type": "string", "required": True},
            {"name": "query", "type": "string", "required": False},
            {"name": "count", "type": "number", "required": False},
        ],
        "defaultBody": SEARCH_BODY,
        "apiType": "ocapi",
    },
    {
        "toolName": "get_product",
        "path": "/products/{product_id}",
        "method": "GET",
        "parameters": [
            {"name": "site_id", "type": "string", "required": True},
            {"name": "product_id", "type": "string", "required": True},
            {"name": "expand", "type": "string", "required": False},
        ],
        "apiType": "ocapi",
    },
    {
        "toolName": "get_catalogs",
        "path": "/catalogs",
        "method": "GET",
        "parameters": [
            {"name": "count", "type": "number", "required": False},
            {"name": "start", "type": "number", "required": False},
        ],
        "apiType": "ocapi",
    },
    {
        "toolName": "search_customers",
        "path": "/customer_lists/{site_id}/customer_search",
        "method": "POST",
        "parameters": [
            {"name": "site_id", "type": "string", "required": True},
            {"name": "query", "type": "string", "required": False},
        ],
        "defaultBody": SEARCH_BODY,
        "apiType": "ocapi",
    },
    {
        "toolName": "search_orders",
        "path": "/order_search",
        "method": "POST",
        "parameters": [
            {"name": "site_id", "type": "string", "required": True},
            {"name": "query", "type": "string", "required": False},
        ],
        "defaultBody": SEARCH_BODY,
        "apiType": "ocapi",
    },
    {
        "toolName": "search_promotions",
        "path": "/sites/{site_id}/promotion_search",
        "method": "POST",
        "parameters": [
            {"name": "site_id", "type": "string", "required": True},
            {"name": "campaign_id", "type": "string", "required": False},
            {"name": "query", "type": "string", "required": False},
        ],
        "defaultBody": SEARCH_BODY,
        "apiType": "ocapi",
    },
    {
        "toolName": "shopper_baskets",
        "path": "/baskets/{basket_id}",
        "method": "GET",
        "parameters": [{"name": "basket_id", "type": "string", "required": True}],
        "apiType": "scapi",
    },
]


class RecordingTransport:
    """httpx transport double that records every request it receives."""

    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.payload = {"ok": True} if payload is None else payload
        self.requests = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.payload == b"":
            return httpx.Response(self.status_code)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def call_count(self):
        return len(self.requests)

    @property
    def last_path(self) -> str:
        return self.requests[-1].url.raw_path.decode()

    @property
    def last_json(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture
def registry():
    return EndpointRegistry.from_descriptors(MOCK_ENDPOINTS)


@pytest.fixture
def ocapi_config():
    return OCAPIConfig(
        hostname="test.demandware.net",
        client_id="client-id",
        client_secret="client-secret",
        site_id="test-site",
    )


@pytest.fixture
def recorder():
    return RecordingTransport()


@pytest.fixture
def client(ocapi_config, registry, recorder):
    return DataAPIClient(ocapi_config, registry, StaticTokenProvider("mock-token"), transport=recorder.transport)


@pytest.fixture
def oauth_settings():
    return Settings(
        hostname="test.demandware.net",
        client_id="client-id",
        client_secret="client-secret",
        username=None,
        password=None,
        site_id="RefArch",
    )


@pytest.fixture
def local_settings():
    return Settings(hostname="", client_id=None, client_secret=None, username=None, password=None, site_id=None)


@pytest.fixture
def make_router(registry, recorder):
    """Build a router whose client talks to the recording transport."""
    def _make(settings, token="mock-token"):
        context = HandlerContext(settings=settings, capabilities=derive_capabilities(settings))

        def factory(config, reg, token_provider):
            return DataAPIClient(config, reg, token_provider, transport=recorder.transport)

        provider = StaticTokenProvider(token) if token else None
        return DataAPIToolRouter(context, registry, provider, client_factory=factory)
    return _make


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        # Set first so teardown also removes values a .env load adds
        monkeypatch.setenv(key, "unset")
        monkeypatch.delenv(key)


@pytest.fixture
def package_logger():
    """The ``commerce_bridge`` logger, with its handlers and level restored afterwards."""
    root = logging.getLogger("commerce_bridge")
    saved = (list(root.handlers), root.level, root.propagate)
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in saved[0]:
        root.addHandler(handler)
    root.setLevel(saved[1])
    root.propagate = saved[2]
