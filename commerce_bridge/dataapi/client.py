"""Data API client — executes catalog endpoints against the platform's OCAPI Data API."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol
from urllib.parse import quote

import httpx

from .builder import MUTATING_METHODS, RequestParams, term_query, text_query
from .endpoints import EndpointDescriptor, EndpointRegistry
from .errors import TransportError, UnknownEndpointError, UnsupportedMethodError

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "v23_2"

# Same unescaped set as JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def match_all_query() -> Dict[str, Any]:
    return {"match_all_query": {}}


class TokenProvider(Protocol):
    async def get_token(self) -> str:
        ...


class StaticTokenProvider:
    """Hands out one pre-issued bearer token."""

    def __init__(self, token: str):
        self._token = token

    async def get_token(self) -> str:
        return self._token


@dataclass
class OCAPIConfig:
    hostname: str
    client_id: str
    client_secret: str
    site_id: Optional[str] = None
    version: str = DEFAULT_API_VERSION


@dataclass
class DataAPIResponse:
    success: bool
    status: int
    data: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {"success": self.success, "status": self.status}
        if self.success:
            out["data"] = self.data
        else:
            out["error"] = self.error
        return out


def build_base_url(config: OCAPIConfig) -> str:
    return f"https://{config.hostname}/s/-/dw/data/{config.version}"


def encode_component(value: Any) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return quote(str(value), safe=_URI_COMPONENT_SAFE)


def build_url(endpoint: EndpointDescriptor, params: RequestParams) -> str:
    """Resolve path placeholders and append the query string.

    Placeholders without a value are left as-is in the path.
    """
    path = endpoint.path
    for key, value in (params.path_params or {}).items():
        path = path.replace("{" + key + "}", encode_component(value))
    if "{" in path:
        logger.warning(f"Unresolved path placeholder in {endpoint.tool_name}: {path}")

    pairs = [
        f"{encode_component(key)}={encode_component(value)}"
        for key, value in (params.query_params or {}).items()
        if value is not None and value != ""
    ]
    return f"{path}?{'&'.join(pairs)}" if pairs else path


class DataAPIClient:
    """Unified client for OCAPI Data API requests described by the endpoint catalog.

    ``execute`` never raises: every failure comes back as a DataAPIResponse
    with ``success=False``. Successful calls are always reported with status
    200, whatever 2xx code the platform returned.
    """

    def __init__(
        self,
        config: OCAPIConfig,
        registry: EndpointRegistry,
        token_provider: TokenProvider,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.config = config
        self.base_url = build_base_url(config)
        self.registry = registry
        self.token_provider = token_provider
        # Shared across every call on this instance, not per request
        self._site_id = config.site_id
        self._http = httpx.AsyncClient(base_url=self.base_url, transport=transport, timeout=timeout)

    async def execute(self, tool_name: str, params: Optional[RequestParams] = None) -> DataAPIResponse:
        params = params or RequestParams()
        endpoint = self.registry.get_endpoint(tool_name)
        if endpoint is None:
            return DataAPIResponse(success=False, status=400, error=str(UnknownEndpointError(tool_name)))

        try:
            url = build_url(endpoint, params)
            method = endpoint.method.upper()
            logger.debug(f"Executing {method} request to: {url}")

            if method == "GET":
                result = await self.get(url)
            elif method == "POST":
                result = await self.post(url, self._request_body(endpoint, params))
            elif method == "PUT":
                result = await self.put(url, self._request_body(endpoint, params))
            elif method == "PATCH":
                result = await self.patch(url, self._request_body(endpoint, params))
            elif method == "DELETE":
                result = await self.delete(url)
            else:
                raise UnsupportedMethodError(endpoint.method)

            return DataAPIResponse(success=True, status=200, data=result)
        except Exception as e:
            logger.error(f"Error executing endpoint {tool_name}: {e}")
            return DataAPIResponse(success=False, status=500, error=str(e))

    @staticmethod
    def _request_body(endpoint: EndpointDescriptor, params: RequestParams) -> Dict[str, Any]:
        body = dict(endpoint.default_body) if endpoint.default_body else {}
        if params.body:
            body.update(params.body)
        return body

    # ── Transport ─────────────────────────────────────────

    async def _request(self, method: str, url: str, body: Optional[Mapping[str, Any]] = None) -> Any:
        token = await self.token_provider.get_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        if method in MUTATING_METHODS:
            headers["Content-Type"] = "application/json"
        resp = await self._http.request(method, url, headers=headers, json=body)
        if resp.is_error:
            raise TransportError(
                f"{method} {url} failed: {resp.status_code} {resp.reason_phrase} - {resp.text}",
                status=resp.status_code,
            )
        if not resp.content:
            return None
        return resp.json()

    async def get(self, url: str) -> Any:
        return await self._request("GET", url)

    async def post(self, url: str, body: Mapping[str, Any]) -> Any:
        return await self._request("POST", url, body)

    async def put(self, url: str, body: Mapping[str, Any]) -> Any:
        return await self._request("PUT", url, body)

    async def patch(self, url: str, body: Mapping[str, Any]) -> Any:
        return await self._request("PATCH", url, body)

    async def delete(self, url: str) -> Any:
        return await self._request("DELETE", url)

    async def aclose(self):
        await self._http.aclose()

    # ── Site selector and catalog access ──────────────────

    def get_site_id(self) -> Optional[str]:
        return self._site_id

    def set_site_id(self, site_id: str):
        self._site_id = site_id

    def get_available_endpoints(self) -> List[EndpointDescriptor]:
        return self.registry.get_endpoints()

    def has_endpoint(self, tool_name: str) -> bool:
        return self.registry.has_endpoint(tool_name)

    # ── Convenience operations ────────────────────────────

    async def search_products(self, site_id: str, query: Optional[str] = None, count: int = 25,
                              start: int = 0, expand: Optional[str] = None) -> DataAPIResponse:
        body = {
            "query": text_query("search_products", query) if query else match_all_query(),
            "count": count,
            "start": start,
        }
        if expand:
            body["expand"] = expand.split(",")
        return await self.execute("search_products", RequestParams(path_params={"site_id": site_id}, body=body))

    async def get_product(self, site_id: str, product_id: str, expand: Optional[str] = None) -> DataAPIResponse:
        return await self.execute("get_product", RequestParams(
            path_params={"site_id": site_id, "product_id": product_id},
            query_params={"expand": expand} if expand else {},
        ))

    async def get_catalogs(self, count: int = 25, start: int = 0) -> DataAPIResponse:
        return await self.execute("get_catalogs", RequestParams(query_params={"count": count, "start": start}))

    async def get_catalog(self, catalog_id: str) -> DataAPIResponse:
        return await self.execute("get_catalog", RequestParams(path_params={"catalog_id": catalog_id}))

    async def get_categories(self, catalog_id: str, levels: int = 1, count: int = 25,
                             start: int = 0) -> DataAPIResponse:
        return await self.execute("get_categories", RequestParams(
            path_params={"catalog_id": catalog_id},
            query_params={"levels": levels, "count": count, "start": start},
        ))

    async def get_sites(self, count: int = 25, start: int = 0) -> DataAPIResponse:
        return await self.execute("get_sites", RequestParams(query_params={"count": count, "start": start}))

    async def get_site(self, site_id: str) -> DataAPIResponse:
        return await self.execute("get_site", RequestParams(path_params={"site_id": site_id}))

    async def search_customers(self, site_id: str, query: Optional[str] = None, count: int = 25,
                               start: int = 0) -> DataAPIResponse:
        body = {
            "query": text_query("search_customers", query) if query else match_all_query(),
            "count": count,
            "start": start,
        }
        return await self.execute("search_customers", RequestParams(path_params={"site_id": site_id}, body=body))

    async def search_orders(self, site_id: str, query: Optional[str] = None, count: int = 25,
                            start: int = 0) -> DataAPIResponse:
        body = {
            "query": text_query("search_orders", query) if query else match_all_query(),
            "count": count,
            "start": start,
        }
        return await self.execute("search_orders", RequestParams(path_params={"site_id": site_id}, body=body))

    async def get_order(self, site_id: str, order_no: str, expand: Optional[str] = None) -> DataAPIResponse:
        return await self.execute("get_order", RequestParams(
            path_params={"site_id": site_id, "order_no": order_no},
            query_params={"expand": expand} if expand else {},
        ))

    async def search_custom_objects(self, object_type: str, count: int = 25, start: int = 0) -> DataAPIResponse:
        return await self.execute("search_custom_objects", RequestParams(
            path_params={"object_type": object_type},
            body={"query": match_all_query(), "count": count, "start": start},
        ))

    async def get_custom_object(self, object_type: str, key: str) -> DataAPIResponse:
        return await self.execute("get_custom_object", RequestParams(
            path_params={"object_type": object_type, "key": key},
        ))

    async def get_inventory_lists(self, count: int = 25, start: int = 0) -> DataAPIResponse:
        return await self.execute("get_inventory_lists", RequestParams(query_params={"count": count, "start": start}))

    async def get_product_inventory(self, inventory_list_id: str, product_id: str) -> DataAPIResponse:
        return await self.execute("get_product_inventory", RequestParams(
            path_params={"inventory_list_id": inventory_list_id, "product_id": product_id},
        ))

    async def get_price_books(self, count: int = 25, start: int = 0) -> DataAPIResponse:
        return await self.execute("get_price_books", RequestParams(query_params={"count": count, "start": start}))

    async def search_campaigns(self, site_id: str, count: int = 25, start: int = 0) -> DataAPIResponse:
        return await self.execute("search_campaigns", RequestParams(
            path_params={"site_id": site_id},
            body={"query": match_all_query(), "count": count, "start": start},
        ))

    async def search_promotions(self, site_id: str, campaign_id: Optional[str] = None, count: int = 25,
                                start: int = 0) -> DataAPIResponse:
        body = {
            "query": term_query("campaign_id", campaign_id) if campaign_id else match_all_query(),
            "count": count,
            "start": start,
        }
        return await self.execute("search_promotions", RequestParams(path_params={"site_id": site_id}, body=body))

    async def search_coupons(self, site_id: str, count: int = 25, start: int = 0) -> DataAPIResponse:
        return await self.execute("search_coupons", RequestParams(
            path_params={"site_id": site_id},
            body={"query": match_all_query(), "count": count, "start": start},
        ))
