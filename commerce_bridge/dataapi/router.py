"""Data API tool router — capability-gated front door for the catalog-driven tools."""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from ..capabilities import CapabilitySet
from ..logging_config import log_timing
from ..results import ToolCallResult
from . import builder
from .client import DEFAULT_API_VERSION, DataAPIClient, OCAPIConfig, TokenProvider
from .endpoints import EndpointRegistry
from .errors import ClientNotInitializedError, DataAPIError, ToolValidationError

logger = logging.getLogger(__name__)


@dataclass
class HandlerContext:
    settings: Any
    capabilities: CapabilitySet


@dataclass(frozen=True)
class ToolSpec:
    """Per-tool validation and logging. ``required=None`` defers to the catalog."""
    required: Optional[Sequence[str]] = None
    log_message: Callable[[Mapping[str, Any]], str] = lambda args: ""


def _spec(required: Sequence[str], message: Callable[[Mapping[str, Any]], str]) -> ToolSpec:
    return ToolSpec(required=tuple(required), log_message=message)


TOOL_SPECS: Dict[str, ToolSpec] = {
    # Products
    "search_products": _spec([], lambda a: f"Searching products in site: {a.get('site_id')}"),
    "get_product": _spec(["site_id", "product_id"],
                         lambda a: f"Getting product: {a.get('product_id')} in site: {a.get('site_id')}"),

    # Catalogs
    "get_catalogs": _spec([], lambda a: "Getting all catalogs"),
    "get_catalog": _spec(["catalog_id"], lambda a: f"Getting catalog: {a.get('catalog_id')}"),
    "get_categories": _spec(["catalog_id"], lambda a: f"Getting categories for catalog: {a.get('catalog_id')}"),
    "get_category": _spec(["catalog_id", "category_id"],
                          lambda a: f"Getting category: {a.get('category_id')} in catalog: {a.get('catalog_id')}"),

    # Sites
    "get_sites": _spec([], lambda a: "Getting all sites"),
    "get_site": _spec(["site_id"], lambda a: f"Getting site: {a.get('site_id')}"),

    # Campaigns and promotions
    "search_campaigns": _spec(["site_id"], lambda a: f"Searching campaigns in site: {a.get('site_id')}"),
    "get_campaign": _spec(["site_id", "campaign_id"],
                          lambda a: f"Getting campaign: {a.get('campaign_id')} in site: {a.get('site_id')}"),
    "search_promotions": _spec(["site_id"], lambda a: f"Searching promotions in site: {a.get('site_id')}"),
    "search_coupons": _spec(["site_id"], lambda a: f"Searching coupons in site: {a.get('site_id')}"),

    # Inventory
    "get_inventory_lists": _spec([], lambda a: "Getting all inventory lists"),
    "get_inventory_list": _spec(["inventory_list_id"],
                                lambda a: f"Getting inventory list: {a.get('inventory_list_id')}"),
    "get_product_inventory": _spec(
        ["inventory_list_id", "product_id"],
        lambda a: f"Getting product inventory: {a.get('product_id')} in list: {a.get('inventory_list_id')}"),

    # Customers
    "search_customers": _spec(["site_id"], lambda a: f"Searching customers in site: {a.get('site_id')}"),
    "get_customer": _spec(["site_id", "customer_id"],
                          lambda a: f"Getting customer: {a.get('customer_id')} in site: {a.get('site_id')}"),
    "get_customer_groups": _spec(["site_id"], lambda a: f"Getting customer groups in site: {a.get('site_id')}"),

    # Custom objects
    "search_custom_objects": _spec(["object_type"],
                                   lambda a: f"Searching custom objects of type: {a.get('object_type')}"),
    "get_custom_object": _spec(["object_type", "key"],
                               lambda a: f"Getting custom object: {a.get('key')} of type: {a.get('object_type')}"),

    # Orders
    "search_orders": _spec(["site_id"], lambda a: f"Searching orders in site: {a.get('site_id')}"),
    "get_order": _spec(["site_id", "order_no"],
                       lambda a: f"Getting order: {a.get('order_no')} in site: {a.get('site_id')}"),

    # Locales and pricing
    "get_locales": _spec([], lambda a: "Getting all locales"),
    "get_currencies": _spec([], lambda a: "Getting all currencies"),
    "get_price_books": _spec([], lambda a: "Getting all price books"),
    "get_price_book": _spec(["price_book_id"], lambda a: f"Getting price book: {a.get('price_book_id')}"),

    # Content
    "get_content_assets": _spec(["library_id"],
                                lambda a: f"Getting content assets from library: {a.get('library_id')}"),
    "get_content_asset": _spec(
        ["library_id", "content_id"],
        lambda a: f"Getting content asset: {a.get('content_id')} from library: {a.get('library_id')}"),
}


ClientFactory = Callable[[OCAPIConfig, EndpointRegistry, TokenProvider], Any]


class DataAPIToolRouter:
    """Routes catalog tools through RequestBuilder and DataAPIClient.

    Every failure, including a closed capability gate, is returned as an
    error ToolCallResult; ``handle`` does not raise.
    """

    def __init__(
        self,
        context: HandlerContext,
        registry: EndpointRegistry,
        token_provider: Optional[TokenProvider] = None,
        client_factory: ClientFactory = DataAPIClient,
        tool_specs: Optional[Mapping[str, ToolSpec]] = None,
    ):
        self.context = context
        self.registry = registry
        self.token_provider = token_provider
        self.client_factory = client_factory
        self.tool_specs = dict(TOOL_SPECS if tool_specs is None else tool_specs)
        self._tool_names = registry.tool_name_set()
        self._client = None
        self._initialized = False

    @property
    def client(self):
        return self._client

    def can_handle(self, tool_name: str) -> bool:
        return tool_name in self._tool_names

    def initialize(self):
        if self._initialized:
            return
        self._initialized = True

        if not self.context.capabilities.can_access_data_api:
            logger.warning("OCAPI access not available - Data API router will not be functional")
            return
        if self.token_provider is None:
            logger.warning("No token provider configured - Data API router will not be functional")
            return

        settings = self.context.settings
        config = OCAPIConfig(
            hostname=settings.hostname,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            site_id=getattr(settings, "site_id", None),
            version=getattr(settings, "api_version", None) or DEFAULT_API_VERSION,
        )
        self._client = self.client_factory(config, self.registry, self.token_provider)
        logger.debug("Data API client initialized")

    async def handle(self, tool_name: str, args: Optional[Mapping[str, Any]] = None,
                     start_time: Optional[float] = None) -> ToolCallResult:
        start_time = start_time if start_time is not None else time.time()
        args = dict(args or {})

        try:
            self.initialize()
            if self._client is None:
                raise ClientNotInitializedError()
            self._validate(tool_name, args)
            message = self._log_message(tool_name, args)
            if message:
                logger.info(message)
            data = await self._execute(tool_name, args)
            result = ToolCallResult.from_data(data)
        except DataAPIError as e:
            logger.error(f"Tool {tool_name} failed: {e}")
            result = ToolCallResult.error(str(e))
        except Exception as e:
            logger.error(f"Tool {tool_name} failed: {e}", exc_info=True)
            result = ToolCallResult.error(str(e))

        log_timing(logger, tool_name, start_time)
        text = result.first_text
        logger.debug(f"Response for {tool_name}: is_error={result.is_error} length={len(text)} preview={text[:200]!r}")
        return result

    def _required_args(self, tool_name: str) -> Sequence[str]:
        spec = self.tool_specs.get(tool_name)
        if spec is not None and spec.required is not None:
            return spec.required
        endpoint = self.registry.get_endpoint(tool_name)
        return endpoint.required_param_names() if endpoint else ()

    def _validate(self, tool_name: str, args: Mapping[str, Any]):
        for field_name in self._required_args(tool_name):
            value = args.get(field_name)
            if value is None or value == "":
                raise ToolValidationError(field_name, tool_name)

    def _log_message(self, tool_name: str, args: Mapping[str, Any]) -> str:
        spec = self.tool_specs.get(tool_name)
        if spec is None:
            return f"Executing {tool_name}"
        return spec.log_message(args)

    async def _execute(self, tool_name: str, args: Mapping[str, Any]) -> Any:
        endpoint = self.registry.get_endpoint(tool_name)
        params = builder.build(endpoint, args) if endpoint else builder.RequestParams()

        response = await self._client.execute(tool_name, params)
        if not response.success:
            raise DataAPIError(response.error or "Unknown error occurred")
        return response.data

    async def dispose(self):
        client, self._client = self._client, None
        if client is not None:
            close = getattr(client, "aclose", None)
            if close is not None:
                await close()
            logger.debug("Data API router disposed")
