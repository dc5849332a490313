"""Tool server — advertises tools by capability and routes calls to the owning router."""
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .capabilities import CapabilitySet, derive_capabilities
from .config import DEFAULT_ENV_PATH, Settings, load_settings
from .dataapi.client import TokenProvider
from .dataapi.endpoints import EndpointRegistry
from .dataapi.router import DataAPIToolRouter, HandlerContext
from .logging_config import log_timing, setup_logging
from .results import ToolCallResult

logger = logging.getLogger(__name__)

SERVER_NAME = "SFCC Development MCP Server"


class ToolServer:
    def __init__(self, settings: Settings, registry: EndpointRegistry,
                 token_provider: Optional[TokenProvider] = None, **router_kwargs):
        self.settings = settings
        self.registry = registry
        self.capabilities: CapabilitySet = derive_capabilities(settings)
        self.context = HandlerContext(settings=settings, capabilities=self.capabilities)
        self.data_api = DataAPIToolRouter(self.context, registry, token_provider, **router_kwargs)
        self.routers = [self.data_api]

    def list_tools(self) -> List[Dict[str, Any]]:
        tools = []
        if self.capabilities.can_access_data_api:
            tools.extend(e.to_tool_schema() for e in self.registry.get_endpoints())
        return tools

    async def call_tool(self, name: str, args: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Run one tool call and return the ``{content, isError}`` envelope."""
        start_time = time.time()
        logger.debug(f"Tool request: {name}({args})")
        try:
            router = next((r for r in self.routers if r.can_handle(name)), None)
            if router is None:
                logger.error(f"Unknown tool requested: {name}")
                result = ToolCallResult.error(f"Unknown tool: {name}")
            else:
                result = await router.handle(name, args or {}, start_time)
        except Exception as e:
            logger.error(f"Error handling tool \"{name}\": {e}", exc_info=True)
            log_timing(logger, f"{name}_error", start_time)
            result = ToolCallResult.error(str(e))
        return result.to_dict()

    async def dispose(self):
        logger.info(f"Shutting down {SERVER_NAME}...")
        for router in self.routers:
            await router.dispose()
        logger.info(f"{SERVER_NAME} shutdown complete")


def build_server(settings: Settings, token_provider: Optional[TokenProvider] = None,
                 catalog_path: Optional[str] = None, **router_kwargs) -> ToolServer:
    """Composition root: one registry, one capability set, one server."""
    registry = EndpointRegistry(catalog_path)
    server = ToolServer(settings, registry, token_provider, **router_kwargs)
    caps = server.capabilities
    if caps.is_local_mode:
        logger.info("Running in Local Mode - no platform credentials configured")
    else:
        logger.info(f"Configuration loaded - Hostname: {settings.hostname}")
        logger.info(f"Available features: Logs={caps.can_access_logs}, "
                    f"OCAPI={caps.can_access_data_api}, WebDAV={caps.can_access_webdav}")
    return server


def create_server(env_path: Path = DEFAULT_ENV_PATH, token_provider: Optional[TokenProvider] = None,
                  catalog_path: Optional[str] = None, **overrides) -> ToolServer:
    """Load settings, start file logging, then build the server."""
    settings = load_settings(env_path, **overrides)
    log_path = setup_logging(settings.debug, settings.log_dir)
    logger.info(f"Starting {SERVER_NAME} (log file: {log_path})")
    return build_server(settings, token_provider, catalog_path)
