"""Data API dispatch engine: registry, request builder, client and router."""
from .builder import RequestParams, build as build_request
from .client import DataAPIClient, DataAPIResponse, OCAPIConfig, StaticTokenProvider, TokenProvider
from .endpoints import EndpointDescriptor, EndpointParam, EndpointRegistry
from .router import DataAPIToolRouter, HandlerContext, ToolSpec, TOOL_SPECS
