"""Error taxonomy for the Data API dispatch engine."""
from typing import Optional


class DataAPIError(Exception):
    """Base class for every failure raised inside the engine."""


class UnknownEndpointError(DataAPIError):
    def __init__(self, tool_name: str):
        super().__init__(f"Unknown endpoint: {tool_name}")
        self.tool_name = tool_name


class ToolValidationError(DataAPIError):
    def __init__(self, field: str, tool_name: str):
        super().__init__(f"Missing required argument '{field}' for tool {tool_name}")
        self.field = field
        self.tool_name = tool_name


class UnsupportedMethodError(DataAPIError):
    def __init__(self, method: str):
        super().__init__(f"Unsupported HTTP method: {method}")
        self.method = method


class ClientNotInitializedError(DataAPIError):
    def __init__(self):
        super().__init__("Data API client not initialized. Check OCAPI credentials.")


class TransportError(DataAPIError):
    """Network failure or non-2xx response from the platform."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
