"""Endpoint registry — loads the JSON endpoint catalog and indexes it by tool name."""
import json
import logging
import os
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = os.path.join(os.path.dirname(__file__), "..", "data", "endpoints.json")


class EndpointParam(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "string"
    description: str = ""
    required: bool = False


class EndpointDescriptor(BaseModel):
    """One REST operation exposed as a tool.

    Catalog files use camelCase keys (``toolName``, ``defaultBody``, ...);
    both the alias and the field name are accepted.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tool_name: str = Field(alias="toolName")
    path: str
    method: str = "GET"
    description: str = ""
    parameters: List[EndpointParam] = Field(default_factory=list)
    default_body: Optional[Dict[str, Any]] = Field(default=None, alias="defaultBody")
    api_family: str = Field(default="ocapi", alias="apiType")
    requires_site_id: bool = Field(default=False, alias="requiresSiteId")

    def path_param_names(self) -> List[str]:
        return [p.name for p in self.parameters if "{" + p.name + "}" in self.path]

    def required_param_names(self) -> List[str]:
        return [p.name for p in self.parameters if p.required]

    def to_tool_schema(self) -> Dict[str, Any]:
        """Render as a tool definition with a JSON-schema input description."""
        properties = {}
        for p in self.parameters:
            prop = {"type": p.type}
            if p.description:
                prop["description"] = p.description
            properties[p.name] = prop
        return {
            "name": self.tool_name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                "properties": properties,
                "required": self.required_param_names(),
            },
        }


class CatalogError(Exception):
    pass


def _default_endpoints() -> List[EndpointDescriptor]:
    return [
        EndpointDescriptor(
            tool_name="get_catalogs",
            path="/catalogs",
            method="GET",
            description="Get a list of available catalogs",
            parameters=[],
            api_family="ocapi",
            requires_site_id=False,
        ),
    ]


class EndpointRegistry:
    """Index of endpoint descriptors keyed by tool name.

    Built once at the composition root and shared; only ``reload()`` mutates it.
    """

    def __init__(self, catalog_path: Optional[str] = None, autoload: bool = True):
        self.catalog_path = catalog_path or DEFAULT_CATALOG_PATH
        self._endpoints: List[EndpointDescriptor] = []
        self._by_name: Dict[str, EndpointDescriptor] = {}
        if autoload:
            self.load()

    @classmethod
    def from_descriptors(cls, descriptors: Iterable[Any]) -> "EndpointRegistry":
        """Build a registry from in-memory descriptors (or raw dicts) instead of a file."""
        registry = cls(autoload=False)
        registry._index([
            d if isinstance(d, EndpointDescriptor) else EndpointDescriptor.model_validate(d)
            for d in descriptors
        ])
        return registry

    def load(self) -> "EndpointRegistry":
        logger.debug(f"Loading endpoints from: {self.catalog_path}")
        try:
            descriptors = self._read_catalog(self.catalog_path)
        except (OSError, ValueError, CatalogError, ValidationError) as e:
            logger.warning(f"Failed to load endpoints from {self.catalog_path}: {e}; using built-in defaults")
            descriptors = _default_endpoints()
        self._index(descriptors)
        logger.debug(f"Loaded {len(self._endpoints)} endpoints")
        return self

    def reload(self) -> "EndpointRegistry":
        self._endpoints = []
        self._by_name.clear()
        return self.load()

    @staticmethod
    def _read_catalog(path: str) -> List[EndpointDescriptor]:
        with open(path, "r", encoding="utf-8") as f:
            config = json.load(f)
        if not isinstance(config, dict) or not isinstance(config.get("endpoints"), list):
            raise CatalogError("catalog has no 'endpoints' array")
        return [EndpointDescriptor.model_validate(raw) for raw in config["endpoints"]]

    def _index(self, descriptors: List[EndpointDescriptor]):
        self._endpoints = []
        self._by_name = {}
        for descriptor in descriptors:
            if descriptor.tool_name in self._by_name:
                # First definition wins
                logger.warning(f"Duplicate endpoint '{descriptor.tool_name}' ignored")
                continue
            self._by_name[descriptor.tool_name] = descriptor
            self._endpoints.append(descriptor)

    def get_endpoint(self, tool_name: str) -> Optional[EndpointDescriptor]:
        return self._by_name.get(tool_name)

    def get_endpoints(self) -> List[EndpointDescriptor]:
        return list(self._endpoints)

    def has_endpoint(self, tool_name: str) -> bool:
        return tool_name in self._by_name

    def list_names(self) -> List[str]:
        return [e.tool_name for e in self._endpoints]

    def tool_name_set(self) -> FrozenSet[str]:
        return frozenset(self._by_name)

    def filter_by_family(self, family: str) -> List[EndpointDescriptor]:
        return [e for e in self._endpoints if e.api_family == family]

    def __len__(self) -> int:
        return len(self._endpoints)
