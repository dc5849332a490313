"""Request builder — classifies tool arguments into path, query and body segments."""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .endpoints import EndpointDescriptor

logger = logging.getLogger(__name__)

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH"})

# Fields searched by a free-text ``query`` argument, per tool
SEARCH_FIELDS: Dict[str, List[str]] = {
    "search_products": ["id", "name"],
    "search_customers": ["email", "first_name", "last_name"],
    "search_orders": ["order_no", "customer_email"],
}
DEFAULT_SEARCH_FIELDS = ["id", "name"]

QUERY_ARG = "query"
PROMOTION_SEARCH_TOOL = "search_promotions"
CAMPAIGN_ARG = "campaign_id"


@dataclass
class RequestParams:
    path_params: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, Any] = field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def search_fields_for(tool_name: str) -> List[str]:
    return list(SEARCH_FIELDS.get(tool_name, DEFAULT_SEARCH_FIELDS))


def text_query(tool_name: str, phrase: str) -> Dict[str, Any]:
    return {
        "text_query": {
            "fields": search_fields_for(tool_name),
            "search_phrase": phrase,
        }
    }


def term_query(field_name: str, value: Any) -> Dict[str, Any]:
    return {
        "term_query": {
            "fields": [field_name],
            "operator": "is",
            "values": [value],
        }
    }


def build(descriptor: EndpointDescriptor, args: Mapping[str, Any]) -> RequestParams:
    """Turn a tool argument bag into RequestParams for ``descriptor``.

    Declared parameters found as ``{name}`` in the path become path params;
    the rest go to the query string, except ``query`` which only feeds the
    search body. Mutating methods always get a body (``{}`` at minimum).
    """
    params = RequestParams()

    for param in descriptor.parameters:
        value = args.get(param.name)
        if _is_blank(value):
            continue
        if "{" + param.name + "}" in descriptor.path:
            params.path_params[param.name] = _to_text(value)
        elif param.name != QUERY_ARG:
            params.query_params[param.name] = value

    if descriptor.method.upper() not in MUTATING_METHODS:
        return params

    caller_body = args.get("body")
    if not isinstance(caller_body, Mapping):
        caller_body = None

    if descriptor.default_body is None:
        params.body = dict(caller_body) if caller_body else {}
        return params

    body = dict(descriptor.default_body)

    if args.get("count") is not None:
        body["count"] = args["count"]
    if args.get("start") is not None:
        body["start"] = args["start"]

    expand = args.get("expand")
    if isinstance(expand, str) and expand:
        body["expand"] = [s.strip() for s in expand.split(",")]

    # Caller fields win over pagination and expand, not over the query shapes below
    if caller_body:
        body.update(caller_body)

    query = args.get(QUERY_ARG)
    if not _is_blank(query):
        body["query"] = text_query(descriptor.tool_name, query)

    # Campaign filter replaces any text query; the two are never combined
    if descriptor.tool_name == PROMOTION_SEARCH_TOOL and not _is_blank(args.get(CAMPAIGN_ARG)):
        body["query"] = term_query(CAMPAIGN_ARG, args[CAMPAIGN_ARG])

    params.body = body
    return params
