"""Which tool families the configured credentials can reach."""
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class CapabilitySet:
    can_access_logs: bool = False
    can_access_data_api: bool = False
    can_access_webdav: bool = False
    is_local_mode: bool = True


def _present(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def derive_capabilities(credentials: Any) -> CapabilitySet:
    """Compute the CapabilitySet for a credentials object.

    ``credentials`` only needs ``hostname``, ``username``, ``password``,
    ``client_id`` and ``client_secret`` attributes (missing ones count as
    absent). The Data API needs OAuth client credentials specifically;
    logs and WebDAV accept either basic auth or OAuth.
    """
    get = lambda name: getattr(credentials, name, None)

    has_hostname = _present(get("hostname"))
    has_basic_auth = _present(get("username")) and _present(get("password"))
    has_oauth = _present(get("client_id")) and _present(get("client_secret"))
    has_webdav_credentials = has_basic_auth or has_oauth

    return CapabilitySet(
        can_access_logs=has_webdav_credentials and has_hostname,
        can_access_data_api=has_oauth and has_hostname,
        can_access_webdav=has_webdav_credentials and has_hostname,
        is_local_mode=not has_hostname and not has_webdav_credentials,
    )
