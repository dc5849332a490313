import logging
import os
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

_HOSTNAME_RE = re.compile(r"^[a-zA-Z0-9.-]+(?::[0-9]+)?$")

DEFAULT_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"


def load_dotenv(path: Path = DEFAULT_ENV_PATH):
    """Load KEY=VALUE lines from a .env file; real environment variables take precedence."""
    if not path.exists():
        return
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                if key not in os.environ:
                    os.environ[key] = value.strip()


def _sanitize_ascii(val: str) -> str:
    """Strip non-ASCII characters from config values (prevents encoding errors)"""
    return val.encode("ascii", errors="ignore").decode("ascii").strip()


def _env(name: str, default: str = "") -> str:
    return _sanitize_ascii(os.getenv(name, default))


def _env_optional(name: str) -> Optional[str]:
    return _env(name) or None


class Settings(BaseModel):
    # Env-derived defaults go through the same validators as explicit values
    model_config = ConfigDict(validate_default=True)

    # Instance
    hostname: str = Field(default_factory=lambda: _env("SFCC_HOSTNAME"))
    site_id: Optional[str] = Field(default_factory=lambda: _env_optional("SFCC_SITE_ID"))
    api_version: str = Field(default_factory=lambda: _env("SFCC_API_VERSION", "v23_2"))

    # Basic auth (WebDAV / logs)
    username: Optional[str] = Field(default_factory=lambda: _env_optional("SFCC_USERNAME"))
    password: Optional[str] = Field(default_factory=lambda: _env_optional("SFCC_PASSWORD"))

    # OAuth client credentials (Data API)
    client_id: Optional[str] = Field(default_factory=lambda: _env_optional("SFCC_CLIENT_ID"))
    client_secret: Optional[str] = Field(default_factory=lambda: _env_optional("SFCC_CLIENT_SECRET"))

    # Logging
    debug: bool = Field(default_factory=lambda: _env("SFCC_DEBUG").lower() in ("1", "true", "yes"))
    log_dir: Optional[str] = Field(default_factory=lambda: _env_optional("SFCC_LOG_DIR"))

    @field_validator("hostname")
    @classmethod
    def _check_hostname(cls, v: str) -> str:
        v = (v or "").strip()
        if v and not _HOSTNAME_RE.match(v):
            raise ValueError("Invalid hostname format in configuration")
        return v

    @model_validator(mode="after")
    def _check_credentials(self):
        has_basic = bool(self.username and self.password)
        has_oauth = bool(self.client_id and self.client_secret)
        # No hostname and no credentials is local mode
        if self.hostname and not has_basic and not has_oauth:
            raise ValueError(
                "When hostname is provided, either username/password or "
                "OAuth credentials (client_id/client_secret) must be provided"
            )
        return self

    def masked(self) -> dict:
        """Config summary safe for logging."""
        def mask(v):
            return "***" + v[-4:] if v and len(v) > 4 else ("***" if v else "EMPTY")
        return {
            "hostname": self.hostname or "EMPTY",
            "site_id": self.site_id,
            "api_version": self.api_version,
            "username": self.username or "EMPTY",
            "client_id": mask(self.client_id),
            "client_secret": mask(self.client_secret),
        }


def load_settings(env_path: Path = DEFAULT_ENV_PATH, **overrides) -> Settings:
    """Resolve settings from .env, the environment and explicit overrides (overrides win)."""
    load_dotenv(env_path)
    settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    logger.info(f"Config: {settings.masked()}")
    return settings
