"""Configuration models and loading."""

import json
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from core.exceptions import ConfigurationError

CONFIG_DIR = Path.home() / ".config" / "cdn-cors-proxy"
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT = "image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ProxySettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False


class FetchSettings(BaseModel):
    timeout: float = 10.0
    max_connections: int = 100
    max_keepalive_connections: int = 20
    keep_alive_timeout: int = 10
    follow_redirects: bool = True


class AllowListSettings(BaseModel):
    enabled: bool = True
    patterns: list[str] = Field(
        default_factory=lambda: ["alicdn.com", "aliexpress.com", "*.akamai.net"]
    )
    # Full-match against the host instead of substring search over the URL
    anchored: bool = False


class HeaderSettings(BaseModel):
    user_agent: str = DEFAULT_USER_AGENT
    referer: str = "https://www.aliexpress.com/"
    accept: str = DEFAULT_ACCEPT
    accept_language: str = "en-US,en;q=0.9"
    mimic_image_request: bool = True


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    allowlist: AllowListSettings = Field(default_factory=AllowListSettings)
    headers: HeaderSettings = Field(default_factory=HeaderSettings)


def load_config(
    config_file: Path = CONFIG_FILE,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Load configuration from JSON file, creating default if needed."""
    config = _load_file(config_file)
    return apply_env_overrides(config, os.environ if environ is None else environ)


def apply_env_overrides(config: Config, environ: Mapping[str, str]) -> Config:
    """Return a copy of config with PORT / ALLOWLIST_ENABLED applied."""
    config = config.model_copy(deep=True)

    port = environ.get("PORT")
    if port:
        try:
            config.proxy.port = int(port)
        except ValueError:
            raise ConfigurationError(f"PORT must be an integer, got {port!r}") from None

    enabled = environ.get("ALLOWLIST_ENABLED")
    if enabled:
        value = enabled.strip().lower()
        if value in _TRUE_VALUES:
            config.allowlist.enabled = True
        elif value in _FALSE_VALUES:
            config.allowlist.enabled = False
        else:
            raise ConfigurationError(
                f"ALLOWLIST_ENABLED must be a boolean flag, got {enabled!r}"
            )

    return config


def _load_file(config_file: Path) -> Config:
    if not config_file.exists():
        config_file.parent.mkdir(parents=True, exist_ok=True)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(config_file.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = config_file.with_suffix(".json.bak")
        config_file.rename(backup)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default
