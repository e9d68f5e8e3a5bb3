"""Configuration management for gakwaya."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from urllib.parse import urlparse

from rich.console import Console

from .constants import (
    CONFIG_DIR_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_API_URL,
    ENV_API_URL,
    REQUEST_TIMEOUT,
)
from .errors import ConfigError

console = Console(stderr=True)


@dataclass
class Config:
    """gakwaya configuration model."""

    version: str = "1.0.0"

    # Backend base URL, all endpoint paths are appended to it
    api_url: str = DEFAULT_API_URL

    # Per-request timeout in seconds
    timeout: int = REQUEST_TIMEOUT


def get_config_dir() -> Path:
    """Get the gakwaya configuration directory."""
    return Path.home() / CONFIG_DIR_NAME


def get_config_path() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / CONFIG_FILE_NAME


def _check_types(config: Config) -> Config:
    """Reject values of the wrong JSON type (e.g. a numeric api_url)."""
    if not isinstance(config.version, str):
        raise TypeError("version must be a string")
    if not isinstance(config.api_url, str):
        raise TypeError("api_url must be a string")
    if isinstance(config.timeout, bool) or not isinstance(config.timeout, (int, float)):
        raise TypeError("timeout must be a number of seconds")
    if config.timeout <= 0:
        raise ValueError("timeout must be positive")
    return config


def load_config() -> Config:
    """Load configuration from file, or return defaults.

    GAKWAYA_API_URL, when set, overrides the stored api_url.
    """
    config = Config()
    config_path = get_config_path()

    if config_path.exists():
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
            config = _check_types(Config(**data))
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            console.print(f"[yellow]Warning: Failed to load config ({e}), using defaults[/yellow]")

    env_url = os.environ.get(ENV_API_URL, "").strip()
    if env_url:
        config = replace(config, api_url=env_url)
    return config


def save_config(config: Config) -> None:
    """Save configuration to file."""
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    get_config_path().write_text(
        json.dumps(asdict(config), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )


def validate_api_url(url: str) -> str:
    """Validate that the API URL is an absolute http(s) URL.

    Returns:
        The URL without a trailing slash.

    Raises:
        ConfigError: If the scheme is not http/https or the host is missing.
    """
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid API URL: '{url}' (expected http(s)://host[:port][/path])")
    return url.strip().rstrip("/")
