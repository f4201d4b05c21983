"""Configuration for the Open When gateway.

Reads from config/openwhen.ini if present, environment variables override.
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path

_CONFIG_FILE = Path(__file__).resolve().parent.parent.parent / "config" / "openwhen.ini"


@dataclass(frozen=True)
class OpenWhenConfig:
    """Gateway configuration. Immutable once loaded."""

    host: str = "127.0.0.1"
    port: int = 8000
    base_url: str = "http://localhost:5173"


def load_config(config_path: Path | None = None) -> OpenWhenConfig:
    """Load config from INI file, then override with environment variables."""
    path = config_path or _CONFIG_FILE
    kwargs: dict = {}

    if path.exists():
        parser = configparser.ConfigParser()
        parser.read(path)
        if parser.has_section("gateway"):
            host = parser.get("gateway", "host", fallback=None)
            if host is not None:
                kwargs["host"] = host
            port_str = parser.get("gateway", "port", fallback=None)
            if port_str is not None:
                kwargs["port"] = int(port_str)
        if parser.has_section("links"):
            base_url = parser.get("links", "base_url", fallback=None)
            if base_url is not None:
                kwargs["base_url"] = base_url

    env_map = {
        "OPENWHEN_HOST": "host",
        "OPENWHEN_PORT": "port",
        "OPENWHEN_BASE_URL": "base_url",
    }
    for env_key, config_key in env_map.items():
        val = os.getenv(env_key)
        if val is not None:
            if config_key == "port":
                kwargs[config_key] = int(val)
            else:
                kwargs[config_key] = val

    if "base_url" in kwargs:
        kwargs["base_url"] = kwargs["base_url"].rstrip("/")
    return OpenWhenConfig(**kwargs)
