"""Configuration management for crudline.

Loads settings from a YAML configuration file with environment variable
overrides (``CRUDLINE_`` prefix, ``__`` for nested sections). Supports
.env files.
"""

from __future__ import annotations

import ipaddress
import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/crudline.yaml")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5555


class ServerConfig(BaseModel):
    host: str = Field(default=DEFAULT_HOST, description="Loopback address to bind")
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    backlog: int = Field(default=5, gt=0)
    buffer_size: int = Field(default=1024, gt=0, description="Max bytes read per request")
    read_timeout: float | None = Field(
        default=None, gt=0, description="Seconds to wait for a request line (None waits forever)",
    )

    @field_validator("host")
    @classmethod
    def _require_loopback(cls, value: str) -> str:
        if value == "localhost":
            return value
        try:
            addr = ipaddress.ip_address(value)
        except ValueError as e:
            raise ValueError(f"host must be a loopback address, got {value!r}") from e
        if not addr.is_loopback:
            raise ValueError(f"host must be a loopback address, got {value!r}")
        return value


class ClientConfig(BaseModel):
    host: str = Field(default=DEFAULT_HOST)
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    timeout: float = Field(default=5.0, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for crudline.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "CRUDLINE_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    server: ServerConfig = Field(default_factory=ServerConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: init values (YAML) > env vars > .env file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    # Load .env file so the shorthand below also sees it
    _load_dotenv()

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    return Settings(**yaml_data)


def _load_dotenv() -> None:
    """Load .env file into os.environ if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if not os.environ.get(key):
                    os.environ[key] = value


def _apply_env_overrides(yaml_data: dict) -> None:
    """Apply the CRUDLINE_PORT shorthand to both the server and client sections."""
    port = os.environ.get("CRUDLINE_PORT", "")
    if not port:
        return
    for section in ("server", "client"):
        if not isinstance(yaml_data.get(section), dict):
            yaml_data[section] = {}
        yaml_data[section]["port"] = int(port)
