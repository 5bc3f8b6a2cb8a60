"""Configuration management for cmdgate.

The two values that drive behavior come straight from the environment:
``PORT`` (listen port, default 80) and ``ADMIN_API_KEY`` (enables the
``/cmd`` authorization check when non-empty). An optional YAML file can
supply the ``server`` and ``logging`` sections.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/cmdgate.yaml")
DEFAULT_PORT = 80

# Only these top-level YAML keys are honored; PORT and ADMIN_API_KEY are
# environment-only.
YAML_SECTIONS = ("server", "logging")


class ServerConfig(BaseModel):
    host: str = Field(default="0.0.0.0")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for cmdgate.

    Built once at startup and handed to the application factory; frozen
    so nothing can change it for the lifetime of the process.
    """

    model_config = {
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "frozen": True,
    }

    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    admin_api_key: SecretStr = Field(default=SecretStr(""))

    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("port", mode="before")
    @classmethod
    def _default_empty_port(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_PORT
        return value

    @property
    def require_api_key(self) -> bool:
        """True when ``/cmd`` callers must present the admin key."""
        return bool(self.admin_api_key.get_secret_value())


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables."""
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data: dict = {}
    if path.exists():
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        for key in raw:
            if key not in YAML_SECTIONS:
                logger.warning("Ignoring unsupported config key %r in %s", key, path)
        yaml_data = {key: raw[key] for key in YAML_SECTIONS if key in raw}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.debug("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
