"""Configuration for mysql-mcp."""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mysql_mcp.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Setting name for the connection string, both as environment variable and
# as config file key
CONNECTION_STRING_KEY = "MCP_MySQL_ConnectionString"

ConnectionStringSource = Literal["environment", "config_file"]


class Settings(BaseSettings):
    """Server settings loaded from MYSQL_MCP_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MYSQL_MCP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    config_file: str = Field(
        default="mysql-mcp.yaml",
        description=f"YAML file holding a fallback {CONNECTION_STRING_KEY} value",
    )
    connection_string: str | None = Field(
        default=None,
        validation_alias=CONNECTION_STRING_KEY,
        description="Connection string read from the environment or the .env file",
    )
    log_level: str = Field(default="INFO", description="Logging level")

    # MCP server configuration
    transport: Literal["stdio", "http"] = Field(
        default="stdio",
        description="MCP transport: 'stdio' for local clients, 'http' for remote",
    )
    host: str = Field(default="127.0.0.1", description="Host to bind MCP HTTP server")
    port: int = Field(default=8000, description="Port for MCP HTTP server")
    path: str = Field(default="/mcp", description="Path for MCP HTTP endpoint")


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    global _settings
    _settings = None


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load the YAML config file.

    A missing file is treated as an empty configuration.

    Raises:
        ConfigurationError: If the file exists but is not valid YAML or does
            not hold a mapping
    """
    path = Path(path)
    if not path.exists():
        logger.debug(f"Config file {path} not found, using empty config")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config file {path} is not valid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a mapping, got {type(data).__name__}"
        )
    return data


def connection_environ(settings: Settings) -> dict[str, str]:
    """Environment view used for the connection string lookup.

    Includes a value set in the .env file; a real environment variable takes
    precedence over it.
    """
    if settings.connection_string is None:
        return {}
    return {CONNECTION_STRING_KEY: settings.connection_string}


def _non_blank(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def find_connection_string(
    environ: Mapping[str, str], config: Mapping[str, Any]
) -> tuple[str | None, ConnectionStringSource | None]:
    """Find the connection string and where it came from.

    The environment variable wins over the config file value. Blank values
    count as unset.

    Returns:
        Tuple of (connection_string, source), both None when neither is set
    """
    value = _non_blank(environ.get(CONNECTION_STRING_KEY))
    if value:
        return value, "environment"

    value = _non_blank(config.get(CONNECTION_STRING_KEY))
    if value:
        return value, "config_file"

    return None, None


def resolve_connection_string(
    environ: Mapping[str, str], config: Mapping[str, Any]
) -> str | None:
    """Resolve the connection string from environment and config file.

    Absence is not an error here: the engine raises a configuration error on
    its first connection attempt.
    """
    value, _ = find_connection_string(environ, config)
    return value
