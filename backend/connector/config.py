import os
from pathlib import Path
from typing import Any, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8081
DEFAULT_CERT_FILE = "certs/server/server.crt"
DEFAULT_KEY_FILE = "certs/server/server.key"

ENV_VARS = {
    "api_key": "CONNECTOR_API_KEY",
    "host": "CONNECTOR_HOST",
    "port": "CONNECTOR_PORT",
    "cert_file": "CONNECTOR_CERT_FILE",
    "key_file": "CONNECTOR_KEY_FILE",
    "log_level": "CONNECTOR_LOG_LEVEL",
}


class ConnectorConfig(BaseModel):
    """Process-wide settings. Built once at startup and never changed afterwards."""
    model_config = ConfigDict(frozen=True)

    api_key: str = ""
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    cert_file: str = DEFAULT_CERT_FILE
    key_file: str = DEFAULT_KEY_FILE
    log_level: str = "INFO"

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def require_api_key(self) -> None:
        if not self.api_key:
            raise ConfigError("API key must be specified e.g. 'digistorm-connector --key=ABC123'")


def load_config(env_file: Optional[Union[str, Path]] = None, **overrides: Any) -> ConnectorConfig:
    """
    Build the configuration from (highest precedence first) explicit
    overrides such as CLI flags, the environment / .env file, then defaults.
    Empty overrides are ignored.
    """
    load_dotenv(Path(env_file) if env_file else Path.cwd() / ".env", override=True)

    values = {}
    for field, var in ENV_VARS.items():
        value = os.getenv(var)
        if value:
            values[field] = value
    values.update({k: v for k, v in overrides.items() if v not in (None, "")})

    try:
        return ConnectorConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
