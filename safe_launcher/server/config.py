"""Server configuration.

Settings are read from `config.yaml` in the config directory, then
environment variables override individual values.
"""

import logging
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from mashumaro.config import BaseConfig
from mashumaro.mixins.json import DataClassJSONMixin

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.yaml"
DEFAULT_CONFIG_DIR = "config"
DEFAULT_LIBRARY = "safe_launcher.network.mock:MockLibrary"


@dataclass
class AuthConfig(DataClassJSONMixin):
    """Validation of caller tokens."""

    secret_key: str = ""
    """Secret the caller tokens are signed with.

    When empty a random secret is generated at startup and kept in memory
    only, so tokens don't survive a restart.
    """

    algorithm: str = "HS256"

    class Config(BaseConfig):
        omit_none = True


@dataclass
class NetworkConfig(DataClassJSONMixin):
    """The native network library."""

    library: str = DEFAULT_LIBRARY
    """Import path of the library class, as `module:attribute`."""

    database_url: str = "sqlite+aiosqlite:///:memory:"
    """Storage of the mock network. Ignored by other libraries."""

    class Config(BaseConfig):
        omit_none = True


@dataclass
class ServerConfig(DataClassJSONMixin):
    """Top level launcher configuration."""

    host: str = "127.0.0.1"
    port: int = 8100
    trace_log_file: str | None = None
    """When set, every request is appended to this file as a JSON line."""

    auth: AuthConfig = field(default_factory=AuthConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)

    class Config(BaseConfig):
        omit_none = True

    @classmethod
    def load(cls, config_dir: str | Path | None = None) -> "ServerConfig":
        """Load configuration from the config directory and the environment."""
        if config_dir is None:
            config_dir = os.getenv("SAFE_LAUNCHER_CONFIG_DIR", DEFAULT_CONFIG_DIR)
        config_file = Path(config_dir) / CONFIG_FILE

        config = cls()
        if config_file.exists():
            logger.info("Loading config from %s", config_file)
            with config_file.open() as f:
                data = yaml.safe_load(f) or {}
            config = cls.from_dict(data)
        else:
            logger.info("No config file at %s, using defaults", config_file)

        if host := os.getenv("SAFE_LAUNCHER_HOST"):
            config.host = host
        if port := os.getenv("SAFE_LAUNCHER_PORT"):
            config.port = int(port)
        if trace_log := os.getenv("SAFE_LAUNCHER_TRACE_LOG"):
            config.trace_log_file = trace_log
        if secret := os.getenv("SAFE_LAUNCHER_JWT_SECRET"):
            config.auth.secret_key = secret
        if library := os.getenv("SAFE_LAUNCHER_LIBRARY"):
            config.network.library = library
        if database_url := os.getenv("SAFE_LAUNCHER_NETWORK_DB"):
            config.network.database_url = database_url

        if not config.auth.secret_key:
            logger.warning("No token secret configured, generating one for this run")
            config.auth.secret_key = secrets.token_hex(32)
        return config
