"""Configuration management for the hypermedia client."""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml

from .constants import DEFAULT_CACHE_TTL_SECONDS


class CacheStrategy(str, Enum):
    """Which State cache the client uses."""

    FOREVER = "forever"  # Keep until invalidated
    SHORT = "short"  # Expire after ttl_seconds
    NEVER = "never"  # Do not cache


class SchemaPluginName(str, Enum):
    """Which validator backs Action.form_schema."""

    NOOP = "noop"
    PYDANTIC = "pydantic"
    JSONSCHEMA = "jsonschema"


@dataclass
class CacheConfig:
    """State cache configuration."""

    strategy: CacheStrategy = CacheStrategy.FOREVER
    ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS  # Only used by the short strategy


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    json_logs: bool = False
    log_file: Path | None = None


@dataclass
class ClientConfig:
    """
    Top-level client configuration.

    ``timeout`` is None by default: the client imposes no timeout of its own.
    """

    base_url: str = ""
    timeout: float | None = None
    verify_ssl: bool = True
    max_connections: int = 100
    max_keepalive: int = 20
    send_user_agent: bool = True
    user_agent: str | None = None
    enable_all_formats: bool = True
    schema_plugin: SchemaPluginName = SchemaPluginName.NOOP
    cache: CacheConfig = field(default_factory=CacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "ClientConfig":
        """Build a configuration from a decoded mapping."""
        data = dict(data)
        cache_data = dict(data.pop("cache", None) or {})
        if "strategy" in cache_data:
            cache_data["strategy"] = CacheStrategy(cache_data["strategy"])
        logging_data = dict(data.pop("logging", None) or {})
        if logging_data.get("log_file"):
            logging_data["log_file"] = Path(logging_data["log_file"])
        if "schema_plugin" in data:
            data["schema_plugin"] = SchemaPluginName(data["schema_plugin"])
        return cls(
            cache=CacheConfig(**cache_data),
            logging=LoggingConfig(**logging_data),
            **data,
        )

    @classmethod
    def from_file(cls, config_path: Path) -> "ClientConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            ClientConfig instance

        Raises:
            ValueError: If the file is not valid YAML or not a mapping.
        """
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(
                f"Invalid configuration file structure in {config_path}: "
                f"expected dictionary, got {type(data).__name__}"
            )

        # Settings live under a "client" key or at the top level
        return cls.from_dict(data.get("client", data))

    def to_file(self, config_path: Path) -> None:
        """
        Save configuration to YAML file.

        Args:
            config_path: Path to save config file
        """
        data = {
            k: v.value if isinstance(v, Enum) else v
            for k, v in self.__dict__.items()
            if k not in ("cache", "logging")
        }
        data["cache"] = {
            "strategy": self.cache.strategy.value,
            "ttl_seconds": self.cache.ttl_seconds,
        }
        data["logging"] = {
            k: str(v) if isinstance(v, Path) else v
            for k, v in self.logging.__dict__.items()
            if v is not None
        }

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.dump({"client": data}, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            HATEOAS_BASE_URL: Bookmark URI relative links resolve against
            HATEOAS_TIMEOUT: Request timeout in seconds (default: none)
            HATEOAS_VERIFY_SSL: "false" disables certificate checks
            HATEOAS_CACHE: forever, short or never (default: forever)
            HATEOAS_CACHE_TTL: Seconds entries live in the short cache
            HATEOAS_SCHEMA_PLUGIN: noop, pydantic or jsonschema
            LOG_LEVEL: Logging level (default: INFO)

        Returns:
            ClientConfig instance
        """
        timeout = os.getenv("HATEOAS_TIMEOUT")
        return cls(
            base_url=os.getenv("HATEOAS_BASE_URL", ""),
            timeout=float(timeout) if timeout else None,
            verify_ssl=os.getenv("HATEOAS_VERIFY_SSL", "true").lower() not in ("0", "false", "no"),
            schema_plugin=SchemaPluginName(os.getenv("HATEOAS_SCHEMA_PLUGIN", "noop")),
            cache=CacheConfig(
                strategy=CacheStrategy(os.getenv("HATEOAS_CACHE", "forever")),
                ttl_seconds=float(os.getenv("HATEOAS_CACHE_TTL", DEFAULT_CACHE_TTL_SECONDS)),
            ),
            logging=LoggingConfig(level=os.getenv("LOG_LEVEL", "INFO")),
        )


def load_config(config_file: Path | None = None) -> ClientConfig:
    """
    Load configuration from file or environment variables.

    Args:
        config_file: Optional path to YAML config file

    Returns:
        ClientConfig instance

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist
    """
    if config_file:
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
        return ClientConfig.from_file(config_file)
    return ClientConfig.from_env()
