"""Configuration module for the RouterOS REST client.

Implements Pydantic v2 Settings for configuration management with support for:
- Environment variables (ROUTEROS_REST_* prefix)
- YAML/TOML configuration files
- Command-line argument overrides

Configuration priority (later overrides earlier):
1. Built-in defaults
2. Configuration file (YAML/TOML)
3. Environment variables
4. Command-line arguments / explicit keyword arguments
"""

from contextvars import ContextVar
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
    YamlConfigSettingsSource,
)

# File picked up by Settings while load_settings_from_file runs
_config_file: ContextVar[Path | None] = ContextVar("config_file", default=None)


class Settings(BaseSettings):
    """Client configuration with sensible defaults.

    Example:
        # Load from environment only
        settings = Settings()

        # Override specific values
        settings = Settings(verify_ssl=False, timeout_seconds=5)
    """

    model_config = SettingsConfigDict(
        env_prefix="ROUTEROS_REST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Logging
    # ========================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )

    log_format: Literal["json", "text"] = Field(default="json", description="Log output format")

    # ========================================
    # Transport
    # ========================================

    verify_ssl: bool = Field(
        default=True,
        description="Verify SSL certificates for HTTPS requests. "
        "Set to False for devices with self-signed certificates",
    )

    timeout_seconds: float = Field(
        default=30.0, gt=0.0, le=600.0, description="Per-request timeout"
    )

    tls_fallback_enabled: bool = Field(
        default=True,
        description="Retry once over plain HTTP when the HTTPS handshake fails",
    )

    max_connections: int = Field(default=5, ge=1, le=100, description="Connection pool size")

    max_keepalive_connections: int = Field(
        default=3, ge=0, le=100, description="Idle connections kept alive in the pool"
    )

    keepalive_expiry_seconds: float = Field(
        default=30.0, ge=0.0, description="Idle connection lifetime"
    )

    # ========================================
    # Protocol probe
    # ========================================

    probe_port: int = Field(
        default=443, ge=1, le=65535, description="Port probed to decide whether a host speaks HTTPS"
    )

    probe_timeout_seconds: float = Field(
        default=2.0, gt=0.0, le=60.0, description="TCP connect timeout for the protocol probe"
    )

    @model_validator(mode="after")
    def validate_pool_limits(self) -> "Settings":
        """Keep-alive connections cannot exceed the pool size."""
        if self.max_keepalive_connections > self.max_connections:
            raise ValueError("max_keepalive_connections cannot exceed max_connections")
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Rank a config file below the environment and above the defaults."""
        sources = [init_settings, env_settings, dotenv_settings]

        config_path = _config_file.get()
        if config_path is not None:
            if config_path.suffix.lower() == ".toml":
                sources.append(TomlConfigSettingsSource(settings_cls, toml_file=config_path))
            else:
                sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=config_path))

        sources.append(file_secret_settings)
        return tuple(sources)


# ========================================
# Global Settings Instance
# ========================================

_settings: Settings | None = None


def get_settings() -> Settings:
    """Get global settings instance (singleton).

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings | None) -> None:
    """Set global settings instance.

    Args:
        settings: Settings instance to use globally, or None to reload from
            the environment on next access
    """
    global _settings
    _settings = settings


def load_settings_from_file(config_file: Path | str) -> Settings:
    """Load settings from YAML or TOML configuration file.

    Environment variables still override values from the file.

    Args:
        config_file: Path to configuration file

    Returns:
        Settings instance loaded from file

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file format is invalid
    """
    config_path = Path(config_file)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()
    if suffix not in (".yaml", ".yml", ".toml"):
        raise ValueError(f"Unsupported config file format: {suffix}. Use .yaml, .yml, or .toml")

    token = _config_file.set(config_path)
    try:
        return Settings()
    finally:
        _config_file.reset(token)
