"""Core configuration management for treasurebot.

This module provides the main configuration classes and loading
functionality with YAML file and environment variable support.
"""

import os
from pathlib import Path
from typing import Any, Literal, get_args

import yaml
from pydantic import BaseModel, Field, ValidationError

from treasurebot.core.orchestrator import BotConfig


class ConfigError(Exception):
    """Configuration-related errors."""

    pass


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "json"
    enable_redaction: bool = True


class MetricsConfig(BaseModel):
    """Metrics configuration."""

    enabled: bool = False
    port: int = 8000


class WebConfig(BaseModel):
    """Status endpoint configuration."""

    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 8080


Environment = Literal["development", "staging", "production", "testing"]


class Config(BaseModel):
    """Main configuration class for treasurebot.

    This class combines all configuration sections and provides
    validation and environment variable loading.
    """

    bot: BotConfig = Field(default_factory=BotConfig)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    web: WebConfig = Field(default_factory=WebConfig)

    environment: Environment = "development"
    debug: bool = False


def get_environment() -> str:
    """Environment named by ``TREASUREBOT_ENVIRONMENT``, else development.

    Unknown names fall back to development as well.
    """
    name = os.getenv("TREASUREBOT_ENVIRONMENT", "").lower()
    return name if name in get_args(Environment) else "development"


def get_config_file_path() -> Path | None:
    """Locate the configuration file to load when none is given.

    ``TREASUREBOT_CONFIG`` wins when it names an existing file. Otherwise
    ``treasurebot.<environment>.yaml`` is preferred over ``treasurebot.yaml``
    in the working directory.
    """
    if explicit := os.getenv("TREASUREBOT_CONFIG"):
        path = Path(explicit)
        if path.exists():
            return path
        raise ConfigError(f"TREASUREBOT_CONFIG points to a missing file: {path}")

    for path in (Path(f"treasurebot.{get_environment()}.yaml"), Path("treasurebot.yaml")):
        if path.exists():
            return path

    return None


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes", "on")


def _parse_number(name: str, value: str, kind: type) -> Any:
    try:
        return kind(value)
    except ValueError as e:
        raise ConfigError(f"Invalid {name}: {value}") from e


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config_from_file(config_path: Path) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Loaded configuration

    Raises:
        ConfigError: If configuration is invalid or file cannot be read
    """
    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        return Config(**config_data)

    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e


# Environment variable -> (bot field, parser)
BOT_ENV_FIELDS: dict[str, tuple[str, type]] = {
    "TREASUREBOT_NETWORK": ("network", str),
    "TREASUREBOT_MODE_AMAZON": ("mode_amazon", bool),
    "TREASUREBOT_MODE_ADVENTURE": ("mode_adventure", bool),
    "TREASUREBOT_MIN_HERO_ENERGY_PERCENTAGE": ("min_hero_energy_percentage", float),
    "TREASUREBOT_NUM_HERO_WORK": ("num_hero_work", int),
    "TREASUREBOT_ALERT_SHIELD": ("alert_shield", int),
    "TREASUREBOT_HOUSE_HEROES": ("house_heroes", str),
    "TREASUREBOT_ADVENTURE_HEROES": ("adventure_heroes", str),
    "TREASUREBOT_LOOP_SLEEP_SECONDS": ("loop_sleep_seconds", float),
}


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Environment variables are mapped as follows:
    - TREASUREBOT_ENVIRONMENT: Environment name
    - TREASUREBOT_DEBUG: Enable debug mode (true/false)
    - TREASUREBOT_LOG_LEVEL / TREASUREBOT_LOG_FORMAT: Logging settings
    - TREASUREBOT_METRICS_PORT: Metrics server port (also enables metrics)
    - TREASUREBOT_WEB_PORT: Status endpoint port (also enables it)
    - TREASUREBOT_NETWORK, TREASUREBOT_MODE_AMAZON, TREASUREBOT_MODE_ADVENTURE,
      TREASUREBOT_MIN_HERO_ENERGY_PERCENTAGE, TREASUREBOT_NUM_HERO_WORK,
      TREASUREBOT_ALERT_SHIELD, TREASUREBOT_HOUSE_HEROES,
      TREASUREBOT_ADVENTURE_HEROES, TREASUREBOT_LOOP_SLEEP_SECONDS: Bot settings

    Returns:
        Configuration loaded from environment variables

    Raises:
        ConfigError: If a variable cannot be parsed or validated
    """
    config_data: dict[str, Any] = {}

    if env_val := os.getenv("TREASUREBOT_ENVIRONMENT"):
        config_data["environment"] = env_val.lower()
    if env_val := os.getenv("TREASUREBOT_DEBUG"):
        config_data["debug"] = _parse_bool(env_val)

    logging_config: dict[str, Any] = {}
    if env_val := os.getenv("TREASUREBOT_LOG_LEVEL"):
        logging_config["level"] = env_val.upper()
    if env_val := os.getenv("TREASUREBOT_LOG_FORMAT"):
        logging_config["format"] = env_val.lower()
    if logging_config:
        config_data["logging"] = logging_config

    if env_val := os.getenv("TREASUREBOT_METRICS_PORT"):
        config_data["metrics"] = {
            "enabled": True,
            "port": _parse_number("TREASUREBOT_METRICS_PORT", env_val, int),
        }

    if env_val := os.getenv("TREASUREBOT_WEB_PORT"):
        config_data["web"] = {
            "enabled": True,
            "port": _parse_number("TREASUREBOT_WEB_PORT", env_val, int),
        }

    bot_config: dict[str, Any] = {}
    for env_name, (field_name, kind) in BOT_ENV_FIELDS.items():
        env_val = os.getenv(env_name)
        if not env_val:
            continue
        if kind is bool:
            bot_config[field_name] = _parse_bool(env_val)
        elif kind is str:
            bot_config[field_name] = env_val
        else:
            bot_config[field_name] = _parse_number(env_name, env_val, kind)
    if bot_config:
        config_data["bot"] = bot_config

    try:
        return Config(**config_data)
    except ValidationError as e:
        raise ConfigError(f"Environment configuration validation failed: {e}") from e


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded in the following order (later sources override earlier):
    1. Default values
    2. Configuration file (if provided)
    3. Environment variables

    Args:
        config_path: Optional path to configuration file

    Returns:
        Merged configuration
    """
    config_data = Config().model_dump()

    if config_path and config_path.exists():
        file_config = load_config_from_file(config_path)
        config_data = _deep_merge(config_data, file_config.model_dump(exclude_unset=True))

    env_config = load_config_from_env()
    config_data = _deep_merge(config_data, env_config.model_dump(exclude_unset=True))

    try:
        return Config(**config_data)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e


def validate_config(config: Config) -> None:
    """Validate configuration for consistency and correctness.

    Args:
        config: Configuration to validate

    Raises:
        ConfigError: If configuration is invalid
    """
    if config.metrics.port <= 0 or config.metrics.port > 65535:
        raise ConfigError("metrics.port must be between 1 and 65535")

    if config.web.port <= 0 or config.web.port > 65535:
        raise ConfigError("web.port must be between 1 and 65535")

    if config.metrics.enabled and config.web.enabled and config.metrics.port == config.web.port:
        raise ConfigError("metrics.port and web.port must differ")

    if config.environment == "production":
        if config.debug:
            raise ConfigError("Debug mode should not be enabled in production")

        if config.logging.level == "DEBUG":
            raise ConfigError("DEBUG logging should not be used in production")

        if not config.logging.enable_redaction:
            raise ConfigError("Log redaction should be enabled in production")
