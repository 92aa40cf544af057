"""Configuration management for treasurebot.

This module provides configuration loading and validation for the bot,
its logging, metrics and status endpoint.
"""

from .config import (
    BOT_ENV_FIELDS,
    BotConfig,
    Config,
    ConfigError,
    LoggingConfig,
    MetricsConfig,
    WebConfig,
    get_config_file_path,
    get_environment,
    load_config,
    load_config_from_env,
    load_config_from_file,
    validate_config,
)

__all__ = [
    "BOT_ENV_FIELDS",
    "BotConfig",
    "Config",
    "ConfigError",
    "LoggingConfig",
    "MetricsConfig",
    "WebConfig",
    "get_config_file_path",
    "get_environment",
    "load_config",
    "load_config_from_env",
    "load_config_from_file",
    "validate_config",
]
