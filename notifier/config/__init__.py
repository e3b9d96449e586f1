"""Configuration management for the notifier service."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_app_config, load_config
from .models import (
    AppConfig,
    EntitlementsConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    NotificationsConfig,
    ServerConfig,
    WebhookConfig,
)

__all__ = [
    # Loaders
    "load_config",
    "load_app_config",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "ServerConfig",
    "NotificationsConfig",
    "EntitlementsConfig",
    "WebhookConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
