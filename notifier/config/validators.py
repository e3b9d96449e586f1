"""Soft configuration checks that warn instead of failing."""

import warnings
from typing import List

from .models import AppConfig


def check_for_warnings(app_config: AppConfig, environment: str = "local") -> List[str]:
    """
    Inspect a validated configuration for risky but legal settings.

    Args:
        app_config: Validated application configuration
        environment: Deployment environment label

    Returns:
        List of warning messages
    """
    warning_messages = []

    if "*" in app_config.server.allowed_origins:
        warning_messages.append(
            f"server.allowed_origins contains '*' ({environment}); any site can call the API"
        )

    if not app_config.entitlements.features:
        warning_messages.append(
            "entitlements.features is empty; subscribers will not gain any feature flags"
        )

    if not app_config.entitlements.enforce_event_order:
        warning_messages.append(
            "entitlements.enforce_event_order is disabled; a late 'updated' event can "
            "re-activate a canceled subscription"
        )

    if app_config.notifications.delivery_timeout > 30:
        warning_messages.append(
            f"notifications.delivery_timeout ({app_config.notifications.delivery_timeout}s) "
            "holds /notify open for slow push services"
        )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message through the warnings module as a UserWarning."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
