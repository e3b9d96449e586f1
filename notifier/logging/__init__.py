"""Structured logging for the notifier service."""

import logging
from typing import Optional


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges its component field with per-call extras."""

    def process(self, msg, kwargs):
        # Call-site extras win over the adapter defaults
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str, component: Optional[str] = None):
    """Get a logger, optionally tagging every record with a component.

    Args:
        name: Logger name (typically __name__)
        component: Optional component identifier to inject into all logs

    Returns:
        Logger or ComponentLoggerAdapter instance

    Example:
        >>> logger = get_logger(__name__, component="fanout")
        >>> logger.info("Delivery started", extra={"event": "notify.started"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger


def short_endpoint(endpoint: Optional[str], limit: int = 60) -> str:
    """Truncate a push endpoint URL for log output."""
    if not endpoint:
        return ""
    if len(endpoint) <= limit:
        return endpoint
    return endpoint[:limit] + "..."
