"""Endpoint registry for Web Push subscriptions."""

from .exceptions import InvalidEndpoint
from .service import EndpointRegistry, build_endpoint

__all__ = ["EndpointRegistry", "InvalidEndpoint", "build_endpoint"]
