"""HTTP API for the notifier service."""

from .app import create_app

__all__ = ["create_app"]
