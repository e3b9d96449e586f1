"""Test helper utilities for notifier tests."""

from .billing import WEBHOOK_SECRET, sign_payload, subscription_event, webhook_body
from .transport import FakeTransport

__all__ = [
    "FakeTransport",
    "WEBHOOK_SECRET",
    "sign_payload",
    "subscription_event",
    "webhook_body",
]
