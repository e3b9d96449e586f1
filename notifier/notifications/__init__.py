"""Web Push notification fan-out.

- NotificationService: resolves recipients and delivers concurrently
- DeliveryTransport / WebPushTransport: single-attempt delivery
- NotificationPayload / build_payload: message body with fallbacks
- DeliveryResult / NotifySummary: per-endpoint and aggregate outcomes
"""

from .models import (
    DeliveryError,
    DeliveryPermanentError,
    DeliveryResult,
    DeliveryTransientError,
    NotificationError,
    NotifySummary,
)
from .payloads import NotificationPayload, build_payload
from .service import NotificationService
from .transport import PERMANENT_STATUS_CODES, DeliveryTransport, WebPushTransport

__all__ = [
    "NotificationService",
    "DeliveryTransport",
    "WebPushTransport",
    "PERMANENT_STATUS_CODES",
    "NotificationPayload",
    "build_payload",
    "DeliveryResult",
    "NotifySummary",
    "NotificationError",
    "DeliveryError",
    "DeliveryTransientError",
    "DeliveryPermanentError",
]
