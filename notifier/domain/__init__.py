"""Domain models for the notifier service."""

from .models import (
    DeliveryOutcome,
    EntitlementRecord,
    NotificationRequest,
    PushEndpoint,
    SubscriptionStatus,
)

__all__ = [
    "EntitlementRecord",
    "SubscriptionStatus",
    "PushEndpoint",
    "NotificationRequest",
    "DeliveryOutcome",
]
