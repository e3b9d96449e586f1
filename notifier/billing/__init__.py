"""Billing webhooks and entitlement reconciliation.

Flow: raw webhook -> WebhookVerifier -> EventDispatcher -> EntitlementReconciler.
"""

from .checkout import CheckoutService
from .dispatcher import DispatchResult, EventDispatcher
from .events import BillingEvent, EventKind, parse_event
from .exceptions import (
    CheckoutDisabled,
    CheckoutError,
    MalformedEvent,
    MissingCorrelation,
    ReconciliationError,
    SignatureInvalid,
    UnsupportedStatus,
    WebhookError,
)
from .reconciler import EntitlementReconciler, ReconcileOutcome, ReconcileStatus
from .verifier import WebhookVerifier

__all__ = [
    "WebhookVerifier",
    "EventDispatcher",
    "DispatchResult",
    "EntitlementReconciler",
    "ReconcileOutcome",
    "ReconcileStatus",
    "CheckoutService",
    "BillingEvent",
    "EventKind",
    "parse_event",
    "WebhookError",
    "SignatureInvalid",
    "MalformedEvent",
    "ReconciliationError",
    "MissingCorrelation",
    "UnsupportedStatus",
    "CheckoutError",
    "CheckoutDisabled",
]
