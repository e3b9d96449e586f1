"""Table-driven dispatch of verified billing events."""

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from notifier.logging import get_logger
from notifier.logging.context import log_context

from .events import BillingEvent, EventKind
from .reconciler import EntitlementReconciler, ReconcileOutcome

logger = get_logger(__name__, component="dispatcher")

Handler = Callable[[BillingEvent], Optional[ReconcileOutcome]]


@dataclass(frozen=True)
class DispatchResult:
    """Acknowledgement returned to the webhook caller."""

    event_id: str
    event_type: str
    kind: EventKind
    outcome: Optional[ReconcileOutcome] = None

    @property
    def handled(self) -> bool:
        return self.kind is not EventKind.UNHANDLED


class EventDispatcher:
    """Route each event kind to exactly one action.

    The table must cover every EventKind; construction fails otherwise, so a
    new kind cannot be added without deciding what it does.
    """

    def __init__(self, reconciler: EntitlementReconciler):
        self.reconciler = reconciler
        self._table: Dict[EventKind, Handler] = {
            EventKind.SUBSCRIPTION_CREATED: reconciler.reconcile_update,
            EventKind.SUBSCRIPTION_UPDATED: reconciler.reconcile_update,
            EventKind.SUBSCRIPTION_DELETED: reconciler.reconcile_cancellation,
            EventKind.PAYMENT_SUCCEEDED: self._payment_succeeded,
            EventKind.PAYMENT_FAILED: self._payment_failed,
            EventKind.UNHANDLED: self._unhandled,
        }
        missing = [kind.value for kind in EventKind if kind not in self._table]
        if missing:
            raise ValueError(f"No handler registered for event kinds: {', '.join(missing)}")

    def dispatch(self, event: BillingEvent) -> DispatchResult:
        """Run the action for event.kind.

        Raises:
            ReconciliationError: If a subscription event cannot be applied
            StorageError: If the entitlement store fails
        """
        with log_context(event_id=event.id, event_type=event.type):
            logger.debug("Dispatching event", extra={"event": "webhook.dispatching", "kind": event.kind.value})
            outcome = self._table[event.kind](event)
            return DispatchResult(
                event_id=event.id,
                event_type=event.type,
                kind=event.kind,
                outcome=outcome,
            )

    def _payment_succeeded(self, event: BillingEvent) -> None:
        logger.info("Payment succeeded", extra={"event": "billing.payment_succeeded", **_invoice_fields(event)})

    def _payment_failed(self, event: BillingEvent) -> None:
        logger.warning("Payment failed", extra={"event": "billing.payment_failed", **_invoice_fields(event)})

    def _unhandled(self, event: BillingEvent) -> None:
        logger.info(
            f"Unhandled event type: {event.type}",
            extra={"event": "webhook.unhandled_event"},
        )


def _invoice_fields(event: BillingEvent) -> Dict[str, object]:
    invoice = event.data_object
    customer = invoice.get("customer")
    if isinstance(customer, dict):
        customer = customer.get("id")
    return {
        "customer_id": customer,
        "subscription_id": invoice.get("subscription"),
        "amount": invoice.get("amount_paid", invoice.get("amount_due")),
    }
