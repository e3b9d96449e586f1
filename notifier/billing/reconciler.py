"""Entitlement reconciliation from subscription events.

An entitlement is a pure function of the latest applied subscription event:
updates replace the whole record, cancellations only flip the status and
stamp the cancellation time.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from notifier.config.models import EntitlementsConfig
from notifier.domain.models import EntitlementRecord, SubscriptionStatus
from notifier.logging import get_logger
from notifier.logging.context import log_context
from notifier.persistence import Database, EntitlementRepository
from notifier.utils.timestamps import from_unix, utc_now

from .events import BillingEvent
from .exceptions import MissingCorrelation, UnsupportedStatus

logger = get_logger(__name__, component="reconciler")


class ReconcileStatus(str, Enum):
    APPLIED = "applied"
    STALE = "stale"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ReconcileOutcome:
    """What a reconcile call did to the store."""

    status: ReconcileStatus
    user_id: str

    @property
    def applied(self) -> bool:
        return self.status is ReconcileStatus.APPLIED


class EntitlementReconciler:
    """Apply subscription events to entitlement records."""

    def __init__(self, database: Database, config: Optional[EntitlementsConfig] = None):
        self.database = database
        self.config = config or EntitlementsConfig()

    def reconcile_update(self, event: BillingEvent) -> ReconcileOutcome:
        """Upsert the entitlement described by a created/updated subscription.

        Raises:
            MissingCorrelation: If the subscription has no user identifier
            UnsupportedStatus: If the subscription status is unknown
            StorageError: If the write fails
        """
        subscription = event.data_object
        user_id = self.correlate(subscription)

        with log_context(event_id=event.id, user_id=user_id):
            record = self.build_record(user_id, subscription, event)

            with self.database.session() as session:
                written = EntitlementRepository(session).upsert(
                    record, enforce_order=self.config.enforce_event_order
                )

            if not written:
                return self._stale(user_id, event)

            logger.info(
                f"Entitlement updated: status={record.status.value}",
                extra={
                    "event": "entitlement.upserted",
                    "status": record.status.value,
                    "subscription_id": record.subscription_id,
                    "period_end": record.period_end.isoformat() if record.period_end else None,
                },
            )
            return ReconcileOutcome(ReconcileStatus.APPLIED, user_id)

    def reconcile_cancellation(self, event: BillingEvent) -> ReconcileOutcome:
        """Mark the user's entitlement canceled. The record is kept.

        Raises:
            MissingCorrelation: If the subscription has no user identifier
            StorageError: If the write fails
        """
        subscription = event.data_object
        user_id = self.correlate(subscription)
        canceled_at = (
            from_unix(subscription.get("canceled_at"))
            or from_unix(subscription.get("ended_at"))
            or utc_now()
        )

        with log_context(event_id=event.id, user_id=user_id):
            with self.database.session() as session:
                repository = EntitlementRepository(session)
                updated = repository.mark_canceled(
                    user_id,
                    canceled_at,
                    event_id=event.id,
                    event_created=event.created,
                    enforce_order=self.config.enforce_event_order,
                )
                # Only consulted to label the log line; the update above is final
                exists = updated > 0 or repository.get(user_id) is not None

            if not updated and exists:
                return self._stale(user_id, event)

            if not updated:
                logger.warning(
                    "Cancellation for a user with no entitlement record",
                    extra={"event": "entitlement.cancel_not_found"},
                )
                return ReconcileOutcome(ReconcileStatus.NOT_FOUND, user_id)

            logger.info(
                "Entitlement canceled",
                extra={"event": "entitlement.canceled", "canceled_at": canceled_at.isoformat()},
            )
            return ReconcileOutcome(ReconcileStatus.APPLIED, user_id)

    def correlate(self, subscription: Dict[str, Any]) -> str:
        """Return the user identifier stored in subscription metadata.

        Numeric identifiers are accepted and converted to strings.

        Raises:
            MissingCorrelation: If the identifier is absent or blank
        """
        key = self.config.correlation_key
        metadata = subscription.get("metadata")
        value = metadata.get(key) if isinstance(metadata, dict) else None

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(int(value)) if float(value).is_integer() else str(value)
        if not isinstance(value, str) or not value.strip():
            error = MissingCorrelation(key, subscription.get("id"))
            logger.error(str(error), extra={"event": "entitlement.missing_correlation"})
            raise error
        return value.strip()

    def build_record(self, user_id: str, subscription: Dict[str, Any], event: BillingEvent) -> EntitlementRecord:
        """Map a subscription object onto a full entitlement record."""
        raw_status = subscription.get("status")
        try:
            status = SubscriptionStatus(raw_status)
        except ValueError:
            raise UnsupportedStatus(f"Unsupported subscription status: {raw_status!r}") from None

        period_start, period_end = _period_bounds(subscription)

        return EntitlementRecord(
            user_id=user_id,
            customer_id=_customer_id(subscription.get("customer")),
            subscription_id=subscription.get("id"),
            plan_tag=self.config.plan_tag,
            status=status,
            period_start=period_start,
            period_end=period_end,
            canceled_at=from_unix(subscription.get("canceled_at")),
            features={name: True for name in self.config.features},
            last_event_id=event.id,
            last_event_created=event.created,
        )

    def _stale(self, user_id: str, event: BillingEvent) -> ReconcileOutcome:
        logger.warning(
            "Ignoring event older than the last applied event",
            extra={"event": "entitlement.stale_event", "event_created": event.created},
        )
        return ReconcileOutcome(ReconcileStatus.STALE, user_id)


def _customer_id(customer: Any) -> Optional[str]:
    """Customer reference from either an id string or an expanded object."""
    if isinstance(customer, dict):
        customer = customer.get("id")
    return customer if isinstance(customer, str) and customer else None


def _period_bounds(subscription: Dict[str, Any]):
    """Current period start/end.

    Newer API versions moved the period fields from the subscription onto
    each subscription item, so fall back to the first item.
    """
    start = from_unix(subscription.get("current_period_start"))
    end = from_unix(subscription.get("current_period_end"))
    if start is not None and end is not None:
        return start, end

    items = subscription.get("items")
    data = items.get("data") if isinstance(items, dict) else None
    if isinstance(data, list) and data and isinstance(data[0], dict):
        first = data[0]
        start = start or from_unix(first.get("current_period_start"))
        end = end or from_unix(first.get("current_period_end"))
    return start, end
