"""Typed representation of verified billing provider events."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .exceptions import MalformedEvent


class EventKind(str, Enum):
    """Closed set of event kinds the service distinguishes.

    Every provider event type outside this set maps to UNHANDLED.
    """

    SUBSCRIPTION_CREATED = "customer.subscription.created"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"
    PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
    PAYMENT_FAILED = "invoice.payment_failed"
    UNHANDLED = "unhandled"

    @classmethod
    def from_type(cls, event_type: str) -> "EventKind":
        try:
            kind = cls(event_type)
        except ValueError:
            return cls.UNHANDLED
        # "unhandled" is not a provider event type
        return cls.UNHANDLED if kind is cls.UNHANDLED else kind


@dataclass(frozen=True)
class BillingEvent:
    """A verified event with the provider's type string kept for reporting."""

    id: str
    type: str
    kind: EventKind
    created: Optional[int] = None
    data_object: Dict[str, Any] = field(default_factory=dict)


def parse_event(document: Any) -> BillingEvent:
    """Build a BillingEvent from a decoded webhook JSON document.

    Raises:
        MalformedEvent: If the document lacks an id, a type, or a data object
    """
    if not isinstance(document, dict):
        raise MalformedEvent("Event payload must be a JSON object")

    event_id = document.get("id")
    event_type = document.get("type")
    if not isinstance(event_id, str) or not event_id:
        raise MalformedEvent("Event payload has no id")
    if not isinstance(event_type, str) or not event_type:
        raise MalformedEvent("Event payload has no type")

    data = document.get("data")
    data_object = data.get("object") if isinstance(data, dict) else None
    if not isinstance(data_object, dict):
        raise MalformedEvent(f"Event {event_id} has no data.object")

    created = document.get("created")
    if isinstance(created, bool) or not isinstance(created, int):
        created = None

    return BillingEvent(
        id=event_id,
        type=event_type,
        kind=EventKind.from_type(event_type),
        created=created,
        data_object=data_object,
    )
