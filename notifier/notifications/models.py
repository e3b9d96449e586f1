"""Result types and exceptions for push delivery.

Delivery errors are scoped to a single endpoint; the fan-out engine turns
them into DeliveryResult entries instead of letting them escape notify().
"""

from dataclasses import dataclass, field
from typing import List, Optional

from notifier.domain.models import DeliveryOutcome


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class DeliveryError(NotificationError):
    """A single delivery attempt failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DeliveryTransientError(DeliveryError):
    """The push service may accept the message later (5xx, 429, timeouts)."""

    pass


class DeliveryPermanentError(DeliveryError):
    """The push service reports the endpoint as gone or unknown (404/410)."""

    pass


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one delivery attempt to one endpoint.

    Attributes:
        endpoint: Endpoint URL the attempt targeted
        outcome: delivered, failed-transient, or failed-permanent
        status_code: HTTP status reported by the push service, if any
        error: Error message for failed attempts
        pruned: Whether the endpoint was removed from the registry
    """

    endpoint: str
    outcome: DeliveryOutcome
    status_code: Optional[int] = None
    error: Optional[str] = None
    pruned: bool = False

    def is_success(self) -> bool:
        return self.outcome is DeliveryOutcome.DELIVERED


@dataclass
class NotifySummary:
    """Aggregate result of a notify() call."""

    status: str  # "sent" or "no_recipients"
    targeted: int
    owner_id: Optional[str] = None
    results: List[DeliveryResult] = field(default_factory=list)

    @classmethod
    def no_recipients(cls, owner_id: Optional[str] = None) -> "NotifySummary":
        return cls(status="no_recipients", targeted=0, owner_id=owner_id)

    @property
    def has_recipients(self) -> bool:
        return self.status != "no_recipients"

    @property
    def delivered(self) -> int:
        return self._count(DeliveryOutcome.DELIVERED)

    @property
    def failed_transient(self) -> int:
        return self._count(DeliveryOutcome.FAILED_TRANSIENT)

    @property
    def failed_permanent(self) -> int:
        return self._count(DeliveryOutcome.FAILED_PERMANENT)

    @property
    def pruned(self) -> List[str]:
        return [result.endpoint for result in self.results if result.pruned]

    @property
    def message(self) -> str:
        if not self.has_recipients:
            if self.owner_id is not None:
                return f"No active subscriptions found for ownerId: {self.owner_id}."
            return "No active subscriptions found."
        return f"Notification process completed for {self.targeted} recipient(s)."

    def _count(self, outcome: DeliveryOutcome) -> int:
        return sum(1 for result in self.results if result.outcome is outcome)
