"""Core domain models for entitlements and push endpoints.

- EntitlementRecord: premium access for one user, mirrored from billing events
- PushEndpoint: one browser/device able to receive Web Push messages
- NotificationRequest: an ephemeral "send this to subscribers" instruction
- DeliveryOutcome: how a single delivery attempt ended
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from notifier.utils.timestamps import ensure_utc


class SubscriptionStatus(str, Enum):
    """Billing subscription states tracked on an entitlement."""

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    PAUSED = "paused"

    @property
    def grants_access(self) -> bool:
        """Whether a user in this state should see premium features."""
        return self in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING)


class DeliveryOutcome(str, Enum):
    """Result of one delivery attempt to one endpoint."""

    DELIVERED = "delivered"
    FAILED_TRANSIENT = "failed-transient"
    FAILED_PERMANENT = "failed-permanent"


class EntitlementRecord(BaseModel):
    """Premium entitlement for a single user.

    Keyed by the user identifier (worker badge number). The record mirrors
    the last processed subscription event, not necessarily the most recently
    emitted one.
    """

    user_id: str = Field(..., min_length=1, description="Worker badge number (chapa)")
    customer_id: Optional[str] = Field(None, description="Billing customer reference")
    subscription_id: Optional[str] = Field(None, description="Billing subscription reference")
    plan_tag: str = Field(..., min_length=1, description="Plan label")
    status: SubscriptionStatus = Field(..., description="Subscription status")
    period_start: Optional[datetime] = Field(None, description="Current period start (UTC)")
    period_end: Optional[datetime] = Field(None, description="Current period end (UTC)")
    canceled_at: Optional[datetime] = Field(None, description="Cancellation time (UTC)")
    features: Dict[str, bool] = Field(default_factory=dict, description="Named feature flags")
    last_event_id: Optional[str] = Field(None, description="Id of the last applied event")
    last_event_created: Optional[int] = Field(
        None, description="Creation time (Unix seconds) of the last applied event"
    )

    @field_validator("period_start", "period_end", "canceled_at")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @property
    def has_access(self) -> bool:
        return self.status.grants_access

    def feature_enabled(self, name: str) -> bool:
        return self.has_access and self.features.get(name, False)

    model_config = {"json_schema_extra": {"example": {
        "user_id": "4521",
        "customer_id": "cus_Q1w2e3",
        "subscription_id": "sub_1Nx2y3",
        "plan_tag": "premium_mensual",
        "status": "active",
        "period_start": "2025-11-01T00:00:00Z",
        "period_end": "2025-12-01T00:00:00Z",
        "canceled_at": None,
        "features": {"sueldometro": True, "oraculo": True, "chatbot_ia": True},
    }}}


class PushEndpoint(BaseModel):
    """A registered Web Push subscription."""

    endpoint: str = Field(..., min_length=1, description="Push service URL")
    p256dh: str = Field(..., min_length=1, description="Client P-256 ECDH public key")
    auth: str = Field(..., min_length=1, description="Client authentication secret")
    owner_id: Optional[str] = Field(None, description="Owning user identifier, if known")

    @field_validator("owner_id")
    @classmethod
    def blank_owner_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    def subscription_info(self) -> Dict[str, object]:
        """Shape expected by Web Push libraries."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }


class NotificationRequest(BaseModel):
    """A message to fan out to registered endpoints."""

    title: Optional[str] = None
    body: Optional[str] = None
    url: Optional[str] = None
    owner_id: Optional[str] = Field(None, description="Only deliver to this owner's endpoints")

    @field_validator("owner_id")
    @classmethod
    def blank_owner_is_broadcast(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None
