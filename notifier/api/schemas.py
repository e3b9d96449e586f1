"""Pydantic request/response schemas for the HTTP API.

These are the external JSON contracts. Field names follow the browser
client (camelCase); the legacy ``user_chapa``/``chapa_target`` names are
accepted as well.
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, StrictStr, field_validator


def _coerce_owner(value: Any) -> Any:
    """Badge numbers may arrive as JSON integers."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
class SubscriptionKeys(BaseModel):
    p256dh: StrictStr
    auth: StrictStr


class SubscribeRequest(BaseModel):
    endpoint: StrictStr
    keys: SubscriptionKeys
    owner_id: Optional[StrictStr] = Field(
        None, validation_alias=AliasChoices("ownerId", "user_chapa")
    )

    @field_validator("owner_id", mode="before")
    @classmethod
    def coerce_owner(cls, v: Any) -> Any:
        return _coerce_owner(v)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "endpoint": "https://fcm.googleapis.com/fcm/send/dXk2...",
                    "keys": {"p256dh": "BNcRdreALRFX...", "auth": "tBHItJI5svbpez7KI4CCXg"},
                    "ownerId": "4521",
                }
            ]
        }
    }


class UnsubscribeRequest(BaseModel):
    endpoint: StrictStr


class NotifyRequest(BaseModel):
    title: Optional[StrictStr] = None
    body: Optional[StrictStr] = None
    url: Optional[StrictStr] = None
    owner_id: Optional[StrictStr] = Field(
        None, validation_alias=AliasChoices("ownerId", "chapa_target")
    )

    @field_validator("owner_id", mode="before")
    @classmethod
    def coerce_owner(cls, v: Any) -> Any:
        return _coerce_owner(v)


class CheckoutRequest(BaseModel):
    chapa: Optional[StrictStr] = None
    price_id: Optional[StrictStr] = Field(None, validation_alias=AliasChoices("priceId", "price_id"))

    @field_validator("chapa", mode="before")
    @classmethod
    def coerce_chapa(cls, v: Any) -> Any:
        return _coerce_owner(v)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class MessageResponse(BaseModel):
    message: str


class NotifyResponse(BaseModel):
    message: str
    recipients: int


class WebhookResponse(BaseModel):
    received: bool = True
    eventType: str


class CheckoutResponse(BaseModel):
    sessionId: str


class VapidKeyResponse(BaseModel):
    publicKey: str
