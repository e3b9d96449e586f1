"""HTTP routes for push registration, notification, and billing webhooks."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from notifier.billing import CheckoutDisabled, CheckoutError, ReconciliationError, WebhookError
from notifier.bootstrap import Services
from notifier.domain.models import NotificationRequest
from notifier.logging import get_logger
from notifier.persistence import StorageError
from notifier.registry import InvalidEndpoint

from .schemas import (
    CheckoutRequest,
    CheckoutResponse,
    MessageResponse,
    NotifyRequest,
    NotifyResponse,
    SubscribeRequest,
    UnsubscribeRequest,
    VapidKeyResponse,
    WebhookResponse,
)

logger = get_logger(__name__, component="api")

router = APIRouter()


def get_services(request: Request) -> Services:
    return request.app.state.services


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# ---------------------------------------------------------------------------
# Push endpoint registry
# ---------------------------------------------------------------------------
@router.post("/subscribe", status_code=201, response_model=MessageResponse)
def subscribe(body: SubscribeRequest, services: Services = Depends(get_services)):
    """Register or refresh a browser push subscription."""
    try:
        services.registry.subscribe(
            body.endpoint, body.keys.p256dh, body.keys.auth, owner_id=body.owner_id
        )
    except InvalidEndpoint as e:
        return error_response(400, f"Invalid subscription format: {e}")
    except StorageError:
        return error_response(500, "Failed to save subscription in database.")
    return MessageResponse(message="Subscription saved and persisted.")


@router.post("/unsubscribe", response_model=MessageResponse)
def unsubscribe(body: UnsubscribeRequest, services: Services = Depends(get_services)):
    """Remove a push subscription. Unknown endpoints also succeed."""
    if not body.endpoint.strip():
        return error_response(400, "Endpoint is required for unsubscription.")
    try:
        services.registry.unsubscribe(body.endpoint.strip())
    except StorageError:
        return error_response(500, "Failed to remove subscription from database.")
    return MessageResponse(message="Subscription removed and unpersisted.")


@router.get("/vapid-public-key", response_model=VapidKeyResponse)
def vapid_public_key(services: Services = Depends(get_services)):
    return VapidKeyResponse(publicKey=services.vapid_public_key)


# ---------------------------------------------------------------------------
# Notification fan-out
# ---------------------------------------------------------------------------
@router.post("/notify", response_model=NotifyResponse)
def notify(body: Optional[NotifyRequest] = None, services: Services = Depends(get_services)):
    """Send a notification to every subscriber, or to one owner's devices."""
    body = body or NotifyRequest()
    request = NotificationRequest(
        title=body.title, body=body.body, url=body.url, owner_id=body.owner_id
    )
    try:
        summary = services.notifications.notify(request)
    except StorageError:
        return error_response(500, "Failed to retrieve subscriptions.")
    return NotifyResponse(message=summary.message, recipients=summary.targeted)


# ---------------------------------------------------------------------------
# Billing
# ---------------------------------------------------------------------------
@router.post("/webhook", response_model=WebhookResponse)
async def webhook(request: Request, services: Services = Depends(get_services)):
    """Verify and apply a billing provider event.

    The body is read as raw bytes; it must not be parsed before the
    signature check.
    """
    payload = await request.body()
    signature = request.headers.get(services.app_config.webhook.signature_header)

    try:
        event = services.verifier.verify(payload, signature)
    except WebhookError as e:
        return error_response(400, f"Webhook error: {e}")

    try:
        await run_in_threadpool(services.dispatcher.dispatch, event)
    except (ReconciliationError, StorageError) as e:
        logger.error(
            f"Error processing webhook: {e}",
            extra={
                "event": "webhook.processing_failed",
                "event_id": event.id,
                "event_type": event.type,
                "error_type": type(e).__name__,
            },
        )
        return error_response(500, "Webhook processing failed.")

    return WebhookResponse(eventType=event.type)


@router.post("/create-checkout-session", response_model=CheckoutResponse)
def create_checkout_session(body: CheckoutRequest, services: Services = Depends(get_services)):
    """Start a hosted checkout for the premium plan."""
    if not services.checkout.enabled:
        return error_response(503, "Checkout is not configured.")
    if not body.chapa or not body.chapa.strip():
        return error_response(400, "Chapa es requerida")

    try:
        session_id = services.checkout.create_session(body.chapa.strip(), body.price_id)
    except CheckoutDisabled:
        return error_response(503, "Checkout is not configured.")
    except CheckoutError:
        return error_response(500, "Failed to create checkout session.")
    return CheckoutResponse(sessionId=session_id)


@router.get("/health")
def health():
    return {"status": "ok"}
