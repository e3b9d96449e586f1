"""Webhook signature verification.

Verification runs on the exact bytes received. The body is decoded as
UTF-8 for the signature check and only parsed as JSON afterwards; nothing
is re-serialized in between.
"""

import json
from typing import Optional, Union

import stripe

from notifier.logging import get_logger

from .events import BillingEvent, parse_event
from .exceptions import MalformedEvent, SignatureInvalid

logger = get_logger(__name__, component="webhook")

DEFAULT_TOLERANCE_SECONDS = 300


class WebhookVerifier:
    """Authenticate provider webhooks with a shared signing secret."""

    def __init__(self, secret: str, tolerance: int = DEFAULT_TOLERANCE_SECONDS):
        if not secret:
            raise ValueError("Webhook signing secret must not be empty")
        self._secret = secret
        self.tolerance = tolerance

    def verify(self, payload: Union[bytes, str], signature_header: Optional[str]) -> BillingEvent:
        """Verify a raw webhook body and return the typed event.

        Args:
            payload: Request body exactly as received
            signature_header: Value of the provider signature header

        Raises:
            SignatureInvalid: Missing header, bad signature, or expired timestamp
            MalformedEvent: Authentic payload that is not a usable event
        """
        if not signature_header:
            raise SignatureInvalid("Missing signature header")

        if isinstance(payload, bytes):
            try:
                text = payload.decode("utf-8")
            except UnicodeDecodeError as e:
                raise SignatureInvalid("Payload is not valid UTF-8") from e
        else:
            text = payload

        try:
            stripe.WebhookSignature.verify_header(
                text, signature_header, self._secret, self.tolerance
            )
        except stripe.SignatureVerificationError as e:
            logger.warning(
                f"Webhook signature verification failed: {e.user_message or e}",
                extra={"event": "webhook.signature_invalid"},
            )
            raise SignatureInvalid(str(e.user_message or e)) from e

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedEvent(f"Invalid JSON payload: {e}") from e

        event = parse_event(document)
        logger.info(
            f"Webhook signature verified. Event type: {event.type}",
            extra={"event": "webhook.verified", "event_id": event.id, "event_type": event.type},
        )
        return event
