"""Delivery transports for Web Push messages.

A transport performs exactly one attempt and reports failure through the
DeliveryError hierarchy. Retrying is not its job.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

import requests
from pywebpush import WebPushException, webpush

from notifier.domain.models import PushEndpoint
from notifier.logging import short_endpoint

from .models import DeliveryPermanentError, DeliveryTransientError

logger = logging.getLogger(__name__)

# Push services answer 404 or 410 once a browser has dropped the subscription
PERMANENT_STATUS_CODES = frozenset({404, 410})


class DeliveryTransport(ABC):
    """Sends one payload to one endpoint."""

    @abstractmethod
    def send(self, endpoint: PushEndpoint, payload: str) -> None:
        """Deliver payload to endpoint.

        Raises:
            DeliveryPermanentError: The endpoint no longer exists
            DeliveryTransientError: Any other failure, including timeouts
        """
        ...


class WebPushTransport(DeliveryTransport):
    """Web Push (RFC 8030) delivery with VAPID authentication via pywebpush."""

    def __init__(
        self,
        vapid_private_key: str,
        vapid_subject: str,
        ttl: int = 86400,
        timeout: float = 10,
        sender: Optional[Callable] = None,
    ):
        """Initialize the transport.

        Args:
            vapid_private_key: Application server private key
            vapid_subject: ``mailto:`` or https URL identifying the sender
            ttl: Seconds the push service may hold an undelivered message
            timeout: Per-request timeout in seconds
            sender: Replacement for pywebpush.webpush (for tests)
        """
        self.vapid_private_key = vapid_private_key
        self.vapid_subject = vapid_subject
        self.ttl = ttl
        self.timeout = timeout
        self._send = sender or webpush

    def send(self, endpoint: PushEndpoint, payload: str) -> None:
        try:
            self._send(
                subscription_info=endpoint.subscription_info(),
                data=payload,
                vapid_private_key=self.vapid_private_key,
                # pywebpush adds aud/exp to the claims dict, so each call gets its own
                vapid_claims={"sub": self.vapid_subject},
                ttl=self.ttl,
                timeout=self.timeout,
            )
        except WebPushException as e:
            response = getattr(e, "response", None)
            status_code = getattr(response, "status_code", None)
            message = f"Push service rejected delivery ({status_code or 'no response'}): {e}"

            if status_code in PERMANENT_STATUS_CODES:
                raise DeliveryPermanentError(message, status_code=status_code) from e
            raise DeliveryTransientError(message, status_code=status_code) from e
        except requests.exceptions.RequestException as e:
            logger.debug(f"Network error delivering to {short_endpoint(endpoint.endpoint)}: {e}")
            raise DeliveryTransientError(f"Network error during push delivery: {e}") from e
        except ValueError as e:
            # Undecodable key material; pywebpush fails before any request is made
            raise DeliveryTransientError(f"Could not encrypt payload for endpoint: {e}") from e
