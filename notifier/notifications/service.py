"""Notification fan-out engine.

Resolves the endpoints a message is meant for, delivers one attempt to each
of them concurrently, waits for every attempt to settle, and removes
endpoints the push service reports as gone.
"""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor, wait
from contextvars import copy_context
from typing import List, Optional

from notifier.config.models import NotificationsConfig
from notifier.domain.models import DeliveryOutcome, NotificationRequest, PushEndpoint
from notifier.logging import get_logger, short_endpoint
from notifier.logging.context import log_context
from notifier.persistence import StorageError
from notifier.registry import EndpointRegistry

from .models import (
    DeliveryPermanentError,
    DeliveryResult,
    DeliveryTransientError,
    NotifySummary,
)
from .payloads import NotificationPayload, build_payload
from .transport import DeliveryTransport

logger = get_logger(__name__, component="fanout")


class NotificationService:
    """Fan a notification out to every matching push endpoint.

    Each call makes exactly one attempt per endpoint. There is no retry and
    no rate limiting; a failed endpoint never blocks or aborts the others.
    """

    def __init__(
        self,
        registry: EndpointRegistry,
        transport: DeliveryTransport,
        config: Optional[NotificationsConfig] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.registry = registry
        self.transport = transport
        self.config = config or NotificationsConfig()
        self.logger = logger_instance or logger

    def notify(self, request: NotificationRequest) -> NotifySummary:
        """Deliver a notification and prune dead endpoints.

        Returns:
            NotifySummary with one DeliveryResult per attempted endpoint

        Raises:
            StorageError: If the candidate endpoints cannot be read
        """
        notification_id = uuid.uuid4().hex[:12]

        with log_context(notification_id=notification_id):
            candidates = self.registry.resolve(request.owner_id)

            if not candidates:
                self.logger.info(
                    "No recipients for notification",
                    extra={"event": "notify.no_recipients", "owner_id": request.owner_id},
                )
                return NotifySummary.no_recipients(request.owner_id)

            payload = build_payload(request, self.config)

            self.logger.info(
                f"Sending notification to {len(candidates)} endpoint(s)",
                extra={
                    "event": "notify.started",
                    "targeted": len(candidates),
                    "owner_id": request.owner_id,
                },
            )

            results = self._deliver_all(candidates, payload)
            summary = NotifySummary(
                status="sent",
                targeted=len(candidates),
                owner_id=request.owner_id,
                results=results,
            )

            self.logger.info(
                f"Notification complete: {summary.delivered} delivered, "
                f"{summary.failed_transient} transient failures, "
                f"{summary.failed_permanent} permanent failures",
                extra={
                    "event": "notify.completed",
                    "targeted": summary.targeted,
                    "delivered": summary.delivered,
                    "failed_transient": summary.failed_transient,
                    "failed_permanent": summary.failed_permanent,
                    "pruned": len(summary.pruned),
                },
            )
            return summary

    def _deliver_all(self, candidates: List[PushEndpoint], payload: NotificationPayload) -> List[DeliveryResult]:
        """Run one attempt per endpoint and join on all of them."""
        body = payload.to_json()
        workers = min(len(candidates), self.config.max_workers)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="push-delivery") as pool:
            # Each task runs in a copy of the caller's context so log fields follow it
            futures = [
                pool.submit(copy_context().run, self._deliver_one, endpoint, body)
                for endpoint in candidates
            ]
            wait(futures)

        results = []
        for endpoint, future in zip(candidates, futures):
            error = future.exception()
            if error is None:
                results.append(future.result())
                continue

            self.logger.error(
                f"Unexpected error delivering to {short_endpoint(endpoint.endpoint)}: {error}",
                exc_info=error,
                extra={"event": "notify.delivery.crashed", "error_type": type(error).__name__},
            )
            results.append(
                DeliveryResult(
                    endpoint=endpoint.endpoint,
                    outcome=DeliveryOutcome.FAILED_TRANSIENT,
                    error=str(error),
                )
            )
        return results

    def _deliver_one(self, endpoint: PushEndpoint, body: str) -> DeliveryResult:
        with log_context(endpoint=short_endpoint(endpoint.endpoint), owner_id=endpoint.owner_id):
            try:
                self.transport.send(endpoint, body)
            except DeliveryPermanentError as e:
                pruned = self._prune(endpoint.endpoint)
                self.logger.warning(
                    f"Endpoint gone, removed from registry: {e}",
                    extra={
                        "event": "notify.delivery.permanent_failure",
                        "status_code": e.status_code,
                        "pruned": pruned,
                    },
                )
                return DeliveryResult(
                    endpoint=endpoint.endpoint,
                    outcome=DeliveryOutcome.FAILED_PERMANENT,
                    status_code=e.status_code,
                    error=str(e),
                    pruned=pruned,
                )
            except DeliveryTransientError as e:
                self.logger.warning(
                    f"Delivery failed, endpoint kept: {e}",
                    extra={
                        "event": "notify.delivery.transient_failure",
                        "status_code": e.status_code,
                    },
                )
                return DeliveryResult(
                    endpoint=endpoint.endpoint,
                    outcome=DeliveryOutcome.FAILED_TRANSIENT,
                    status_code=e.status_code,
                    error=str(e),
                )

            self.logger.debug("Notification delivered", extra={"event": "notify.delivery.success"})
            return DeliveryResult(endpoint=endpoint.endpoint, outcome=DeliveryOutcome.DELIVERED)

    def _prune(self, endpoint: str) -> bool:
        """Remove a dead endpoint; a storage failure leaves it for the next run."""
        try:
            self.registry.unsubscribe(endpoint)
            return True
        except StorageError as e:
            self.logger.error(
                f"Failed to prune dead endpoint: {e}",
                extra={"event": "notify.prune.failed"},
            )
            return False
