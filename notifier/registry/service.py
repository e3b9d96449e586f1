"""Endpoint registry: persisted Web Push endpoints and their keys."""

from typing import Any, List, Optional
from urllib.parse import urlparse

from notifier.domain.models import PushEndpoint
from notifier.logging import get_logger, short_endpoint
from notifier.persistence import Database, PushEndpointRepository

from .exceptions import InvalidEndpoint

logger = get_logger(__name__, component="registry")

ALLOWED_SCHEMES = ("https", "http")


class EndpointRegistry:
    """Subscribe, unsubscribe, and look up push endpoints.

    Every operation opens its own short transaction, so the registry can be
    shared by concurrent HTTP requests and delivery workers.
    """

    def __init__(self, database: Database):
        self.database = database

    def subscribe(self, endpoint: Any, p256dh: Any, auth: Any, owner_id: Optional[str] = None) -> PushEndpoint:
        """Register an endpoint, refreshing keys and owner if it already exists.

        Raises:
            InvalidEndpoint: If the endpoint URL or either key is malformed
            StorageError: If the write fails
        """
        push_endpoint = build_endpoint(endpoint, p256dh, auth, owner_id)

        with self.database.session() as session:
            PushEndpointRepository(session).upsert(push_endpoint)

        logger.info(
            "Push endpoint registered",
            extra={
                "event": "registry.subscribed",
                "endpoint": short_endpoint(push_endpoint.endpoint),
                "owner_id": push_endpoint.owner_id,
            },
        )
        return push_endpoint

    def unsubscribe(self, endpoint: str) -> bool:
        """Remove an endpoint. Removing an unknown endpoint succeeds.

        Returns:
            True if a row was actually removed

        Raises:
            StorageError: If the delete fails
        """
        with self.database.session() as session:
            removed = PushEndpointRepository(session).delete(endpoint)

        logger.info(
            "Push endpoint removed" if removed else "Push endpoint already absent",
            extra={
                "event": "registry.unsubscribed",
                "endpoint": short_endpoint(endpoint),
                "removed": removed,
            },
        )
        return removed

    def list_all(self) -> List[PushEndpoint]:
        with self.database.session() as session:
            return PushEndpointRepository(session).list_all()

    def list_by_owner(self, owner_id: str) -> List[PushEndpoint]:
        with self.database.session() as session:
            return PushEndpointRepository(session).list_by_owner(owner_id)

    def resolve(self, owner_id: Optional[str] = None) -> List[PushEndpoint]:
        """Candidate endpoints for a notification: all, or one owner's."""
        if owner_id is None:
            return self.list_all()
        return self.list_by_owner(owner_id)


def build_endpoint(endpoint: Any, p256dh: Any, auth: Any, owner_id: Optional[str] = None) -> PushEndpoint:
    """Validate raw subscribe input and build a PushEndpoint.

    Raises:
        InvalidEndpoint: If any field is missing, not a string, or malformed
    """
    if not isinstance(endpoint, str) or not endpoint.strip():
        raise InvalidEndpoint("endpoint must be a non-empty string")

    endpoint = endpoint.strip()
    parsed = urlparse(endpoint)
    if parsed.scheme not in ALLOWED_SCHEMES or not parsed.netloc:
        raise InvalidEndpoint(f"endpoint is not a valid push service URL: {short_endpoint(endpoint)}")

    for name, value in (("p256dh", p256dh), ("auth", auth)):
        if not isinstance(value, str) or not value.strip():
            raise InvalidEndpoint(f"keys.{name} must be a non-empty string")

    if owner_id is not None and not isinstance(owner_id, str):
        raise InvalidEndpoint("ownerId must be a string")

    return PushEndpoint(
        endpoint=endpoint,
        p256dh=p256dh.strip(),
        auth=auth.strip(),
        owner_id=owner_id,
    )
