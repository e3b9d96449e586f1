"""Data access layer for entitlements and push endpoints.

Every mutation is a single atomic statement (INSERT ... ON CONFLICT DO
UPDATE, UPDATE ... WHERE, DELETE ... WHERE). Nothing here reads a row and
then writes it back, so concurrent webhook deliveries and fan-out pruning
cannot lose each other's updates.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from notifier.domain.models import EntitlementRecord, PushEndpoint, SubscriptionStatus
from notifier.utils.timestamps import format_timestamp, utc_now

from .exceptions import DataIntegrityError, StorageError
from .schema import EntitlementModel, PushEndpointModel

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _upsert_insert(session: Session):
    """Pick the dialect-specific insert() that supports ON CONFLICT."""
    dialect = session.get_bind().dialect.name
    try:
        return _UPSERT_DIALECTS[dialect]
    except KeyError:
        raise StorageError(f"Atomic upsert is not supported on the '{dialect}' dialect") from None


class EntitlementRepository:
    """Repository for entitlement records keyed by user identifier."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str) -> Optional[EntitlementRecord]:
        """Retrieve the entitlement for a user, or None.

        Raises:
            StorageError: If a database error occurs
        """
        try:
            model = self.session.execute(
                select(EntitlementModel).where(EntitlementModel.user_id == user_id)
            ).scalar_one_or_none()
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving entitlement for {user_id}: {e}", exc_info=True)
            raise StorageError(f"Failed to retrieve entitlement: {e}") from e

    def upsert(
        self,
        record: EntitlementRecord,
        enforce_order: bool = False,
        now: Optional[datetime] = None,
    ) -> bool:
        """Insert or fully replace the entitlement for record.user_id.

        With enforce_order, an existing row is only replaced when the incoming
        record's last_event_created is not older than the stored one. The check
        runs inside the upsert statement itself.

        Returns:
            True if a row was written, False if a stale record was ignored

        Raises:
            DataIntegrityError: On constraint violation
            StorageError: If a database error occurs
        """
        values = EntitlementModel.values_from_domain(record, now or utc_now())
        insert = _upsert_insert(self.session)

        stmt = insert(EntitlementModel).values(**values)
        where = None
        if enforce_order and record.last_event_created is not None:
            where = or_(
                EntitlementModel.last_event_created.is_(None),
                EntitlementModel.last_event_created <= stmt.excluded.last_event_created,
            )
        keep = {"user_id"}
        if record.last_event_created is None:
            keep.add("last_event_created")
        stmt = stmt.on_conflict_do_update(
            index_elements=[EntitlementModel.user_id],
            set_={key: stmt.excluded[key] for key in values if key not in keep},
            where=where,
        )

        try:
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount != 0
        except IntegrityError as e:
            logger.error(f"Integrity error upserting entitlement {record.user_id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to upsert entitlement: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting entitlement {record.user_id}: {e}", exc_info=True)
            raise StorageError(f"Failed to upsert entitlement: {e}") from e

    def mark_canceled(
        self,
        user_id: str,
        canceled_at: datetime,
        event_id: Optional[str] = None,
        event_created: Optional[int] = None,
        enforce_order: bool = False,
    ) -> int:
        """Set status to canceled and stamp the cancellation time.

        The row is never deleted.

        Returns:
            Number of rows updated (0 when no record exists, or the event is stale)

        Raises:
            StorageError: If a database error occurs
        """
        values = {
            "status": SubscriptionStatus.CANCELED.value,
            "canceled_at": format_timestamp(canceled_at),
            "last_event_id": event_id,
            "updated_at": format_timestamp(utc_now()),
        }
        # An undated event must not erase the ordering watermark
        if event_created is not None:
            values["last_event_created"] = event_created

        stmt = update(EntitlementModel).where(EntitlementModel.user_id == user_id).values(**values)
        if enforce_order and event_created is not None:
            stmt = stmt.where(
                or_(
                    EntitlementModel.last_event_created.is_(None),
                    EntitlementModel.last_event_created <= event_created,
                )
            )

        try:
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Error canceling entitlement for {user_id}: {e}", exc_info=True)
            raise StorageError(f"Failed to cancel entitlement: {e}") from e

    def list_all(self) -> List[EntitlementRecord]:
        try:
            models = self.session.execute(
                select(EntitlementModel).order_by(EntitlementModel.user_id)
            ).scalars().all()
            return [model.to_domain() for model in models]
        except SQLAlchemyError as e:
            logger.error(f"Error listing entitlements: {e}", exc_info=True)
            raise StorageError(f"Failed to list entitlements: {e}") from e


class PushEndpointRepository:
    """Repository for push endpoints keyed by endpoint URL."""

    def __init__(self, session: Session):
        self.session = session

    def upsert(self, push_endpoint: PushEndpoint, now: Optional[datetime] = None) -> None:
        """Insert an endpoint, or overwrite its keys and owner in place.

        Raises:
            DataIntegrityError: On constraint violation
            StorageError: If a database error occurs
        """
        values = PushEndpointModel.values_from_domain(push_endpoint, now or utc_now())
        insert = _upsert_insert(self.session)

        stmt = insert(PushEndpointModel).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[PushEndpointModel.endpoint],
            set_={
                "p256dh": stmt.excluded.p256dh,
                "auth": stmt.excluded.auth,
                "owner_id": stmt.excluded.owner_id,
                "updated_at": stmt.excluded.updated_at,
            },
        )

        try:
            self.session.execute(stmt)
            self.session.flush()
        except IntegrityError as e:
            logger.error(f"Integrity error upserting push endpoint: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to upsert push endpoint: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting push endpoint: {e}", exc_info=True)
            raise StorageError(f"Failed to upsert push endpoint: {e}") from e

    def delete(self, endpoint: str) -> bool:
        """Delete an endpoint. Deleting a missing endpoint is not an error.

        Returns:
            True if a row was removed

        Raises:
            StorageError: If a database error occurs
        """
        try:
            result = self.session.execute(
                delete(PushEndpointModel).where(PushEndpointModel.endpoint == endpoint)
            )
            self.session.flush()
            return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error(f"Error deleting push endpoint: {e}", exc_info=True)
            raise StorageError(f"Failed to delete push endpoint: {e}") from e

    def get(self, endpoint: str) -> Optional[PushEndpoint]:
        try:
            model = self.session.get(PushEndpointModel, endpoint)
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving push endpoint: {e}", exc_info=True)
            raise StorageError(f"Failed to retrieve push endpoint: {e}") from e

    def list_all(self) -> List[PushEndpoint]:
        """Return every registered endpoint (ordering not guaranteed)."""
        return self._list(select(PushEndpointModel))

    def list_by_owner(self, owner_id: str) -> List[PushEndpoint]:
        """Return endpoints whose stored owner equals owner_id."""
        return self._list(select(PushEndpointModel).where(PushEndpointModel.owner_id == owner_id))

    def _list(self, stmt) -> List[PushEndpoint]:
        try:
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing push endpoints: {e}", exc_info=True)
            raise StorageError(f"Failed to list push endpoints: {e}") from e
