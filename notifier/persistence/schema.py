"""Database schema definition and ORM models.

Timestamps are stored as ISO 8601 strings with a 'Z' suffix so the same
schema works unchanged on SQLite and PostgreSQL.
"""

import logging
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, Column, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from notifier.domain.models import EntitlementRecord, PushEndpoint, SubscriptionStatus
from notifier.utils.timestamps import format_timestamp, parse_iso_datetime

logger = logging.getLogger(__name__)

Base = declarative_base()


class EntitlementModel(Base):
    """ORM model for the entitlements table (one row per user)."""

    __tablename__ = "entitlements"

    user_id = Column(String(64), primary_key=True, nullable=False)

    customer_id = Column(String(255), nullable=True)
    subscription_id = Column(String(255), nullable=True)
    plan_tag = Column(String(64), nullable=False)
    status = Column(String(32), nullable=False)

    period_start = Column(String(50), nullable=True)
    period_end = Column(String(50), nullable=True)
    canceled_at = Column(String(50), nullable=True)

    features = Column(JSON, nullable=False, default=dict)

    # Event bookkeeping for diagnostics and optional ordering protection
    last_event_id = Column(String(255), nullable=True)
    last_event_created = Column(Integer, nullable=True)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_entitlements_subscription", "subscription_id"),
        Index("idx_entitlements_status", "status"),
    )

    def to_domain(self) -> EntitlementRecord:
        return EntitlementRecord(
            user_id=self.user_id,
            customer_id=self.customer_id,
            subscription_id=self.subscription_id,
            plan_tag=self.plan_tag,
            status=SubscriptionStatus(self.status),
            period_start=parse_iso_datetime(self.period_start),
            period_end=parse_iso_datetime(self.period_end),
            canceled_at=parse_iso_datetime(self.canceled_at),
            features=dict(self.features or {}),
            last_event_id=self.last_event_id,
            last_event_created=self.last_event_created,
        )

    @staticmethod
    def values_from_domain(record: EntitlementRecord, updated_at: datetime) -> Dict[str, Any]:
        """Column values for an INSERT/UPSERT statement."""
        return {
            "user_id": record.user_id,
            "customer_id": record.customer_id,
            "subscription_id": record.subscription_id,
            "plan_tag": record.plan_tag,
            "status": record.status.value,
            "period_start": format_timestamp(record.period_start),
            "period_end": format_timestamp(record.period_end),
            "canceled_at": format_timestamp(record.canceled_at),
            "features": dict(record.features),
            "last_event_id": record.last_event_id,
            "last_event_created": record.last_event_created,
            "updated_at": format_timestamp(updated_at),
        }


class PushEndpointModel(Base):
    """ORM model for the push_endpoints table (one row per endpoint URL)."""

    __tablename__ = "push_endpoints"

    endpoint = Column(Text, primary_key=True, nullable=False)

    p256dh = Column(Text, nullable=False)
    auth = Column(Text, nullable=False)
    owner_id = Column(String(64), nullable=True)

    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_push_endpoints_owner", "owner_id"),)

    def to_domain(self) -> PushEndpoint:
        return PushEndpoint(
            endpoint=self.endpoint,
            p256dh=self.p256dh,
            auth=self.auth,
            owner_id=self.owner_id,
        )

    @staticmethod
    def values_from_domain(push_endpoint: PushEndpoint, now: datetime) -> Dict[str, Any]:
        stamp = format_timestamp(now)
        return {
            "endpoint": push_endpoint.endpoint,
            "p256dh": push_endpoint.p256dh,
            "auth": push_endpoint.auth,
            "owner_id": push_endpoint.owner_id,
            "created_at": stamp,
            "updated_at": stamp,
        }


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
