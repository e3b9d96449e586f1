"""Integration tests for the billing webhook flow.

Drives signed provider events through the HTTP API into a file-backed
SQLite database and checks the resulting entitlement records.
"""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from notifier.api import create_app
from notifier.bootstrap import build_services
from notifier.config.models import AppConfig, EntitlementsConfig
from notifier.domain.models import SubscriptionStatus
from notifier.persistence import EntitlementRepository
from tests.helpers import sign_payload, subscription_event, webhook_body
from tests.helpers.billing import PERIOD_END, PERIOD_START


def deliver(client, event):
    payload = webhook_body(event)
    return client.post(
        "/webhook",
        content=payload,
        headers={"Stripe-Signature": sign_payload(payload), "Content-Type": "application/json"},
    )


def stored(services, user_id="4521"):
    with services.database.session() as session:
        return EntitlementRepository(session).get(user_id)


@pytest.fixture
def make_client(env_config, transport):
    built = []

    def _make(app_config=None):
        services = build_services(app_config or AppConfig(), env_config, transport=transport)
        built.append(services)
        return TestClient(create_app(services)), services

    yield _make
    for services in built:
        services.close()


class TestSubscriptionLifecycle:
    def test_create_update_cancel(self, make_client):
        client, services = make_client()

        deliver(client, subscription_event("customer.subscription.created", event_id="evt_1", created=100))
        record = stored(services)
        assert record.status is SubscriptionStatus.ACTIVE
        assert record.period_start == datetime.fromtimestamp(PERIOD_START, tz=timezone.utc)
        assert record.period_end == datetime.fromtimestamp(PERIOD_END, tz=timezone.utc)
        assert record.features == {"sueldometro": True, "oraculo": True, "chatbot_ia": True}
        assert record.customer_id == "cus_456"
        assert record.subscription_id == "sub_123"

        deliver(
            client,
            subscription_event("customer.subscription.updated", status="past_due", event_id="evt_2", created=200),
        )
        record = stored(services)
        assert record.status is SubscriptionStatus.PAST_DUE
        assert record.has_access is False

        response = deliver(
            client,
            subscription_event(
                "customer.subscription.deleted",
                status="canceled",
                event_id="evt_3",
                created=300,
                canceled_at=1763000000,
            ),
        )
        assert response.status_code == 200
        record = stored(services)
        assert record.status is SubscriptionStatus.CANCELED
        assert record.canceled_at == datetime.fromtimestamp(1763000000, tz=timezone.utc)
        # The record outlives the subscription
        assert record.customer_id == "cus_456"
        assert record.last_event_id == "evt_3"

    def test_replayed_event_is_idempotent(self, make_client):
        client, services = make_client()
        event = subscription_event("customer.subscription.created")

        first = deliver(client, event)
        second = deliver(client, event)

        assert first.status_code == second.status_code == 200
        with services.database.session() as session:
            assert len(EntitlementRepository(session).list_all()) == 1

    def test_cancel_without_record_acknowledged(self, make_client):
        client, services = make_client()

        response = deliver(client, subscription_event("customer.subscription.deleted", status="canceled"))

        assert response.status_code == 200
        assert stored(services) is None

    def test_payment_events_do_not_touch_entitlements(self, make_client):
        client, services = make_client()
        invoice = {
            "id": "evt_inv",
            "type": "invoice.payment_failed",
            "created": 1,
            "data": {"object": {"id": "in_1", "customer": "cus_456", "subscription": "sub_123"}},
        }

        response = deliver(client, invoice)

        assert response.json() == {"received": True, "eventType": "invoice.payment_failed"}
        assert stored(services) is None


class TestEventOrdering:
    def test_last_write_wins_by_default(self, make_client):
        client, services = make_client()

        deliver(client, subscription_event(status="past_due", event_id="evt_new", created=200))
        deliver(client, subscription_event(status="active", event_id="evt_old", created=100))

        assert stored(services).status is SubscriptionStatus.ACTIVE

    def test_older_event_ignored_when_order_enforced(self, make_client):
        config = AppConfig(entitlements=EntitlementsConfig(enforce_event_order=True))
        client, services = make_client(config)

        deliver(client, subscription_event(status="past_due", event_id="evt_new", created=200))
        response = deliver(client, subscription_event(status="active", event_id="evt_old", created=100))

        assert response.status_code == 200
        record = stored(services)
        assert record.status is SubscriptionStatus.PAST_DUE
        assert record.last_event_id == "evt_new"

    def test_stale_cancellation_ignored_when_order_enforced(self, make_client):
        config = AppConfig(entitlements=EntitlementsConfig(enforce_event_order=True))
        client, services = make_client(config)

        deliver(client, subscription_event(event_id="evt_new", created=200))
        deliver(
            client,
            subscription_event("customer.subscription.deleted", status="canceled", event_id="evt_old", created=100),
        )

        assert stored(services).status is SubscriptionStatus.ACTIVE


class TestRejectedDeliveries:
    def test_tampered_body_is_not_applied(self, make_client):
        client, services = make_client()
        payload = webhook_body(subscription_event())
        header = sign_payload(payload)
        tampered = payload.replace(b"active", b"trialing")

        response = client.post(
            "/webhook",
            content=tampered,
            headers={"Stripe-Signature": header, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert stored(services) is None

    def test_expired_signature_is_rejected(self, make_client):
        client, services = make_client()
        payload = webhook_body(subscription_event())

        response = client.post(
            "/webhook",
            content=payload,
            headers={"Stripe-Signature": sign_payload(payload, timestamp=1000), "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert stored(services) is None
