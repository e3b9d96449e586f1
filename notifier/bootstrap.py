"""Service wiring.

Every component receives its collaborators through its constructor; this
module is the single place where the concrete ones are chosen.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from notifier.billing import (
    CheckoutService,
    EntitlementReconciler,
    EventDispatcher,
    WebhookVerifier,
)
from notifier.config.environment import EnvironmentConfig
from notifier.config.models import AppConfig
from notifier.logging import get_logger
from notifier.notifications import DeliveryTransport, NotificationService, WebPushTransport
from notifier.persistence import Database, open_database
from notifier.registry import EndpointRegistry

logger = get_logger(__name__, component="bootstrap")


@dataclass
class Services:
    """Constructed components shared by the HTTP layer."""

    app_config: AppConfig
    database: Database
    registry: EndpointRegistry
    notifications: NotificationService
    reconciler: EntitlementReconciler
    dispatcher: EventDispatcher
    verifier: WebhookVerifier
    checkout: CheckoutService
    vapid_public_key: str
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

    def close(self) -> None:
        self.database.dispose()


def build_services(
    app_config: AppConfig,
    env_config: EnvironmentConfig,
    database: Optional[Database] = None,
    transport: Optional[DeliveryTransport] = None,
    checkout: Optional[CheckoutService] = None,
) -> Services:
    """Construct and connect all service components.

    Args:
        app_config: Validated application configuration
        env_config: Secrets and deployment settings
        database: Pre-built database (default: opened from env_config.database_url)
        transport: Delivery transport (default: WebPushTransport with VAPID keys)
        checkout: Checkout service (default: provider-backed)

    Raises:
        DatabaseConnectionError: If the database cannot be opened
    """
    database = database or open_database(env_config.database_url)

    if transport is None:
        transport = WebPushTransport(
            vapid_private_key=env_config.vapid_private_key,
            vapid_subject=env_config.vapid_subject,
            ttl=app_config.notifications.ttl_seconds,
            timeout=app_config.notifications.delivery_timeout,
        )

    registry = EndpointRegistry(database)
    reconciler = EntitlementReconciler(database, app_config.entitlements)

    services = Services(
        app_config=app_config,
        database=database,
        registry=registry,
        notifications=NotificationService(registry, transport, app_config.notifications),
        reconciler=reconciler,
        dispatcher=EventDispatcher(reconciler),
        verifier=WebhookVerifier(
            env_config.stripe_webhook_secret,
            tolerance=app_config.webhook.tolerance_seconds,
        ),
        checkout=checkout or CheckoutService(
            secret_key=env_config.stripe_secret_key,
            app_url=env_config.app_url,
            default_price_id=env_config.stripe_price_id,
            config=app_config.entitlements,
        ),
        vapid_public_key=env_config.vapid_public_key,
        allowed_origins=app_config.effective_origins(env_config.allowed_origins),
    )

    logger.info(
        "Services initialized",
        extra={
            "event": "services.initialized",
            "transport": type(transport).__name__,
            "checkout_enabled": services.checkout.enabled,
            "enforce_event_order": app_config.entitlements.enforce_event_order,
        },
    )
    return services
