"""Checkout session creation for premium subscriptions."""

from typing import Callable, Optional

import stripe

from notifier.config.models import EntitlementsConfig
from notifier.logging import get_logger

from .exceptions import CheckoutDisabled, CheckoutError

logger = get_logger(__name__, component="checkout")


class CheckoutService:
    """Create hosted checkout sessions tagged with the user identifier."""

    def __init__(
        self,
        secret_key: Optional[str],
        app_url: str,
        default_price_id: Optional[str] = None,
        config: Optional[EntitlementsConfig] = None,
        create_session: Optional[Callable] = None,
    ):
        self._secret_key = secret_key
        self.app_url = app_url.rstrip("/")
        self.default_price_id = default_price_id
        self.config = config or EntitlementsConfig()
        self._create_session = create_session or stripe.checkout.Session.create

    @property
    def enabled(self) -> bool:
        return bool(self._secret_key)

    def create_session(self, user_id: str, price_id: Optional[str] = None) -> str:
        """Create a subscription-mode checkout session.

        Returns:
            The provider's session id

        Raises:
            CheckoutDisabled: If no secret key is configured
            CheckoutError: If no price is available or the provider call fails
        """
        if not self.enabled:
            raise CheckoutDisabled("Checkout is not configured")

        price = price_id or self.default_price_id
        if not price:
            raise CheckoutError("No price id supplied and STRIPE_PRICE_ID is not set")

        logger.info(
            "Creating checkout session",
            extra={"event": "checkout.creating", "user_id": user_id},
        )
        try:
            session = self._create_session(
                api_key=self._secret_key,
                mode="subscription",
                payment_method_types=["card"],
                line_items=[{"price": price, "quantity": 1}],
                success_url=f"{self.app_url}/?success=true&session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{self.app_url}/?canceled=true",
                client_reference_id=user_id,
                metadata={self.config.correlation_key: user_id},
                # Session metadata is not copied onto the subscription it creates
                subscription_data={"metadata": {self.config.correlation_key: user_id}},
            )
        except stripe.StripeError as e:
            logger.error(
                f"Checkout session creation failed: {e}",
                extra={"event": "checkout.failed", "user_id": user_id},
            )
            raise CheckoutError(f"Checkout session creation failed: {e}") from e

        logger.info(
            "Checkout session created",
            extra={"event": "checkout.created", "user_id": user_id, "session_id": session.id},
        )
        return session.id
