"""Exceptions raised while accepting and applying billing events."""


class WebhookError(Exception):
    """An inbound webhook was rejected before any processing took place."""

    pass


class SignatureInvalid(WebhookError):
    """The signature header does not match the payload and shared secret."""

    pass


class MalformedEvent(WebhookError):
    """The payload is authentic but is not a usable event document."""

    pass


class ReconciliationError(Exception):
    """A verified event could not be applied to the entitlement store."""

    pass


class MissingCorrelation(ReconciliationError):
    """The subscription carries no user identifier in its metadata."""

    def __init__(self, correlation_key: str, subscription_id=None):
        self.correlation_key = correlation_key
        self.subscription_id = subscription_id
        super().__init__(
            f"No '{correlation_key}' in subscription metadata"
            + (f" (subscription {subscription_id})" if subscription_id else "")
        )


class UnsupportedStatus(ReconciliationError):
    """The subscription reports a status the entitlement model does not know."""

    pass


class CheckoutError(Exception):
    """A checkout session could not be created."""

    pass


class CheckoutDisabled(CheckoutError):
    """No billing secret key is configured, so checkout is unavailable."""

    pass
