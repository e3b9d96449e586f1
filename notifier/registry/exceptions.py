"""Endpoint registry exceptions."""


class InvalidEndpoint(ValueError):
    """Raised when a subscribe request is malformed.

    Raised before any storage write, so a rejected request never leaves a
    partial row behind.
    """

    pass
