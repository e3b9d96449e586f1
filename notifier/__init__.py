"""Push notification fan-out and billing entitlement service."""

__version__ = "1.0.0"
