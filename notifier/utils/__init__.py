"""Utility helpers for the notifier service."""

from .timestamps import (
    ensure_utc,
    format_timestamp,
    from_unix,
    parse_iso_datetime,
    utc_now,
)

__all__ = [
    "utc_now",
    "ensure_utc",
    "from_unix",
    "parse_iso_datetime",
    "format_timestamp",
]
