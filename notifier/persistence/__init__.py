"""Persistence layer for entitlements and push endpoints.

Public API:
    - Database / open_database: engine and session lifecycle
    - EntitlementRepository: entitlement upsert and cancellation
    - PushEndpointRepository: endpoint registry storage
    - StorageError and subclasses

Example usage:
    >>> from notifier.persistence import open_database, PushEndpointRepository
    >>> database = open_database("sqlite:///./data/notifier.db")
    >>> with database.session() as session:
    ...     endpoints = PushEndpointRepository(session).list_all()
"""

from .database import Database, open_database, redact_url
from .exceptions import DatabaseConnectionError, DataIntegrityError, StorageError
from .repositories import EntitlementRepository, PushEndpointRepository

__all__ = [
    "Database",
    "open_database",
    "redact_url",
    "EntitlementRepository",
    "PushEndpointRepository",
    "StorageError",
    "DatabaseConnectionError",
    "DataIntegrityError",
]
