"""Persistence layer exceptions.

Every storage failure surfaces as a StorageError subclass so HTTP handlers
can map the whole family to a 5xx response with one except clause.
"""


class StorageError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(StorageError):
    """Raised when the database cannot be reached or initialized.

    Examples:
    - Invalid database URL
    - Database file not accessible
    - Operation attempted before initialize()
    """

    pass


class DataIntegrityError(StorageError):
    """Raised when a constraint violation occurs."""

    pass
