"""Request- and delivery-scoped fields for structured logging.

Fields pushed here are attached to every record emitted inside the scope.
They live in a ContextVar: each HTTP request gets its own copy, and
delivery workers see the caller's fields only when submitted through
``contextvars.copy_context().run``.
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, Dict, Iterator

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    return dict(LogContextVar.get())


def push_log_context(**fields: Any) -> Token:
    """Layer fields over the current context; undo with pop_log_context(token)."""
    return LogContextVar.set({**LogContextVar.get(), **fields})


def pop_log_context(token: Token) -> None:
    LogContextVar.reset(token)


def clear_log_context() -> None:
    LogContextVar.set({})


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Attach fields to every log record emitted inside the block.

    Example:
        >>> with log_context(event_id="evt_1", user_id="4521"):
        ...     logger.info("Entitlement updated")
    """
    token = push_log_context(**fields)
    try:
        yield
    finally:
        pop_log_context(token)
