"""Context propagation for structured logging.

Fields pushed here (delivery_tag, kind, recipient, ...) are attached to every
log record emitted while they are active. Storage is a ContextVar, so the
consumer thread and the main thread never see each other's fields.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional


LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields active in the current context."""
    return LogContextVar.get().copy()


def push_log_context(**kwargs) -> Token:
    """Merge fields into the logging context.

    Fields whose value is None are skipped, so optional identifiers such as a
    missing message_id do not show up as ``message_id=null`` on every line.

    Returns:
        Token to hand to pop_log_context()

    Example:
        >>> token = push_log_context(delivery_tag=7, kind="password_reset")
        >>> pop_log_context(token)
    """
    fields = {key: value for key, value in kwargs.items() if value is not None}
    return LogContextVar.set({**LogContextVar.get(), **fields})


def pop_log_context(token: Token) -> None:
    """Restore the logging context captured by push_log_context()."""
    LogContextVar.reset(token)


def bind_log_context(**kwargs) -> None:
    """Add fields to the innermost active scope without a new token.

    Used once a scope has learned more about its subject, e.g. after the
    payload of a delivery has been decoded and the recipient is known. The
    enclosing log_context() restores the previous state on exit.
    """
    fields = {key: value for key, value in kwargs.items() if value is not None}
    LogContextVar.set({**LogContextVar.get(), **fields})


def clear_log_context() -> None:
    """Clear all logging context fields (mainly for tests)."""
    LogContextVar.set({})


class log_context:
    """Context manager for scoped logging context.

    Example:
        >>> with log_context(delivery_tag=7):
        ...     logger.info("Message received")  # includes delivery_tag
    """

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
        return False
