"""Form-session logging context for tracing one booking form across modules.

Provides a session-aware logger that attaches the form session ID to
every log record, so a single create or reschedule attempt can be
followed from availability fetch through to the persistence call.

Usage:
    from reservation_engine.logging_context import get_form_logger, set_form_session_id

    set_form_session_id("FORM-1a2b3c")
    logger = get_form_logger(__name__)
    logger.info("Fetching availability")  # record.form_session_id == "FORM-1a2b3c"
"""

import logging
import uuid
from contextvars import ContextVar

_form_session_id: ContextVar[str] = ContextVar("form_session_id", default="NO_FORM_SESSION")


def new_form_session_id() -> str:
    """Generate a fresh, short form session ID."""
    return f"FORM-{uuid.uuid4().hex[:6]}"


def set_form_session_id(session_id: str) -> None:
    """Set the form session ID for the current async context."""
    _form_session_id.set(session_id)


def get_form_session_id() -> str:
    """Retrieve the current form session ID."""
    return _form_session_id.get()


class FormSessionFilter(logging.Filter):
    """Injects form_session_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.form_session_id = _form_session_id.get()  # type: ignore[attr-defined]
        return True


def get_form_logger(name: str) -> logging.Logger:
    """Return a logger with the FormSessionFilter attached.

    The filter adds ``form_session_id`` to each record so formatters can
    include ``%(form_session_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, FormSessionFilter) for f in logger.filters):
        logger.addFilter(FormSessionFilter())
    return logger
