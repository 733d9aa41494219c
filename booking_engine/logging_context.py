"""Booking-session id on every log record.

``BookingSession`` mints an id of the form ``BS-1a2b3c4d`` when the booking
UI opens and stores it in a context variable. Pricing recomputes, end-time
transitions, phone lookup results and the final submit all log through
``get_session_logger``, so one operator's draft can be followed from the
first keystroke to the saved reservation, and two sessions opened in the
same process never interleave in the logs.

Usage:
    logger = get_session_logger(__name__)
    logger.info("Booking saved")  # record.session_id == current session

    # in the logging format string
    "%(asctime)s [%(session_id)s] %(name)s: %(message)s"
"""

import logging
from contextvars import ContextVar

# Outside any booking session (config loading, catalog refresh).
NO_SESSION = "NO_SESSION"

_session_id: ContextVar[str] = ContextVar("booking_session_id", default=NO_SESSION)


def set_session_id(session_id: str) -> None:
    """Mark the current context as belonging to ``session_id``."""
    _session_id.set(session_id)


def get_session_id() -> str:
    """Id of the booking session active in this context, or ``NO_SESSION``."""
    return _session_id.get()


class SessionIdFilter(logging.Filter):
    """Copies the active booking session id onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def get_session_logger(name: str) -> logging.Logger:
    """Module logger whose records carry ``session_id``; the filter is attached once."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger
