from booking_engine.session.booking_session import BookingSession, SessionClosedError
from booking_engine.session.end_time import (
    DerivationState,
    EndTimeDeriver,
    InvalidTransitionError,
)
from booking_engine.session.lookup import DebouncedLookup
from booking_engine.session.validation import (
    BookingMode,
    BookingValidator,
    ValidationContext,
    ValidationErrorSet,
)

__all__ = [
    "BookingSession",
    "SessionClosedError",
    "EndTimeDeriver",
    "DerivationState",
    "InvalidTransitionError",
    "DebouncedLookup",
    "BookingValidator",
    "BookingMode",
    "ValidationContext",
    "ValidationErrorSet",
]
