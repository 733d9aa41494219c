"""
Mock booking persistence.

In production, reservations are written to the hosted data backend, which
assigns the identity and confirmation code. A booking is either fully
stored or not stored at all.
"""

import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Optional, TypedDict

from booking_engine.schemas.booking_schema import BookingPayload

logger = logging.getLogger(__name__)

CONFIRMATION_CODE_DIGITS = 7


class BookingRecord(TypedDict):
    """Full booking record stored in the system."""

    id: str
    confirmation_code: str
    payload: dict
    status: str
    created_at: str
    updated_at: str


class BookingBackendError(Exception):
    """Raised when the backend rejects a write."""


_bookings: dict[str, BookingRecord] = {}
_fail_next_write: Optional[str] = None


def generate_confirmation_code() -> str:
    """Random numeric confirmation code sent to the customer."""
    return "".join(random.choice("0123456789") for _ in range(CONFIRMATION_CODE_DIGITS))


def create_booking(payload: BookingPayload) -> BookingRecord:
    """Store a new booking and return the record."""
    _check_write()
    now = datetime.now(timezone.utc).isoformat()
    record: BookingRecord = {
        "id": f"RES-{uuid.uuid4().hex[:8].upper()}",
        "confirmation_code": generate_confirmation_code(),
        "payload": payload.model_dump(mode="json"),
        "status": "confirmed",
        "created_at": now,
        "updated_at": now,
    }
    _bookings[record["id"]] = record
    logger.info(
        "Booking created: %s for %s on %s at %s",
        record["id"], payload.customer_name, payload.reservation_date, payload.start_time,
    )
    return record


def update_booking(booking_id: str, payload: BookingPayload) -> BookingRecord:
    """Replace the stored payload of an existing booking."""
    _check_write()
    if booking_id not in _bookings:
        raise BookingBackendError(f"Booking {booking_id} not found.")
    record = _bookings[booking_id]
    record.update(
        payload=payload.model_dump(mode="json"),
        updated_at=datetime.now(timezone.utc).isoformat(),
    )
    logger.info("Booking updated: %s", booking_id)
    return record


def get_booking(booking_id: str) -> Optional[BookingRecord]:
    """Retrieve a booking by id."""
    return _bookings.get(booking_id)


def fail_next_write(reason: str = "Backend rejected the write") -> None:
    """Make the next create/update raise BookingBackendError."""
    global _fail_next_write
    _fail_next_write = reason


def _check_write() -> None:
    global _fail_next_write
    if _fail_next_write is not None:
        reason, _fail_next_write = _fail_next_write, None
        raise BookingBackendError(reason)


def reset() -> None:
    """Clear all bookings. Used by test fixtures for isolation."""
    global _fail_next_write
    _bookings.clear()
    _fail_next_write = None
