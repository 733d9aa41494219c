"""Shared utilities used across the booking engine."""

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from booking_engine.config import settings

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")

# Known country calling codes, most common for this business first.
COUNTRY_PREFIXES = [
    "48", "49", "44", "380", "420", "421", "47", "45", "46", "43", "41",
    "33", "31", "32", "39", "34", "351", "370", "371", "372", "375", "7", "1",
]

LOCAL_NUMBER_DIGITS = 9


def normalize_phone(value: str, default_country: Optional[str] = None) -> str:
    """Normalize a phone number to E.164 (leading + and digits only).

    Examples:
        >>> normalize_phone("733 854 184")
        '+48733854184'
        >>> normalize_phone("0048 733 854 184")
        '+48733854184'
        >>> normalize_phone("+49 (0) 171 1234567")
        '+491711234567'
    """
    if not value:
        return ""
    country = default_country or settings.lookup.default_phone_country

    cleaned = re.sub(r"[^\d+]", "", value)
    if not re.search(r"\d", cleaned):
        return ""
    if cleaned.startswith("00"):
        cleaned = "+" + cleaned[2:]

    if cleaned.startswith("+"):
        # Drop a trunk zero written after the country code: +49 0 171 -> +49171
        for prefix in sorted(COUNTRY_PREFIXES, key=len, reverse=True):
            if cleaned.startswith("+" + prefix + "0"):
                return "+" + prefix + cleaned[len(prefix) + 2:]
        return cleaned

    digits = re.sub(r"\D", "", cleaned)
    for prefix in COUNTRY_PREFIXES:
        min_length = len(prefix) + 8 if len(prefix) >= 3 else len(prefix) + 9
        if digits.startswith(prefix) and len(digits) >= min_length:
            return "+" + digits

    if len(digits) == LOCAL_NUMBER_DIGITS:
        return "+48" + digits if country == "PL" else "+" + digits
    return "+" + digits


def strip_phone(value: str) -> str:
    """Reduce a phone number to its digits, for comparisons."""
    return re.sub(r"\D", "", value or "")


def is_valid_phone(value: str) -> bool:
    """Check that a normalized number carries 8 to 15 digits."""
    digits = strip_phone(normalize_phone(value))
    return 8 <= len(digits) <= 15


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    >>> round_half_away(2.5), round_half_away(-2.5), round_half_away(116.99999999)
    (3, -3, 117)
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_hhmm(value: Optional[str]) -> Optional[int]:
    """Parse ``HH:MM`` (or ``HH:MM:SS``) into minutes after midnight.

    Returns None for missing or malformed values. ``24:00`` is accepted as
    end of day.
    """
    if not value:
        return None
    match = _TIME_RE.match(value.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes >= 60 or hours > 24 or (hours == 24 and minutes != 0):
        return None
    return hours * 60 + minutes


def format_minutes(total_minutes: int) -> str:
    """Serialize minutes after midnight as zero-padded ``HH:MM`` without wrapping."""
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"
