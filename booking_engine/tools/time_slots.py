"""
Selectable time-of-day values bounded by working hours.

``generate_time_slots`` is the pure generator behind every start/end time
picker. ``available_start_slots`` narrows it for the quick-booking view to
start times where the whole service duration fits before closing and at
least one station is free.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, Optional

from booking_engine.config import settings
from booking_engine.schemas.service_schema import AvailabilityBlock, Station, WorkingHours
from booking_engine.utils import format_minutes, parse_hhmm

logger = logging.getLogger(__name__)

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

# How far ahead next_working_day looks for an open day.
WORKING_DAY_SEARCH_DAYS = 7


class TimeSlotSequence:
    """
    Lazy, finite, re-iterable sequence of ``HH:MM`` values.

    Runs from open (inclusive) to close (inclusive only when close lies on
    a step boundary). Missing or malformed bounds yield nothing.
    """

    def __init__(self, open_time: Optional[str], close_time: Optional[str], step: int) -> None:
        if step <= 0:
            raise ValueError(f"Time slot step must be > 0, got {step}")
        self.step = step
        self._open = parse_hhmm(open_time)
        self._close = parse_hhmm(close_time)

    def __iter__(self) -> Iterator[str]:
        if self._open is None or self._close is None:
            return
        for minutes in range(self._open, self._close + 1, self.step):
            yield format_minutes(minutes)

    def __repr__(self) -> str:
        return f"TimeSlotSequence({list(self)!r})"


def generate_time_slots(
    open_time: Optional[str], close_time: Optional[str], step: Optional[int] = None
) -> TimeSlotSequence:
    """Time slots for one day; ``step`` defaults to the reservation step."""
    return TimeSlotSequence(open_time, close_time, step or settings.scheduling.reservation_slot_step)


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def is_closed_day(working_hours: Optional[WorkingHours], day: date) -> bool:
    """True when the business has no usable hours on ``day``."""
    if not working_hours:
        return True
    hours = working_hours.get(weekday_name(day))
    return hours is None or not hours.open or not hours.close


def slots_for_date(
    working_hours: Optional[WorkingHours], day: date, step: Optional[int] = None
) -> TimeSlotSequence:
    """Time slots for the weekday of ``day``; closed days give an empty sequence."""
    hours = (working_hours or {}).get(weekday_name(day))
    if hours is None:
        return generate_time_slots(None, None, step)
    return generate_time_slots(hours.open, hours.close, step)


def next_working_day(working_hours: Optional[WorkingHours], now: datetime) -> date:
    """
    Default date for a new reservation.

    Today while it is open and before closing, otherwise the first open day
    within a week, otherwise tomorrow.
    """
    today = now.date()
    if not working_hours:
        return today

    hours = working_hours.get(weekday_name(today))
    if hours is not None:
        close = parse_hhmm(hours.close)
        if close is not None and now.hour * 60 + now.minute < close:
            return today

    for offset in range(1, WORKING_DAY_SEARCH_DAYS + 1):
        candidate = today + timedelta(days=offset)
        if not is_closed_day(working_hours, candidate):
            return candidate
    return today + timedelta(days=1)


@dataclass(frozen=True)
class AvailableSlot:
    """A start time and the stations free for the whole duration."""
    time: str
    station_ids: list[str] = field(default_factory=list)


def _overlaps(start: int, end: int, block: AvailabilityBlock) -> bool:
    block_start = parse_hhmm(block.start_time)
    block_end = parse_hhmm(block.end_time)
    if block_start is None or block_end is None:
        return False
    return start < block_end and end > block_start


def available_start_slots(
    day: date,
    working_hours: Optional[WorkingHours],
    duration_minutes: int,
    stations: Iterable[Station],
    blocks: Iterable[AvailabilityBlock],
    now: Optional[datetime] = None,
    step: Optional[int] = None,
) -> list[AvailableSlot]:
    """
    Start times on ``day`` where ``duration_minutes`` fits before closing.

    On the current day, slots earlier than now plus the minimum lead time
    (rounded up to the step) are skipped. A slot is kept only when at least
    one station has no block overlapping ``[start, start + duration)``.
    """
    step = step or settings.scheduling.reservation_slot_step
    stations = list(stations)
    if duration_minutes <= 0 or not stations or is_closed_day(working_hours, day):
        return []

    hours = working_hours[weekday_name(day)]
    open_minutes = parse_hhmm(hours.open)
    close_minutes = parse_hhmm(hours.close)
    if open_minutes is None or close_minutes is None:
        return []

    min_start = open_minutes
    if now is not None and now.date() == day:
        earliest = now.hour * 60 + now.minute + settings.scheduling.min_lead_time_minutes
        min_start = max(open_minutes, math.ceil(earliest / step) * step)

    day_blocks = [b for b in blocks if b.block_date == day.isoformat()]
    slots: list[AvailableSlot] = []
    start = min_start
    while start + duration_minutes <= close_minutes:
        end = start + duration_minutes
        free = [
            station.id
            for station in stations
            if not any(
                _overlaps(start, end, block)
                for block in day_blocks
                if block.station_id == station.id
            )
        ]
        if free:
            slots.append(AvailableSlot(time=format_minutes(start), station_ids=free))
        start += step

    logger.debug("%d start slots on %s for %d min", len(slots), day, duration_minutes)
    return slots
