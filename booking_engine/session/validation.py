"""
Mode-dependent validation of a booking draft.

Rules run in a fixed order and never short-circuit each other: every
violation is collected into one ValidationErrorSet. The order of the rule
list is also the scroll/focus priority, so the first offending field is
always the earliest one in the form regardless of what was edited last.

Usage:
    validator = BookingValidator()
    errors = validator.validate(draft, ValidationContext(mode=BookingMode.RESERVATION))
    if not errors.is_valid:
        focus(errors.first_error_field)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, Optional

from booking_engine.config import settings
from booking_engine.schemas.customer_schema import BookingDraft
from booking_engine.utils import parse_hhmm, strip_phone

logger = logging.getLogger(__name__)


class BookingMode(str, Enum):
    """Which booking surface the draft belongs to."""
    RESERVATION = "reservation"
    YARD = "yard"
    TRAINING = "training"


RESERVATION_LIKE_MODES = frozenset({BookingMode.RESERVATION, BookingMode.TRAINING})


def services_optional_for(mode: BookingMode, station_type: Optional[str] = None) -> bool:
    """Trainings and date-range priced stations (e.g. PPF) need no service selection."""
    if mode == BookingMode.TRAINING:
        return True
    return bool(station_type) and station_type.lower() in settings.services_optional_station_types


@dataclass(frozen=True)
class ValidationContext:
    """Everything besides the draft that decides which rules apply."""
    mode: BookingMode = BookingMode.RESERVATION
    is_edit: bool = False
    station_preselected: bool = False
    services_optional: bool = False

    @property
    def reservation_like(self) -> bool:
        return self.mode in RESERVATION_LIKE_MODES


@dataclass
class ValidationErrorSet:
    """Field tag -> message, kept in rule order. Empty means submittable."""
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def first_error_field(self) -> Optional[str]:
        """The field that should receive scroll/focus."""
        return next(iter(self.errors), None)

    @property
    def fields(self) -> list[str]:
        return list(self.errors)

    def get(self, tag: str) -> Optional[str]:
        return self.errors.get(tag)

    def __contains__(self, tag: object) -> bool:
        return tag in self.errors

    def __iter__(self) -> Iterator[str]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)


def _check_phone(draft: BookingDraft) -> Optional[str]:
    if not strip_phone(draft.phone):
        return "Phone number is required"
    return None


def _check_vehicle_model(draft: BookingDraft) -> Optional[str]:
    if not draft.vehicle_model.strip():
        return "Vehicle model is required"
    return None


def _check_services(draft: BookingDraft) -> Optional[str]:
    if not draft.service_items:
        return "Select at least one service"
    return None


def _check_date_range(draft: BookingDraft) -> Optional[str]:
    if draft.date_from is None:
        return "Select a date"
    if draft.date_to is not None and draft.date_to < draft.date_from:
        return "End date cannot be before start date"
    return None


def _check_time(draft: BookingDraft) -> Optional[str]:
    if not draft.start_time or not draft.end_time:
        return "Select start and end time"
    start, end = parse_hhmm(draft.start_time), parse_hhmm(draft.end_time)
    if start is None or end is None:
        return "Invalid time"
    single_day = draft.date_to is None or draft.date_to == draft.date_from
    if single_day and end <= start:
        return "End time must be after start time"
    return None


def _check_station(draft: BookingDraft) -> Optional[str]:
    if not draft.station_id:
        return "Select a station"
    return None


@dataclass(frozen=True)
class FieldRule:
    """One required-field rule: when it applies and what it checks."""
    tag: str
    applies: Callable[[ValidationContext], bool]
    check: Callable[[BookingDraft], Optional[str]]


class BookingValidator:
    """
    Validates a draft against the rules active for its context.

    Validation never raises; it always returns a (possibly empty) set.
    """

    RULES: list[FieldRule] = [
        FieldRule("phone", lambda ctx: ctx.mode != BookingMode.TRAINING, _check_phone),
        FieldRule("vehicleModel", lambda ctx: ctx.mode != BookingMode.TRAINING,
                  _check_vehicle_model),
        FieldRule("services", lambda ctx: not ctx.services_optional, _check_services),
        FieldRule("dateRange", lambda ctx: ctx.reservation_like, _check_date_range),
        FieldRule("time", lambda ctx: ctx.reservation_like, _check_time),
        FieldRule(
            "station",
            lambda ctx: ctx.mode == BookingMode.RESERVATION
            and (ctx.is_edit or not ctx.station_preselected),
            _check_station,
        ),
    ]

    FIELD_ORDER: tuple[str, ...] = tuple(rule.tag for rule in RULES)

    def validate(self, draft: BookingDraft, context: ValidationContext) -> ValidationErrorSet:
        result = ValidationErrorSet()
        for rule in self.RULES:
            if not rule.applies(context):
                continue
            message = rule.check(draft)
            if message:
                result.errors[rule.tag] = message

        if not result.is_valid:
            logger.debug(
                "Draft invalid in %s mode: %s (focus: %s)",
                context.mode.value, result.fields, result.first_error_field,
            )
        return result

    def clear_error(self, errors: ValidationErrorSet, tag: str) -> None:
        """Drop one field's error once the user fixes it, keeping the others."""
        if tag not in self.FIELD_ORDER:
            raise ValueError(f"Unknown field: {tag}")
        errors.errors.pop(tag, None)
