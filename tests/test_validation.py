"""Tests for mode-dependent draft validation."""

from datetime import date

import pytest

from booking_engine.schemas.customer_schema import BookingDraft
from booking_engine.schemas.service_schema import ServiceItem
from booking_engine.session.validation import (
    BookingMode,
    ValidationContext,
    ValidationErrorSet,
    services_optional_for,
)
from tests.conftest import MONDAY


def complete_draft(**overrides) -> BookingDraft:
    """Helper to create a draft that passes every reservation rule."""
    fields = dict(
        phone="733854184",
        vehicle_model="BMW X5",
        service_items=[ServiceItem(service_id="wash")],
        date_from=MONDAY,
        start_time="10:00",
        end_time="10:45",
        station_id="st-1",
    )
    fields.update(overrides)
    return BookingDraft(**fields)


RESERVATION = ValidationContext(mode=BookingMode.RESERVATION)
FROM_SLOT = ValidationContext(mode=BookingMode.RESERVATION, station_preselected=True)


class TestRequiredFields:
    def test_complete_draft_is_valid(self, validator):
        errors = validator.validate(complete_draft(), RESERVATION)
        assert errors.is_valid
        assert errors.first_error_field is None

    def test_empty_draft_from_calendar_slot(self, validator):
        errors = validator.validate(BookingDraft(), FROM_SLOT)
        assert errors.fields == ["phone", "vehicleModel", "services", "dateRange", "time"]
        assert errors.first_error_field == "phone"

    def test_empty_draft_without_station_adds_station_last(self, validator):
        errors = validator.validate(BookingDraft(), RESERVATION)
        assert errors.fields[-1] == "station"
        assert errors.first_error_field == "phone"

    def test_blank_phone_counts_as_missing(self, validator):
        errors = validator.validate(complete_draft(phone="   "), RESERVATION)
        assert errors.get("phone") == "Phone number is required"

    def test_phone_without_digits_counts_as_missing(self, validator):
        errors = validator.validate(complete_draft(phone="abc"), RESERVATION)
        assert errors.get("phone") == "Phone number is required"

    def test_focus_follows_rule_order_not_edit_order(self, validator):
        draft = complete_draft(station_id=None, end_time="")
        errors = validator.validate(draft, RESERVATION)
        assert errors.fields == ["time", "station"]
        assert errors.first_error_field == "time"

    def test_errors_are_collected_not_short_circuited(self, validator):
        draft = complete_draft(phone="", vehicle_model="", service_items=[])
        assert len(validator.validate(draft, RESERVATION)) == 3


class TestDateAndTime:
    def test_end_date_before_start(self, validator):
        draft = complete_draft(date_to=date(2026, 10, 18))
        errors = validator.validate(draft, RESERVATION)
        assert errors.get("dateRange") == "End date cannot be before start date"

    def test_end_before_start_on_single_day(self, validator):
        draft = complete_draft(start_time="10:00", end_time="09:00")
        errors = validator.validate(draft, RESERVATION)
        assert errors.get("time") == "End time must be after start time"

    def test_equal_times_rejected(self, validator):
        draft = complete_draft(start_time="10:00", end_time="10:00")
        assert "time" in validator.validate(draft, RESERVATION)

    def test_multi_day_allows_earlier_end_time(self, validator):
        draft = complete_draft(date_to=date(2026, 10, 20), start_time="16:00", end_time="09:00")
        assert validator.validate(draft, RESERVATION).is_valid

    def test_unreadable_time(self, validator):
        draft = complete_draft(end_time="24:30")
        assert validator.validate(draft, RESERVATION).get("time") == "Invalid time"


class TestModes:
    def test_edit_requires_station_even_if_preselected(self, validator):
        context = ValidationContext(is_edit=True, station_preselected=True)
        errors = validator.validate(complete_draft(station_id=None), context)
        assert errors.fields == ["station"]

    def test_yard_skips_schedule_fields(self, validator):
        context = ValidationContext(mode=BookingMode.YARD)
        assert validator.validate(BookingDraft(), context).fields == [
            "phone", "vehicleModel", "services",
        ]

    def test_training_needs_only_schedule(self, validator):
        context = ValidationContext(mode=BookingMode.TRAINING, services_optional=True)
        assert validator.validate(BookingDraft(), context).fields == [
            "dateRange", "time",
        ]

    def test_training_station_is_optional_even_when_editing(self, validator):
        context = ValidationContext(
            mode=BookingMode.TRAINING, is_edit=True, services_optional=True
        )
        draft = complete_draft(phone="", vehicle_model="", service_items=[], station_id=None)
        assert validator.validate(draft, context).is_valid

    def test_services_optional_context(self, validator):
        context = ValidationContext(services_optional=True)
        errors = validator.validate(complete_draft(service_items=[]), context)
        assert errors.is_valid

    @pytest.mark.parametrize("mode,station_type,expected", [
        (BookingMode.TRAINING, None, True),
        (BookingMode.RESERVATION, "ppf", True),
        (BookingMode.RESERVATION, "PPF", True),
        (BookingMode.RESERVATION, "washing", False),
        (BookingMode.RESERVATION, None, False),
        (BookingMode.YARD, None, False),
    ])
    def test_services_optional_for(self, mode, station_type, expected):
        assert services_optional_for(mode, station_type) is expected


class TestClearError:
    def test_clears_one_field_keeping_others(self, validator):
        errors = validator.validate(BookingDraft(), FROM_SLOT)
        validator.clear_error(errors, "phone")
        assert errors.first_error_field == "vehicleModel"
        assert "phone" not in errors

    def test_clearing_absent_error_is_noop(self, validator):
        errors = ValidationErrorSet()
        validator.clear_error(errors, "station")
        assert errors.is_valid

    def test_unknown_field_raises(self, validator):
        with pytest.raises(ValueError, match="Unknown field"):
            validator.clear_error(ValidationErrorSet(), "licensePlate")
