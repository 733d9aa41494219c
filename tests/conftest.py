"""Shared test fixtures and helpers."""

from datetime import date
from typing import Optional

import pytest

from booking_engine.schemas.booking_schema import ExistingBooking
from booking_engine.schemas.service_schema import DayHours, Service, ServiceItem, Station
from booking_engine.session.booking_session import BookingSession
from booking_engine.session.end_time import EndTimeDeriver
from booking_engine.session.validation import BookingValidator
from booking_engine.tools import booking, customer, services

# 2026-10-19 is a Monday.
MONDAY = date(2026, 10, 19)
SUNDAY = date(2026, 10, 25)


@pytest.fixture(autouse=True)
def _reset_backends():
    booking.reset()
    customer.reset()
    services.reset()
    yield
    booking.reset()


def make_service(service_id: str = "svc", **overrides) -> Service:
    """Helper to create a Service with no size-specific columns."""
    fields = {"id": service_id, "name": service_id.title()}
    fields.update(overrides)
    return Service(**fields)


@pytest.fixture
def catalog() -> list[Service]:
    return [
        make_service("wash", name="Mycie", duration_minutes=45, price_from=50),
        make_service("wax", name="Wosk", duration_minutes=30, price_from=80),
        make_service(
            "polish", name="Polerowanie", duration_small=120, duration_medium=180,
            duration_large=240, price_small=500, price_medium=600, price_large=800,
        ),
        make_service(
            "ppf", name="Folia PPF", duration_minutes=480, price_from=100,
            category_prices_are_net=True,
        ),
    ]


@pytest.fixture
def stations() -> list[Station]:
    return [
        Station(id="st-1", name="Stanowisko 1", type="washing"),
        Station(id="st-2", name="Stanowisko 2", type="washing"),
        Station(id="st-ppf", name="Hala PPF", type="ppf"),
    ]


@pytest.fixture
def working_hours() -> dict[str, Optional[DayHours]]:
    weekday = DayHours(open="08:00", close="18:00")
    return {
        "monday": weekday,
        "tuesday": weekday,
        "wednesday": weekday,
        "thursday": weekday,
        "friday": weekday,
        "saturday": DayHours(open="09:00", close="14:00"),
        "sunday": None,
    }


@pytest.fixture
def deriver() -> EndTimeDeriver:
    return EndTimeDeriver()


@pytest.fixture
def validator() -> BookingValidator:
    return BookingValidator()


@pytest.fixture
def new_session(catalog, stations, working_hours) -> BookingSession:
    return BookingSession.open_new(
        catalog, stations, working_hours, initial_date=MONDAY, initial_station_id="st-1"
    )


def make_existing_booking(**overrides) -> ExistingBooking:
    """Helper to create a stored booking with sensible defaults."""
    fields = dict(
        id="RES-0001",
        customer_name="Jan Kowalski",
        customer_phone="+48733854184",
        vehicle_model="BMW X5",
        vehicle_plate="WA12345",
        reservation_date=MONDAY,
        start_time="09:00:00",
        end_time="10:30:00",
        station_id="st-1",
        service_items=[ServiceItem(service_id="wash")],
        price=50,
    )
    fields.update(overrides)
    return ExistingBooking(**fields)
