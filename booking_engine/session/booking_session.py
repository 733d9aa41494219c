"""
One booking session per opening of the booking UI.

The session owns the BookingDraft and everything that used to live in
ambient flags: the end-time deriver, the phone lookup, whether a station
came from the calendar context and whether the operator typed the final
price. Opening the UI again means building a new session.

Every draft mutation goes through a method here so pricing and end-time
derivation re-run in one place. Submission validates first and hands the
payload to the persistence backend only when the error set is empty.

Usage:
    session = BookingSession.open_new(services, stations, working_hours)
    session.set_start_time("10:00")
    session.toggle_service("svc-basic-wash")
    result = session.submit()
"""

import uuid
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional

from booking_engine.config import settings
from booking_engine.logging_context import get_session_logger, set_session_id
from booking_engine.schemas.booking_schema import (
    BookingPayload,
    ExistingBooking,
    PayloadServiceItem,
    SubmissionResult,
)
from booking_engine.schemas.customer_schema import BookingDraft, Customer, CustomerVehicle
from booking_engine.schemas.service_schema import (
    CarSize,
    Service,
    ServiceItem,
    Station,
    WorkingHours,
)
from booking_engine.session.end_time import EndTimeDeriver
from booking_engine.session.lookup import DebouncedLookup
from booking_engine.session.validation import (
    BookingMode,
    BookingValidator,
    ValidationContext,
    ValidationErrorSet,
    services_optional_for,
)
from booking_engine.tools import booking as booking_backend
from booking_engine.tools.customer import search_vehicles_by_phone
from booking_engine.tools.pricing import PriceSummary, aggregate, discounted_total, final_price
from booking_engine.tools.time_slots import next_working_day, slots_for_date, weekday_name
from booking_engine.utils import normalize_phone

logger = get_session_logger(__name__)

# Default length of each training type, in days.
TRAINING_TYPE_DEFAULTS: dict[str, int] = {
    "group_basic": 1,
    "individual": 2,
    "master": 2,
}

PersistFn = Callable[[BookingPayload, Optional[str]], dict]


class SessionClosedError(Exception):
    """Raised when a closed session is mutated or submitted."""


def _default_persist(payload: BookingPayload, booking_id: Optional[str]) -> dict:
    if booking_id is None:
        return booking_backend.create_booking(payload)
    return booking_backend.update_booking(booking_id, payload)


class BookingSession:
    """
    Session-scoped booking state and the rules that keep it consistent.

    Reference data (services, stations, working hours) is read-only here;
    a refresh replaces whole lists through ``replace_services`` and
    ``replace_stations``.
    """

    def __init__(
        self,
        services: Iterable[Service],
        stations: Iterable[Station] = (),
        working_hours: Optional[WorkingHours] = None,
        mode: BookingMode = BookingMode.RESERVATION,
        search: Optional[Callable] = None,
        persist: Optional[PersistFn] = None,
    ) -> None:
        self.session_id = f"BS-{uuid.uuid4().hex[:8]}"
        set_session_id(self.session_id)

        self.mode = mode
        self.draft = BookingDraft()
        self.working_hours = working_hours
        self.editing_id: Optional[str] = None
        self.assigned_employee_ids: list[str] = []
        self.station_preselected = False
        self.errors = ValidationErrorSet()
        self.found_vehicles: list[CustomerVehicle] = []
        self.closed = False

        self._services: dict[str, Service] = {s.id: s for s in services}
        self._stations: list[Station] = list(stations)
        self._deriver = EndTimeDeriver()
        self._validator = BookingValidator()
        self._persist = persist or _default_persist
        self._final_price_user_edited = False
        self._lookup: DebouncedLookup[CustomerVehicle] = DebouncedLookup(
            search or search_vehicles_by_phone, on_results=self._on_vehicles_found
        )

    # ------------------------------------------------------------------ #
    # Opening
    # ------------------------------------------------------------------ #

    @classmethod
    def open_new(
        cls,
        services: Iterable[Service],
        stations: Iterable[Station] = (),
        working_hours: Optional[WorkingHours] = None,
        mode: BookingMode = BookingMode.RESERVATION,
        initial_date: Optional[date] = None,
        initial_time: Optional[str] = None,
        initial_station_id: Optional[str] = None,
        now: Optional[datetime] = None,
        **kwargs,
    ) -> "BookingSession":
        """Start an empty draft, optionally prefilled from a calendar slot."""
        session = cls(services, stations, working_hours, mode=mode, **kwargs)
        draft = session.draft
        draft.date_from = initial_date or next_working_day(working_hours, now or datetime.now())
        draft.start_time = initial_time or ""
        draft.station_id = initial_station_id
        session.station_preselected = initial_station_id is not None
        logger.info("New %s session opened (%s)", mode.value, session.session_id)
        return session

    @classmethod
    def open_edit(
        cls,
        existing: ExistingBooking,
        services: Iterable[Service],
        stations: Iterable[Station] = (),
        working_hours: Optional[WorkingHours] = None,
        mode: BookingMode = BookingMode.RESERVATION,
        **kwargs,
    ) -> "BookingSession":
        """
        Load a stored booking for editing.

        Stored custom prices are kept as they are, even if the catalog's
        net/gross flag changed since the booking was saved.
        """
        session = cls(services, stations, working_hours, mode=mode, **kwargs)
        session.editing_id = existing.id
        session.assigned_employee_ids = list(existing.assigned_employee_ids)

        draft = session.draft
        draft.customer_name = existing.customer_name
        draft.phone = existing.customer_phone
        draft.vehicle_model = existing.vehicle_model
        draft.vehicle_plate = existing.vehicle_plate
        draft.car_size = existing.car_size or CarSize(settings.scheduling.default_car_size)
        draft.service_items = [item.model_copy() for item in existing.service_items]
        draft.date_from = existing.reservation_date
        draft.date_to = existing.end_date
        draft.start_time = existing.start_time[:5]
        draft.end_time = existing.end_time[:5]
        draft.station_id = existing.station_id
        draft.admin_notes = existing.admin_notes or ""
        draft.offer_number = existing.offer_number or ""
        draft.final_price = existing.price

        session._deriver.load_booking(draft.start_time, draft.end_time)
        logger.info("Edit session opened for %s (%s)", existing.id, session.session_id)
        return session

    @property
    def is_edit(self) -> bool:
        return self.editing_id is not None

    def _ensure_open(self) -> None:
        if self.closed:
            raise SessionClosedError(f"Session {self.session_id} is closed")

    # ------------------------------------------------------------------ #
    # Reference data
    # ------------------------------------------------------------------ #

    @property
    def services(self) -> dict[str, Service]:
        return dict(self._services)

    @property
    def stations(self) -> list[Station]:
        return list(self._stations)

    def replace_services(self, services: Iterable[Service]) -> None:
        """Swap the whole catalog; removed services then contribute nothing."""
        self._services = {s.id: s for s in services}
        self._services_changed()

    def replace_stations(self, stations: Iterable[Station]) -> None:
        self._stations = list(stations)

    # ------------------------------------------------------------------ #
    # Customer and vehicle
    # ------------------------------------------------------------------ #

    def set_phone(self, phone: str) -> None:
        """Store the typed phone and schedule the debounced customer search."""
        self._ensure_open()
        self.draft.phone = phone
        self.draft.customer_id = None
        self._clear_error("phone")
        self._lookup.update(phone)

    def _on_vehicles_found(self, vehicles: list[CustomerVehicle]) -> None:
        if self.closed:
            return
        self.found_vehicles = vehicles

    @property
    def lookup(self) -> DebouncedLookup[CustomerVehicle]:
        return self._lookup

    def select_vehicle(self, vehicle: CustomerVehicle, customer: Optional[Customer] = None) -> None:
        """Fill customer and vehicle fields from a search result."""
        self._ensure_open()
        self._lookup.suppress_next()
        self._lookup.update(vehicle.phone)
        self.found_vehicles = []

        draft = self.draft
        draft.phone = vehicle.phone
        draft.vehicle_model = vehicle.model
        draft.vehicle_plate = vehicle.plate or ""
        draft.customer_id = vehicle.customer_id
        if vehicle.customer_name:
            draft.customer_name = vehicle.customer_name
        if customer is not None:
            draft.customer_name = customer.name
            draft.customer_discount_percent = customer.discount_percent
        self._clear_error("phone")
        self._clear_error("vehicleModel")
        if vehicle.car_size is not None:
            self.set_car_size(vehicle.car_size)

    def set_customer_name(self, name: str) -> None:
        self._ensure_open()
        self.draft.customer_name = name

    def set_vehicle_model(self, model: str) -> None:
        self._ensure_open()
        self.draft.vehicle_model = model
        self._clear_error("vehicleModel")

    def set_car_size(self, size: CarSize) -> None:
        """Change the size class; durations and prices follow the new column."""
        self._ensure_open()
        self.draft.car_size = CarSize(size)
        self._services_changed()

    # ------------------------------------------------------------------ #
    # Services and price
    # ------------------------------------------------------------------ #

    def toggle_service(self, service_id: str) -> None:
        """Select or deselect a service; a reselected service starts without a custom price."""
        self._ensure_open()
        items = self.draft.service_items
        if service_id in self.draft.service_ids:
            self.draft.service_items = [i for i in items if i.service_id != service_id]
        else:
            self.draft.service_items = [*items, ServiceItem(service_id=service_id)]
        self._clear_error("services")
        self._services_changed()

    def set_services(self, service_ids: Iterable[str]) -> None:
        """Replace the selection, keeping custom prices of services that stay."""
        self._ensure_open()
        existing = {item.service_id: item for item in self.draft.service_items}
        items: list[ServiceItem] = []
        for service_id in service_ids:
            if any(i.service_id == service_id for i in items):
                continue
            items.append(existing.get(service_id) or ServiceItem(service_id=service_id))
        self.draft.service_items = items
        self._clear_error("services")
        self._services_changed()

    def set_custom_price(self, service_id: str, price: Optional[float]) -> None:
        """Set or clear (None) one item's manual gross price."""
        self._ensure_open()
        for item in self.draft.service_items:
            if item.service_id == service_id:
                item.custom_price = price
                break
        else:
            raise ValueError(f"Service {service_id} is not selected")
        self._reset_final_price()

    def set_final_price(self, price: Optional[float]) -> None:
        """Operator-entered amount for the whole booking; None returns to the computed total."""
        self._ensure_open()
        self.draft.final_price = price
        self._final_price_user_edited = price is not None

    def set_customer_discount(self, percent: Optional[float]) -> None:
        self._ensure_open()
        self.draft.customer_discount_percent = percent

    def summary(self) -> PriceSummary:
        return aggregate(self.draft.service_items, self._services, self.draft.car_size)

    def discounted_price(self) -> float:
        return discounted_total(self.summary().price, self.draft.customer_discount_percent)

    def total_price(self) -> float:
        """Price that will be stored: the manual amount if set, else the discounted total."""
        return final_price(
            self.summary(), self.draft.customer_discount_percent, self.draft.final_price
        )

    def _reset_final_price(self) -> None:
        if not self._final_price_user_edited:
            self.draft.final_price = None

    def _services_changed(self) -> None:
        self._reset_final_price()
        new_end = self._deriver.services_changed(self.draft.start_time, self.summary().duration)
        if new_end is not None:
            self.draft.end_time = new_end

    # ------------------------------------------------------------------ #
    # Date, time and station
    # ------------------------------------------------------------------ #

    def set_date_range(self, date_from: Optional[date], date_to: Optional[date] = None) -> None:
        self._ensure_open()
        self.draft.date_from = date_from
        self.draft.date_to = date_to
        self._clear_error("dateRange")

    def set_start_time(self, start_time: str) -> None:
        """Move the start; the end follows unless the user already fixed it."""
        self._ensure_open()
        self.draft.start_time = start_time
        new_end = self._deriver.start_time_changed(start_time, self.summary().duration)
        if new_end is not None:
            self.draft.end_time = new_end
        self._clear_error("time")

    def set_end_time(self, end_time: str) -> None:
        """Direct end-time edit; automatic derivation stops for this session."""
        self._ensure_open()
        self._deriver.end_time_edited()
        self.draft.end_time = end_time
        self.draft.user_modified_end_time = True
        self._clear_error("time")

    @property
    def end_time_state(self) -> str:
        return self._deriver.current_state.value

    def set_station(self, station_id: Optional[str]) -> None:
        self._ensure_open()
        self.draft.station_id = station_id
        self._clear_error("station")

    def apply_training_type(self, training_type: str) -> None:
        """Stretch the date range to the type's default length and use that day's hours."""
        self._ensure_open()
        if training_type not in TRAINING_TYPE_DEFAULTS:
            raise ValueError(f"Unknown training type: {training_type}")
        draft = self.draft
        if draft.date_from is None:
            return
        draft.date_to = draft.date_from + timedelta(days=TRAINING_TYPE_DEFAULTS[training_type] - 1)

        hours = (self.working_hours or {}).get(weekday_name(draft.date_from))
        if hours is not None and hours.open and hours.close:
            draft.start_time = hours.open[:5]
            draft.end_time = hours.close[:5]

    def time_step(self) -> int:
        if self.mode == BookingMode.TRAINING:
            return settings.scheduling.training_slot_step
        return settings.scheduling.reservation_slot_step

    def time_options(self) -> list[str]:
        """Selectable times for the draft's start date."""
        if self.draft.date_from is None:
            return []
        return list(slots_for_date(self.working_hours, self.draft.date_from, self.time_step()))

    # ------------------------------------------------------------------ #
    # Validation and submission
    # ------------------------------------------------------------------ #

    def _station_type(self) -> Optional[str]:
        for station in self._stations:
            if station.id == self.draft.station_id:
                return station.type
        return None

    def validation_context(self) -> ValidationContext:
        return ValidationContext(
            mode=self.mode,
            is_edit=self.is_edit,
            station_preselected=self.station_preselected,
            services_optional=services_optional_for(self.mode, self._station_type()),
        )

    def validate(self) -> ValidationErrorSet:
        self.errors = self._validator.validate(self.draft, self.validation_context())
        return self.errors

    def _clear_error(self, tag: str) -> None:
        self._validator.clear_error(self.errors, tag)

    def build_payload(self) -> BookingPayload:
        draft = self.draft
        items = [
            PayloadServiceItem(
                service_id=item.service_id,
                name=self._services[item.service_id].name
                if item.service_id in self._services else item.service_id,
                custom_price=item.custom_price,
            )
            for item in draft.service_items
        ]
        summary = self.summary()
        return BookingPayload(
            customer_name=draft.customer_name.strip(),
            customer_phone=normalize_phone(draft.phone.strip()),
            customer_id=draft.customer_id,
            vehicle_model=draft.vehicle_model.strip(),
            vehicle_plate=draft.vehicle_plate.strip(),
            car_size=draft.car_size,
            service_ids=draft.service_ids,
            service_items=items,
            reservation_date=draft.date_from,
            end_date=draft.date_to or draft.date_from,
            start_time=draft.start_time,
            end_time=draft.end_time,
            station_id=draft.station_id,
            admin_notes=draft.admin_notes.strip() or None,
            offer_number=draft.offer_number.strip() or None,
            price=self.total_price(),
            duration_minutes=summary.duration,
        )

    def submit(self) -> SubmissionResult:
        """
        Validate and persist the draft.

        Validation errors and backend rejections both leave the draft
        untouched so the operator can fix or retry without retyping.
        """
        self._ensure_open()
        errors = self.validate()
        if not errors.is_valid:
            return SubmissionResult(
                success=False,
                message="Please fill in the required fields",
                errors=dict(errors.errors),
                focus_field=errors.first_error_field,
            )

        payload = self.build_payload()
        try:
            record = self._persist(payload, self.editing_id)
        except booking_backend.BookingBackendError as exc:
            logger.warning("Saving booking failed: %s", exc)
            return SubmissionResult(success=False, message=f"Could not save the booking: {exc}")

        logger.info("Booking %s saved (%s)", record["id"], self.session_id)
        self.close()
        return SubmissionResult(
            success=True,
            message="Booking updated" if self.is_edit else "Booking created",
            booking_id=record["id"],
        )

    def close(self) -> None:
        """Dispose the session; late lookup results are ignored from now on."""
        if self.closed:
            return
        self.closed = True
        self._lookup.dispose()
        logger.debug("Session %s closed", self.session_id)
