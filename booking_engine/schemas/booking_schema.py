"""Existing-booking and submission payload data models."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from booking_engine.schemas.service_schema import CarSize, ServiceItem


class ExistingBooking(BaseModel):
    """A stored booking loaded into a session for edit mode."""
    id: str
    customer_name: str = ""
    customer_phone: str = ""
    vehicle_model: str = ""
    vehicle_plate: str = ""
    car_size: Optional[CarSize] = None
    reservation_date: date
    end_date: Optional[date] = None
    start_time: str
    end_time: str
    station_id: Optional[str] = None
    service_items: list[ServiceItem] = Field(default_factory=list)
    admin_notes: Optional[str] = None
    offer_number: Optional[str] = None
    price: Optional[float] = None
    assigned_employee_ids: list[str] = Field(default_factory=list)


class PayloadServiceItem(BaseModel):
    """Service entry serialized for audit, with its resolved name."""
    service_id: str
    name: str
    custom_price: Optional[float] = None


class BookingPayload(BaseModel):
    """The single payload handed to the persistence backend on submit."""
    customer_name: str
    customer_phone: str
    customer_id: Optional[str] = None
    vehicle_model: str
    vehicle_plate: str = ""
    car_size: CarSize
    service_ids: list[str] = Field(default_factory=list)
    service_items: list[PayloadServiceItem] = Field(default_factory=list)
    reservation_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: str = ""
    end_time: str = ""
    station_id: Optional[str] = None
    admin_notes: Optional[str] = None
    offer_number: Optional[str] = None
    price: float = 0
    duration_minutes: int = 0


class SubmissionResult(BaseModel):
    """Outcome of BookingSession.submit()."""
    success: bool
    message: str
    booking_id: Optional[str] = None
    errors: dict[str, str] = Field(default_factory=dict)
    focus_field: Optional[str] = None
