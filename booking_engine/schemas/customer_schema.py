"""Customer data models and the per-session booking draft."""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from pydantic import BaseModel

from booking_engine.config import settings
from booking_engine.schemas.service_schema import CarSize, ServiceItem


class Customer(BaseModel):
    """Customer record from the backend."""
    id: str
    name: str
    phone: str
    email: Optional[str] = None
    discount_percent: Optional[float] = None


class CustomerVehicle(BaseModel):
    """Vehicle remembered for a phone number, used by the phone search."""
    id: str
    phone: str
    model: str
    plate: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    car_size: Optional[CarSize] = None
    last_used_at: Optional[str] = None


@dataclass
class BookingDraft:
    """
    Mutable state of the booking under edit.

    Owned by exactly one BookingSession; created empty or from an existing
    booking when the booking UI opens and discarded when it closes.
    """
    customer_name: str = ""
    phone: str = ""
    vehicle_model: str = ""
    vehicle_plate: str = ""
    car_size: CarSize = CarSize(settings.scheduling.default_car_size)
    service_items: list[ServiceItem] = field(default_factory=list)
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    start_time: str = ""
    end_time: str = ""
    station_id: Optional[str] = None
    admin_notes: str = ""
    offer_number: str = ""
    final_price: Optional[float] = None
    customer_id: Optional[str] = None
    customer_discount_percent: Optional[float] = None
    user_modified_end_time: bool = False

    @property
    def service_ids(self) -> list[str]:
        return [item.service_id for item in self.service_items]
