"""Service catalog, station and working-hours data models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class CarSize(str, Enum):
    """Vehicle size tier selecting a service's duration/price column."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class ServiceVisibility(str, Enum):
    """Where a catalog entry may be offered."""
    BOTH = "both"
    RESERVATION = "reservation"
    OFFER = "offer"
    LEGACY = "legacy"


class Service(BaseModel):
    """Immutable catalog entry supplied by the persistence backend."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    short_name: Optional[str] = None
    category_id: Optional[str] = None
    duration_minutes: Optional[int] = None
    duration_small: Optional[int] = None
    duration_medium: Optional[int] = None
    duration_large: Optional[int] = None
    price_from: Optional[float] = None
    price_small: Optional[float] = None
    price_medium: Optional[float] = None
    price_large: Optional[float] = None
    category_prices_are_net: bool = False
    is_popular: bool = False
    station_type: Optional[str] = None
    visibility: ServiceVisibility = ServiceVisibility.BOTH
    instance_id: Optional[str] = None

    @property
    def label(self) -> str:
        return self.short_name or self.name


class ServiceItem(BaseModel):
    """One selected service with an optional manual gross price."""
    service_id: str
    custom_price: Optional[float] = None


class Station(BaseModel):
    """A bay or resource reservations are assigned to."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: str = "washing"


class DayHours(BaseModel):
    """Opening hours for one weekday, as ``HH:MM`` strings."""
    model_config = ConfigDict(frozen=True)

    open: Optional[str] = None
    close: Optional[str] = None


# Lowercase English weekday name -> hours, None or missing means closed.
WorkingHours = dict[str, Optional[DayHours]]


class AvailabilityBlock(BaseModel):
    """A station's occupied interval on a given date."""
    block_date: str
    start_time: str
    end_time: str
    station_id: str
