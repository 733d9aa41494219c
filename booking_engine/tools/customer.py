"""
Mock customer and vehicle lookup.

In production, this queries the customer_vehicles and customers tables of
the hosted backend to recognize returning customers by phone number.
"""

import asyncio
import logging
import uuid
from typing import Optional

from booking_engine.config import settings
from booking_engine.schemas.customer_schema import Customer, CustomerVehicle
from booking_engine.schemas.service_schema import CarSize
from booking_engine.utils import normalize_phone, strip_phone

logger = logging.getLogger(__name__)

_customers: dict[str, Customer] = {}
_vehicles: list[CustomerVehicle] = []


def _seed() -> None:
    _customers.clear()
    _vehicles.clear()
    _customers.update({
        "cust-1": Customer(id="cust-1", name="Jan Kowalski", phone="+48733854184",
                           discount_percent=10),
        "cust-2": Customer(id="cust-2", name="Anna Nowak", phone="+48501222333"),
    })
    _vehicles.extend([
        CustomerVehicle(id="veh-1", phone="+48733854184", model="BMW X5", plate="WA12345",
                        customer_id="cust-1", car_size=CarSize.LARGE,
                        last_used_at="2026-09-30T10:00:00"),
        CustomerVehicle(id="veh-2", phone="+48733854184", model="Mini Cooper", plate="WA54321",
                        customer_id="cust-1", car_size=CarSize.SMALL,
                        last_used_at="2026-05-02T08:00:00"),
        CustomerVehicle(id="veh-3", phone="+48501222333", model="Skoda Octavia",
                        customer_id="cust-2", car_size=CarSize.MEDIUM,
                        last_used_at="2026-10-01T12:00:00"),
    ])


_seed()


async def search_vehicles_by_phone(
    query: str, limit: Optional[int] = None
) -> list[CustomerVehicle]:
    """Vehicles whose phone contains the typed digits, most recently used first."""
    await asyncio.sleep(0)
    digits = strip_phone(query)
    if not digits:
        return []
    limit = limit or settings.lookup.phone_search_limit
    matches = sorted(
        (v for v in _vehicles if digits in strip_phone(v.phone)),
        key=lambda v: v.last_used_at or "",
        reverse=True,
    )[:limit]
    results = []
    for vehicle in matches:
        customer = _customers.get(vehicle.customer_id or "")
        results.append(
            vehicle.model_copy(update={"customer_name": customer.name if customer else None})
        )
    logger.debug("Phone search '%s' matched %d vehicles", digits, len(results))
    return results


def get_customer(customer_id: str) -> Optional[Customer]:
    """Look up a customer by id. Returns None if not found."""
    return _customers.get(customer_id)


def create_customer(name: str, phone: str, email: Optional[str] = None) -> Customer:
    """Create a new customer record."""
    customer = Customer(
        id=f"cust-{uuid.uuid4().hex[:8]}",
        name=name,
        phone=normalize_phone(phone),
        email=email,
    )
    _customers[customer.id] = customer
    logger.info("New customer created: %s (%s)", name, customer.phone)
    return customer


def reset() -> None:
    """Restore seed data. Used by test fixtures for isolation."""
    _seed()
