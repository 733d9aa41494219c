"""
Mock service catalog.

In production, services and categories are fetched from the hosted data
backend per instance. The engine only ever reads them; a refresh replaces
the whole list.
"""

import logging
from typing import Iterable, Optional

from booking_engine.schemas.service_schema import Service, ServiceVisibility

logger = logging.getLogger(__name__)

DEFAULT_INSTANCE_ID = "demo"

# Visibility tags offered in the reservation dialog; legacy entries stay hidden.
RESERVATION_VISIBILITY = (ServiceVisibility.BOTH, ServiceVisibility.RESERVATION)

SERVICE_CATEGORIES: dict[str, dict] = {
    "washing": {"name": "Mycie", "prices_are_net": False},
    "detailing": {"name": "Detailing", "prices_are_net": False},
    "ppf": {"name": "Folie PPF", "prices_are_net": True},
}

_DEFAULT_CATALOG: list[Service] = [
    Service(
        id="svc-basic-wash", name="Mycie podstawowe", short_name="MP",
        category_id="washing", duration_minutes=30, duration_large=45,
        price_from=60, price_small=50, price_medium=60, price_large=80,
        is_popular=True, station_type="washing", instance_id=DEFAULT_INSTANCE_ID,
    ),
    Service(
        id="svc-premium-wash", name="Mycie premium", short_name="MPR",
        category_id="washing", duration_minutes=60, duration_small=45, duration_large=75,
        price_from=120, price_small=100, price_medium=120, price_large=150,
        station_type="washing", instance_id=DEFAULT_INSTANCE_ID,
    ),
    Service(
        id="svc-interior", name="Pranie tapicerki", category_id="detailing",
        duration_minutes=120, price_from=250,
        station_type="detailing", instance_id=DEFAULT_INSTANCE_ID,
    ),
    Service(
        id="svc-polish", name="Polerowanie jednoetapowe", short_name="POL1",
        category_id="detailing", duration_small=180, duration_medium=240, duration_large=300,
        price_small=600, price_medium=700, price_large=850,
        station_type="detailing", instance_id=DEFAULT_INSTANCE_ID,
    ),
    Service(
        id="svc-ppf-front", name="Folia PPF - przód", short_name="PPF-P",
        category_id="ppf", duration_minutes=480, price_from=2000, price_large=2500,
        category_prices_are_net=True, station_type="ppf", instance_id=DEFAULT_INSTANCE_ID,
    ),
    Service(
        id="svc-wax-legacy", name="Woskowanie (stary cennik)", category_id="washing",
        duration_minutes=30, price_from=40, visibility=ServiceVisibility.LEGACY,
        station_type="washing", instance_id=DEFAULT_INSTANCE_ID,
    ),
]

_catalog: list[Service] = list(_DEFAULT_CATALOG)


def get_services(
    instance_id: str = DEFAULT_INSTANCE_ID,
    visibility: Iterable[ServiceVisibility] = RESERVATION_VISIBILITY,
    station_type: Optional[str] = None,
) -> list[Service]:
    """Return services of an instance matching the visibility tags."""
    allowed = {ServiceVisibility(v) for v in visibility}
    return [
        s
        for s in _catalog
        if s.instance_id == instance_id
        and s.visibility in allowed
        and (station_type is None or s.station_type == station_type)
    ]


def get_service(service_id: str) -> Optional[Service]:
    """Get a catalog entry by id regardless of visibility."""
    for service in _catalog:
        if service.id == service_id:
            return service
    return None


def index_services(services: Iterable[Service]) -> dict[str, Service]:
    """Map services by id, the shape the pricing functions expect."""
    return {s.id: s for s in services}


def group_by_category(services: Iterable[Service]) -> list[tuple[Optional[str], list[Service]]]:
    """Group services by category in catalog order; uncategorized ones come last."""
    services = list(services)
    groups: list[tuple[Optional[str], list[Service]]] = []
    for category_id in SERVICE_CATEGORIES:
        members = [s for s in services if s.category_id == category_id]
        if members:
            groups.append((category_id, members))
    uncategorized = [s for s in services if s.category_id not in SERVICE_CATEGORIES]
    if uncategorized:
        groups.append((None, uncategorized))
    return groups


def replace_catalog(services: Iterable[Service]) -> None:
    """Swap the whole catalog, as a backend refresh does."""
    global _catalog
    _catalog = list(services)
    logger.info("Service catalog replaced (%d services)", len(_catalog))


def reset() -> None:
    """Restore the default catalog. Used by test fixtures for isolation."""
    replace_catalog(_DEFAULT_CATALOG)
