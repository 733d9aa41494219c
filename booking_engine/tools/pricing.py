"""
Price and duration calculation for selected services.

Every function here is pure: it reads Service records and a car size and
never mutates them. Net (tax-exclusive) category prices are converted to
gross once, after the size column has been resolved; a manual custom price
is always final gross and is never converted.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from booking_engine.config import settings
from booking_engine.schemas.service_schema import CarSize, Service, ServiceItem
from booking_engine.utils import round_half_away

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceSummary:
    """Aggregate duration (minutes) and gross price of a selection."""
    duration: int = 0
    price: float = 0


def round_to_nearest(value: float, step: int) -> int:
    """Round to the nearest multiple of step, halves away from zero."""
    return round_half_away(value / step) * step


def net_to_gross(net_price: float) -> int:
    """Convert a net price to gross and round to the configured step.

    >>> net_to_gross(100)
    125
    """
    return round_to_nearest(
        net_price * settings.pricing.vat_multiplier, settings.pricing.price_rounding_step
    )


def resolve_duration(service: Service, size: CarSize) -> int:
    """Size-specific duration, else the default duration, else the fallback."""
    by_size = {
        CarSize.SMALL: service.duration_small,
        CarSize.MEDIUM: service.duration_medium,
        CarSize.LARGE: service.duration_large,
    }[CarSize(size)]
    if by_size:
        return by_size
    return service.duration_minutes or settings.pricing.default_service_duration


def resolve_base_price(service: Service, size: CarSize) -> float:
    """Size-specific price, else ``price_from``, else 0; gross after net conversion."""
    by_size = {
        CarSize.SMALL: service.price_small,
        CarSize.MEDIUM: service.price_medium,
        CarSize.LARGE: service.price_large,
    }[CarSize(size)]
    price = by_size if by_size is not None else (service.price_from or 0)
    if service.category_prices_are_net:
        return net_to_gross(price)
    return price


def effective_price(service: Service, size: CarSize, override: Optional[float] = None) -> float:
    """The manual price when set, otherwise the resolved base price."""
    if override is not None:
        return override
    return resolve_base_price(service, size)


def aggregate(
    selection: Iterable[ServiceItem],
    services: Mapping[str, Service],
    size: CarSize,
) -> PriceSummary:
    """
    Sum duration and price over the selection.

    Identifiers missing from ``services`` contribute nothing; a service
    removed from the catalog must not invalidate the rest of the booking.
    """
    duration = 0
    price: float = 0
    for item in selection:
        service = services.get(item.service_id)
        if service is None:
            logger.debug("Service '%s' not in catalog, contributing 0", item.service_id)
            continue
        duration += resolve_duration(service, size)
        price += effective_price(service, size, item.custom_price)
    return PriceSummary(duration=duration, price=price)


def discounted_total(total: float, discount_percent: Optional[float]) -> float:
    """Apply a customer discount; non-positive or missing discounts leave total unchanged.

    >>> discounted_total(130, 10)
    117
    """
    if discount_percent is None or discount_percent <= 0:
        return total
    return round_half_away(total * (1 - discount_percent / 100))


def final_price(
    summary: PriceSummary,
    discount_percent: Optional[float] = None,
    manual_price: Optional[float] = None,
) -> float:
    """Price stored with the booking: the operator's amount if entered, else the discounted total."""
    if manual_price is not None:
        return manual_price
    return discounted_total(summary.price, discount_percent)


def format_duration(minutes: int) -> str:
    """Human-readable duration, e.g. ``1h 30min``, ``2h`` or ``45min``."""
    hours, mins = divmod(minutes, 60)
    if hours and mins:
        return f"{hours}h {mins}min"
    if hours:
        return f"{hours}h"
    return f"{minutes}min"
