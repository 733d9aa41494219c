"""
Centralized configuration with environment variable overrides.

Tax conversion, rounding, slot steps, lookup debounce and the other
constants of the booking engine are configurable here. Nothing is
hardcoded in pricing, scheduling or session logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

VALID_CAR_SIZES = ("small", "medium", "large")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _csv(env_var: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(env_var, default)
    return tuple(item.strip().lower() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class PricingConfig:
    """Tax conversion and duration fallbacks."""

    vat_multiplier: float = _safe_float("VAT_MULTIPLIER", "1.23")
    price_rounding_step: int = _safe_int("PRICE_ROUNDING_STEP", "5")
    default_service_duration: int = _safe_int("DEFAULT_SERVICE_DURATION", "60")


@dataclass(frozen=True)
class SchedulingConfig:
    """Time slot steps and booking defaults."""

    reservation_slot_step: int = _safe_int("RESERVATION_SLOT_STEP", "15")
    training_slot_step: int = _safe_int("TRAINING_SLOT_STEP", "30")
    min_lead_time_minutes: int = _safe_int("MIN_LEAD_TIME_MINUTES", "15")
    default_car_size: str = os.getenv("DEFAULT_CAR_SIZE", "medium")


@dataclass(frozen=True)
class LookupConfig:
    """Customer search by phone."""

    phone_search_debounce_ms: int = _safe_int("PHONE_SEARCH_DEBOUNCE_MS", "300")
    min_phone_search_length: int = _safe_int("MIN_PHONE_SEARCH_LENGTH", "3")
    phone_search_limit: int = _safe_int("PHONE_SEARCH_LIMIT", "5")
    default_phone_country: str = os.getenv("DEFAULT_PHONE_COUNTRY", "PL")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    pricing: PricingConfig = field(default_factory=PricingConfig)
    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    lookup: LookupConfig = field(default_factory=LookupConfig)
    services_optional_station_types: tuple[str, ...] = _csv(
        "SERVICES_OPTIONAL_STATION_TYPES", "ppf"
    )
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    instance_name: str = os.getenv("INSTANCE_NAME", "Detailing Studio")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.pricing.vat_multiplier < 1.0:
        raise ValueError(
            f"VAT_MULTIPLIER must be >= 1.0, got {config.pricing.vat_multiplier}"
        )
    if config.pricing.price_rounding_step < 1:
        raise ValueError(
            f"PRICE_ROUNDING_STEP must be >= 1, got {config.pricing.price_rounding_step}"
        )
    if config.pricing.default_service_duration < 1:
        raise ValueError(
            "DEFAULT_SERVICE_DURATION must be >= 1, "
            f"got {config.pricing.default_service_duration}"
        )

    for step_name, step_value in [
        ("RESERVATION_SLOT_STEP", config.scheduling.reservation_slot_step),
        ("TRAINING_SLOT_STEP", config.scheduling.training_slot_step),
    ]:
        if not 1 <= step_value <= 24 * 60:
            raise ValueError(f"{step_name} must be between 1 and 1440, got {step_value}")

    if config.scheduling.min_lead_time_minutes < 0:
        raise ValueError(
            "MIN_LEAD_TIME_MINUTES must be >= 0, "
            f"got {config.scheduling.min_lead_time_minutes}"
        )
    if config.scheduling.default_car_size not in VALID_CAR_SIZES:
        raise ValueError(
            f"DEFAULT_CAR_SIZE must be one of {VALID_CAR_SIZES}, "
            f"got {config.scheduling.default_car_size!r}"
        )
    if config.lookup.phone_search_debounce_ms < 0:
        raise ValueError(
            "PHONE_SEARCH_DEBOUNCE_MS must be >= 0, "
            f"got {config.lookup.phone_search_debounce_ms}"
        )
    if config.lookup.min_phone_search_length < 1:
        raise ValueError(
            "MIN_PHONE_SEARCH_LENGTH must be >= 1, "
            f"got {config.lookup.min_phone_search_length}"
        )
    if config.lookup.phone_search_limit < 1:
        raise ValueError(
            f"PHONE_SEARCH_LIMIT must be >= 1, got {config.lookup.phone_search_limit}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.instance_name)
    return config


# Singleton instance
settings = load_config()
