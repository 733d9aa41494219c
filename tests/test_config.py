"""Tests for configuration loading and validation."""

import pytest

from booking_engine.config import (
    AppConfig,
    LookupConfig,
    PricingConfig,
    SchedulingConfig,
    _validate_config,
)


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_defaults(self):
        config = AppConfig()
        assert config.pricing.vat_multiplier == pytest.approx(1.23)
        assert config.pricing.price_rounding_step == 5
        assert config.scheduling.reservation_slot_step == 15
        assert config.scheduling.training_slot_step == 30
        assert config.lookup.phone_search_debounce_ms == 300
        assert config.lookup.min_phone_search_length == 3
        assert "ppf" in config.services_optional_station_types

    def test_vat_multiplier_below_one(self):
        config = AppConfig(pricing=PricingConfig(vat_multiplier=0.9))
        with pytest.raises(ValueError, match="VAT_MULTIPLIER"):
            _validate_config(config)

    def test_zero_rounding_step(self):
        config = AppConfig(pricing=PricingConfig(price_rounding_step=0))
        with pytest.raises(ValueError, match="PRICE_ROUNDING_STEP"):
            _validate_config(config)

    @pytest.mark.parametrize("field,env_var", [
        ("reservation_slot_step", "RESERVATION_SLOT_STEP"),
        ("training_slot_step", "TRAINING_SLOT_STEP"),
    ])
    def test_non_positive_slot_step(self, field, env_var):
        config = AppConfig(scheduling=SchedulingConfig(**{field: 0}))
        with pytest.raises(ValueError, match=env_var):
            _validate_config(config)

    def test_unknown_default_car_size(self):
        config = AppConfig(scheduling=SchedulingConfig(default_car_size="huge"))
        with pytest.raises(ValueError, match="DEFAULT_CAR_SIZE"):
            _validate_config(config)

    def test_negative_debounce(self):
        config = AppConfig(lookup=LookupConfig(phone_search_debounce_ms=-1))
        with pytest.raises(ValueError, match="PHONE_SEARCH_DEBOUNCE_MS"):
            _validate_config(config)

    def test_safe_int_parsing(self):
        from booking_engine.config import _safe_int

        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_int_rejects_garbage(self, monkeypatch):
        from booking_engine.config import _safe_int

        monkeypatch.setenv("BOOKING_TEST_INT", "fifteen")
        with pytest.raises(ValueError, match="BOOKING_TEST_INT"):
            _safe_int("BOOKING_TEST_INT", "15")

    def test_safe_float_parsing(self):
        from booking_engine.config import _safe_float

        assert _safe_float("NONEXISTENT_VAR_12345", "1.23") == pytest.approx(1.23)

    def test_csv_parsing(self, monkeypatch):
        from booking_engine.config import _csv

        monkeypatch.setenv("BOOKING_TEST_CSV", " PPF, wrap ,,")
        assert _csv("BOOKING_TEST_CSV", "") == ("ppf", "wrap")
