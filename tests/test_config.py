"""Tests for environment-driven settings."""

from decimal import Decimal

import pytest

from payroll_compute.config import Settings, get_settings

ENV_VARS = (
    "PAYROLL_ENGINE_VERSION",
    "PAYROLL_MAX_WORKERS",
    "PAYROLL_BUSINESS_DAY_SCAN_LIMIT",
    "PAYROLL_PROJECTION_HORIZON_MONTHS",
    "PAYROLL_OUTFLOW_ALERT_RATIO",
    "PAYROLL_IMMINENT_PAYMENT_DAYS",
    "PAYROLL_MANDATORY_COMPONENTS",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self, clean_env):
        settings = Settings.from_env()

        assert settings.engine_version == "1.0.0"
        assert settings.max_workers == 0
        assert settings.worker_count >= 1
        assert settings.business_day_scan_limit == 10
        assert settings.projection_horizon_months == 6
        assert settings.outflow_alert_ratio == Decimal("1.10")
        assert settings.imminent_payment_days == 3
        assert settings.mandatory_components == frozenset({"BASICO"})

    def test_overrides(self, clean_env):
        clean_env.setenv("PAYROLL_MAX_WORKERS", "2")
        clean_env.setenv("PAYROLL_MANDATORY_COMPONENTS", "BASICO, SAC ,")
        clean_env.setenv("PAYROLL_OUTFLOW_ALERT_RATIO", "1.25")

        settings = Settings.from_env()

        assert settings.worker_count == 2
        assert settings.mandatory_components == frozenset({"BASICO", "SAC"})
        assert settings.outflow_alert_ratio == Decimal("1.25")

    def test_empty_mandatory_list(self, clean_env):
        clean_env.setenv("PAYROLL_MANDATORY_COMPONENTS", "")
        assert Settings.from_env().mandatory_components == frozenset()

    def test_invalid_values(self, clean_env):
        clean_env.setenv("PAYROLL_BUSINESS_DAY_SCAN_LIMIT", "0")
        with pytest.raises(ValueError):
            Settings.from_env()

    def test_get_settings_is_cached(self, clean_env):
        assert get_settings() is get_settings()
