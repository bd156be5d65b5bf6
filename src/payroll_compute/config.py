"""Configuration management for the payroll compute engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Engine settings loaded from environment."""

    engine_version: str
    max_workers: int  # 0 = use CPU count
    business_day_scan_limit: int
    projection_horizon_months: int
    outflow_alert_ratio: Decimal
    imminent_payment_days: int
    mandatory_components: frozenset[str]

    def __post_init__(self) -> None:
        """Validate settings."""
        if self.max_workers < 0:
            raise ValueError("max_workers cannot be negative")
        if self.business_day_scan_limit < 1:
            raise ValueError("business_day_scan_limit must be at least 1")
        if self.projection_horizon_months < 1:
            raise ValueError("projection_horizon_months must be at least 1")
        if self.outflow_alert_ratio <= 0:
            raise ValueError("outflow_alert_ratio must be positive")

    @property
    def worker_count(self) -> int:
        """Effective thread pool size for batch runs."""
        return self.max_workers or os.cpu_count() or 1

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        mandatory = os.getenv("PAYROLL_MANDATORY_COMPONENTS", "BASICO")

        return cls(
            engine_version=os.getenv("PAYROLL_ENGINE_VERSION", "1.0.0"),
            max_workers=int(os.getenv("PAYROLL_MAX_WORKERS", "0")),
            business_day_scan_limit=int(
                os.getenv("PAYROLL_BUSINESS_DAY_SCAN_LIMIT", "10")
            ),
            projection_horizon_months=int(
                os.getenv("PAYROLL_PROJECTION_HORIZON_MONTHS", "6")
            ),
            outflow_alert_ratio=Decimal(os.getenv("PAYROLL_OUTFLOW_ALERT_RATIO", "1.10")),
            imminent_payment_days=int(os.getenv("PAYROLL_IMMINENT_PAYMENT_DAYS", "3")),
            mandatory_components=frozenset(
                code.strip() for code in mandatory.split(",") if code.strip()
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
