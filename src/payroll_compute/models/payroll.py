"""Payroll period, holiday calendar and payment schedule configuration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class PeriodType(str, Enum):
    """Payroll period kinds."""

    QUINCENA_1 = "QUINCENA_1"
    QUINCENA_2 = "QUINCENA_2"
    MONTHLY = "MONTHLY"


class PaymentFrequency(str, Enum):
    """How often salaries are paid."""

    MONTHLY = "MONTHLY"
    BIWEEKLY = "BIWEEKLY"


class PaymentDayRule(str, Enum):
    """What to do when a payment day is not a business day."""

    PREVIOUS_BUSINESS_DAY = "PREVIOUS_BUSINESS_DAY"
    NEXT_BUSINESS_DAY = "NEXT_BUSINESS_DAY"
    EXACT = "EXACT"


@dataclass(frozen=True)
class PayrollPeriod:
    """A payroll period snapshot.

    A closed period is immutable: the engine refuses to compute new
    results for it.
    """

    period_type: PeriodType
    year: int
    month: int
    period_start: date
    period_end: date
    payment_date: date
    business_days: int = 0
    is_closed: bool = False

    def __post_init__(self) -> None:
        if self.period_end < self.period_start:
            raise ValueError(f"Period {self.key}: period_end precedes period_start")
        if not 1 <= self.month <= 12:
            raise ValueError(f"Period month must be 1-12, got {self.month}")

    @property
    def key(self) -> str:
        """Stable identifier, e.g. '2026-03/QUINCENA_1'."""
        return f"{self.year:04d}-{self.month:02d}/{self.period_type.value}"

    @property
    def length_days(self) -> int:
        """Calendar days in the period (inclusive)."""
        return (self.period_end - self.period_start).days + 1


@dataclass(frozen=True)
class Holiday:
    """A non-working day."""

    date: date
    name: str
    is_national: bool = True


@dataclass(frozen=True)
class ProjectionConfig:
    """
    Payment schedule configuration for a tenant.

    Attributes:
        payment_frequency: MONTHLY or BIWEEKLY.
        first_payment_day: Day of month for the monthly payment, or for the
            first fortnight when BIWEEKLY. Default 15.
        second_payment_day: Day of month for the second fortnight. Values past
            the end of the month clamp to the last day. Default 30.
        payment_day_rule: How non-business payment days are moved.
        quincena_percentage: Share (0-100) of the monthly salary paid in the
            first fortnight. Default 50.
        max_advance_percent: Highest installment, as a percentage of gross
            salary, before an alert is raised. Default 30.
        max_active_advances: Active advances allowed per employee. Default 1.
    """

    payment_frequency: PaymentFrequency = PaymentFrequency.BIWEEKLY
    first_payment_day: int = 15
    second_payment_day: int = 30
    payment_day_rule: PaymentDayRule = PaymentDayRule.PREVIOUS_BUSINESS_DAY
    quincena_percentage: Decimal = Decimal("50")
    max_advance_percent: Decimal = Decimal("30")
    max_active_advances: int = 1

    def __post_init__(self) -> None:
        """Validate configuration."""
        for name in ("first_payment_day", "second_payment_day"):
            value = getattr(self, name)
            if not 1 <= value <= 31:
                raise ValueError(f"{name} must be between 1 and 31")
        if not Decimal("0") <= self.quincena_percentage <= Decimal("100"):
            raise ValueError("quincena_percentage must be between 0 and 100")
        if not Decimal("0") <= self.max_advance_percent <= Decimal("100"):
            raise ValueError("max_advance_percent must be between 0 and 100")
        if self.max_active_advances < 1:
            raise ValueError("max_active_advances must be at least 1")

    def period_share(self, period_type: PeriodType) -> Decimal:
        """Fraction of the monthly salary paid in a period of this type."""
        if period_type == PeriodType.MONTHLY:
            return Decimal("1")
        first = self.quincena_percentage / Decimal("100")
        if period_type == PeriodType.QUINCENA_1:
            return first
        return Decimal("1") - first
