"""Pytest fixtures for payroll compute tests."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Callable

import pytest

from payroll_compute.calculators import DependencyResolver, PayrollEngine
from payroll_compute.calculators.types import (
    CalcType,
    ComponentType,
    SalaryComponentDefinition,
)
from payroll_compute.config import Settings
from payroll_compute.models import Employee, PayrollPeriod, PeriodType


@pytest.fixture
def settings() -> Settings:
    """Deterministic settings, independent of the environment."""
    return Settings(
        engine_version="test-1",
        max_workers=4,
        business_day_scan_limit=10,
        projection_horizon_months=3,
        outflow_alert_ratio=Decimal("1.10"),
        imminent_payment_days=3,
        mandatory_components=frozenset({"BASICO"}),
    )


@pytest.fixture
def engine(settings: Settings) -> PayrollEngine:
    return PayrollEngine(settings)


@pytest.fixture
def resolver() -> DependencyResolver:
    return DependencyResolver()


@pytest.fixture
def make_component() -> Callable[..., SalaryComponentDefinition]:
    """Factory for component definitions with sensible defaults."""

    def _make(
        code: str,
        calc_type: CalcType = CalcType.FIXED,
        type: ComponentType = ComponentType.EARNING,
        **kwargs,
    ) -> SalaryComponentDefinition:
        return SalaryComponentDefinition(code=code, type=type, calc_type=calc_type, **kwargs)

    return _make


@pytest.fixture
def make_employee() -> Callable[..., Employee]:
    """Factory for employees hired well before any test period."""

    def _make(employee_id: str = "E1", **kwargs) -> Employee:
        kwargs.setdefault("gross_salary", Decimal("50000"))
        kwargs.setdefault("hire_date", date(2020, 1, 1))
        return Employee(employee_id=employee_id, **kwargs)

    return _make


@pytest.fixture
def march_q1() -> PayrollPeriod:
    """First fortnight of March 2026; the 15th is a Sunday."""
    return PayrollPeriod(
        period_type=PeriodType.QUINCENA_1,
        year=2026,
        month=3,
        period_start=date(2026, 3, 1),
        period_end=date(2026, 3, 15),
        payment_date=date(2026, 3, 13),
        business_days=10,
    )


@pytest.fixture
def april_monthly() -> PayrollPeriod:
    """A 30-day monthly period."""
    return PayrollPeriod(
        period_type=PeriodType.MONTHLY,
        year=2026,
        month=4,
        period_start=date(2026, 4, 1),
        period_end=date(2026, 4, 30),
        payment_date=date(2026, 4, 30),
        business_days=22,
    )


@pytest.fixture
def standard_components(make_component) -> list[SalaryComponentDefinition]:
    """BASICO, PRESENTISMO (10% of gross) and JUBILACION (11% of gross).

    Declared out of dependency order on purpose.
    """
    return [
        make_component(
            "JUBILACION",
            CalcType.PERCENTAGE,
            type=ComponentType.DEDUCTION,
            calc_value=Decimal("11"),
            depends_on=("BASICO", "PRESENTISMO"),
            order=30,
        ),
        make_component(
            "PRESENTISMO",
            CalcType.PERCENTAGE,
            calc_value=Decimal("10"),
            depends_on=("BASICO",),
            order=20,
        ),
        make_component("BASICO", CalcType.FIXED, calc_value=Decimal("50000"), order=10),
    ]
