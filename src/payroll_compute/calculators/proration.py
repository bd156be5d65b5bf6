"""Proration policy for partially worked periods."""

from __future__ import annotations

from decimal import Decimal

from payroll_compute.models import Employee, PayrollPeriod


class ProrationPolicy:
    """Active-fraction multiplier for an employee within a period.

    factor = active_days / period_length, where active_days is the
    inclusive overlap of [hire_date, termination_date or period_end]
    with [period_start, period_end], clamped at zero.
    """

    @staticmethod
    def active_days(employee: Employee, period: PayrollPeriod) -> int:
        start = max(employee.hire_date, period.period_start)
        end = min(employee.employment_end(period.period_end), period.period_end)
        if end < start:
            return 0
        return (end - start).days + 1

    @staticmethod
    def factor(employee: Employee, period: PayrollPeriod) -> Decimal:
        """Fraction of the period the employee was active, in [0, 1]."""
        active = ProrationPolicy.active_days(employee, period)
        length = period.length_days
        if active >= length:
            return Decimal("1")
        return Decimal(active) / Decimal(length)

    @staticmethod
    def is_partial(employee: Employee, period: PayrollPeriod) -> bool:
        return ProrationPolicy.active_days(employee, period) < period.length_days
