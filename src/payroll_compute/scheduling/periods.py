"""Generate a month's payroll periods from the payment schedule."""

from __future__ import annotations

import calendar
from datetime import date

from payroll_compute.models import (
    PaymentFrequency,
    PayrollPeriod,
    PeriodType,
    ProjectionConfig,
)
from payroll_compute.scheduling.business_days import BusinessDayResolver

FIRST_FORTNIGHT_END = 15


def _payment_day(year: int, month: int, day: int) -> date:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last))


def generate_periods(
    year: int,
    month: int,
    config: ProjectionConfig,
    resolver: BusinessDayResolver,
) -> list[PayrollPeriod]:
    """Build the open periods for one month.

    MONTHLY: one period covering the month, paid on first_payment_day.
    BIWEEKLY: QUINCENA_1 (1-15) paid on first_payment_day and QUINCENA_2
    (16-end) paid on second_payment_day.

    Payment days past the end of the month clamp to its last day and are
    then moved with the payment-day rule. Raises CalendarConfigurationError
    if the rule cannot find a business day.
    """
    last_day = calendar.monthrange(year, month)[1]
    month_start = date(year, month, 1)
    month_end = date(year, month, last_day)

    if config.payment_frequency == PaymentFrequency.MONTHLY:
        spans = [
            (PeriodType.MONTHLY, month_start, month_end, config.first_payment_day),
        ]
    else:
        spans = [
            (
                PeriodType.QUINCENA_1,
                month_start,
                date(year, month, FIRST_FORTNIGHT_END),
                config.first_payment_day,
            ),
            (
                PeriodType.QUINCENA_2,
                date(year, month, FIRST_FORTNIGHT_END + 1),
                month_end,
                config.second_payment_day,
            ),
        ]

    periods: list[PayrollPeriod] = []
    for period_type, start, end, pay_day in spans:
        payment_date = resolver.resolve(
            _payment_day(year, month, pay_day), config.payment_day_rule
        )
        periods.append(
            PayrollPeriod(
                period_type=period_type,
                year=year,
                month=month,
                period_start=start,
                period_end=end,
                payment_date=payment_date,
                business_days=resolver.count_business_days(start, end),
            )
        )
    return periods

