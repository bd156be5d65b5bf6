"""Business-day arithmetic over a holiday calendar."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from payroll_compute.errors import CalendarConfigurationError
from payroll_compute.models import Holiday, PaymentDayRule

DEFAULT_MAX_SCAN = 10

_SATURDAY = 5


class BusinessDayResolver:
    """Moves dates onto business days.

    A business day is any weekday that is not in the holiday set. Walks are
    bounded by `max_scan` days; a longer run of non-business days is a
    calendar configuration problem.
    """

    def __init__(
        self,
        holidays: Iterable[Holiday | date] = (),
        max_scan: int = DEFAULT_MAX_SCAN,
    ):
        if max_scan < 1:
            raise ValueError("max_scan must be at least 1")
        self.holidays = frozenset(
            h.date if isinstance(h, Holiday) else h for h in holidays
        )
        self.max_scan = max_scan

    def is_business_day(self, day: date) -> bool:
        return day.weekday() < _SATURDAY and day not in self.holidays

    def resolve(self, day: date, rule: PaymentDayRule) -> date:
        """Apply a payment-day rule.

        EXACT returns the date unchanged. PREVIOUS/NEXT return the date if
        it is a business day, otherwise the nearest business day before or
        after it.

        Raises CalendarConfigurationError when no business day is found
        within max_scan days.
        """
        if rule == PaymentDayRule.EXACT:
            return day

        step = timedelta(days=-1 if rule == PaymentDayRule.PREVIOUS_BUSINESS_DAY else 1)
        candidate = day
        for _ in range(self.max_scan + 1):
            if self.is_business_day(candidate):
                return candidate
            candidate += step

        raise CalendarConfigurationError(day, rule.value, self.max_scan)

    def count_business_days(self, start: date, end: date) -> int:
        """Business days in [start, end], inclusive."""
        if end < start:
            return 0
        count = 0
        day = start
        while day <= end:
            if self.is_business_day(day):
                count += 1
            day += timedelta(days=1)
        return count


def resolve(
    day: date,
    rule: PaymentDayRule,
    holidays: Iterable[Holiday | date] = (),
    max_scan: int = DEFAULT_MAX_SCAN,
) -> date:
    """Resolve a single date without keeping a resolver around."""
    return BusinessDayResolver(holidays, max_scan).resolve(day, rule)
