"""Employee snapshot supplied by the roster collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from dateutil.relativedelta import relativedelta


@dataclass(frozen=True)
class Employee:
    """Read-only employee record used by a payroll run.

    gross_salary is the nominal reference salary; it seeds the `gross`
    formula variable until any earning component has been computed.
    """

    employee_id: str
    gross_salary: Decimal
    hire_date: date
    termination_date: date | None = None
    is_active: bool = True
    cost_center_id: str | None = None
    union_id: str | None = None

    def __post_init__(self) -> None:
        if self.termination_date is not None and self.termination_date < self.hire_date:
            raise ValueError(
                f"Employee {self.employee_id}: termination_date precedes hire_date"
            )

    def employment_end(self, default: date) -> date:
        """Last employed day, or `default` when there is no termination."""
        return self.termination_date if self.termination_date is not None else default

    def seniority(self, as_of: date) -> tuple[int, int]:
        """Completed (years, months) of service as of a date."""
        if as_of < self.hire_date:
            return 0, 0
        tenure = relativedelta(as_of, self.hire_date)
        return tenure.years, tenure.years * 12 + tenure.months
