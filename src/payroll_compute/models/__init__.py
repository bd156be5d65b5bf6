"""Read-only input snapshots consumed by the engine."""

from payroll_compute.models.advances import (
    AdvanceStatus,
    Installment,
    InstallmentStatus,
    SalaryAdvance,
)
from payroll_compute.models.employee import Employee
from payroll_compute.models.payroll import (
    Holiday,
    PaymentDayRule,
    PaymentFrequency,
    PayrollPeriod,
    PeriodType,
    ProjectionConfig,
)

__all__ = [
    "AdvanceStatus",
    "Employee",
    "Holiday",
    "Installment",
    "InstallmentStatus",
    "PaymentDayRule",
    "PaymentFrequency",
    "PayrollPeriod",
    "PeriodType",
    "ProjectionConfig",
    "SalaryAdvance",
]
