"""Calendar arithmetic: business days and period generation."""

from payroll_compute.scheduling.business_days import BusinessDayResolver, resolve
from payroll_compute.scheduling.periods import generate_periods

__all__ = [
    "BusinessDayResolver",
    "generate_periods",
    "resolve",
]
