"""Payroll computation and projection engine.

Computes per-employee pay from configurable salary components (fixed
amounts, percentages, formulas and days-based items) evaluated in
dependency order, runs whole periods in parallel, and projects upcoming
payment dates and cash outflows.
"""

from payroll_compute.calculators import (
    BatchResult,
    DependencyResolver,
    PayComputationResult,
    PayrollEngine,
    ResolvedConfiguration,
)
from payroll_compute.config import Settings, get_settings
from payroll_compute.projections import ProjectionGenerator, ProjectionSummary
from payroll_compute.scheduling import BusinessDayResolver, generate_periods
from payroll_compute.services.batch_service import PayrollBatchService

__version__ = "1.0.0"

__all__ = [
    "BatchResult",
    "BusinessDayResolver",
    "DependencyResolver",
    "PayComputationResult",
    "PayrollBatchService",
    "PayrollEngine",
    "ProjectionGenerator",
    "ProjectionSummary",
    "ResolvedConfiguration",
    "Settings",
    "generate_periods",
    "get_settings",
]
