"""Payment projections."""

from payroll_compute.projections.generator import ProjectionGenerator
from payroll_compute.projections.types import (
    AlertKind,
    AlertSeverity,
    NextPayment,
    OutflowBreakdown,
    PendingAdvance,
    ProjectedPayment,
    ProjectionAlert,
    ProjectionSummary,
)

__all__ = [
    "AlertKind",
    "AlertSeverity",
    "NextPayment",
    "OutflowBreakdown",
    "PendingAdvance",
    "ProjectedPayment",
    "ProjectionAlert",
    "ProjectionGenerator",
    "ProjectionSummary",
]
