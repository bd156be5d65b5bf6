"""Projection output types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum


class AlertKind(str, Enum):
    """Why a projection alert was raised."""

    UNRESOLVABLE_PAYMENT_DATE = "UNRESOLVABLE_PAYMENT_DATE"
    NO_UPCOMING_PAYMENT = "NO_UPCOMING_PAYMENT"
    OUTFLOW_EXCEEDS_GROSS = "OUTFLOW_EXCEEDS_GROSS"
    EMPLOYEE_COMPUTATION_FAILED = "EMPLOYEE_COMPUTATION_FAILED"
    ADVANCE_LIMIT_EXCEEDED = "ADVANCE_LIMIT_EXCEEDED"
    PAYMENT_IMMINENT = "PAYMENT_IMMINENT"


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ProjectionAlert:
    kind: AlertKind
    severity: AlertSeverity
    message: str
    details: str | None = None


@dataclass(frozen=True)
class OutflowBreakdown:
    """Where a period's expected outflow comes from."""

    gross_salaries: Decimal
    deductions: Decimal
    net_salaries: Decimal
    advances: Decimal


@dataclass(frozen=True)
class ProjectedPayment:
    """Expected cash outflow for one upcoming payment date."""

    period_key: str
    payment_date: date
    expected_outflow: Decimal
    employee_count: int
    breakdown: OutflowBreakdown


@dataclass(frozen=True)
class NextPayment:
    """The closest upcoming payment."""

    date: date
    period_key: str
    days_until: int
    expected_outflow: Decimal
    employee_count: int
    breakdown: OutflowBreakdown


@dataclass(frozen=True)
class PendingAdvance:
    employee_id: str
    advance_id: str
    next_installment_amount: Decimal
    remaining_amount: Decimal
    pending_installments: int


@dataclass
class ProjectionSummary:
    """Forward-looking payment schedule."""

    as_of: date
    next_payment: NextPayment | None
    monthly_projection: list[ProjectedPayment] = field(default_factory=list)
    pending_advances: list[PendingAdvance] = field(default_factory=list)
    alerts: list[ProjectionAlert] = field(default_factory=list)

    def alerts_of(self, kind: AlertKind) -> list[ProjectionAlert]:
        return [alert for alert in self.alerts if alert.kind == kind]
