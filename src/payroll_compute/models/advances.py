"""Salary advances and their repayment installments."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum


class AdvanceStatus(str, Enum):
    """Salary advance lifecycle."""

    REQUESTED = "REQUESTED"
    APPROVED = "APPROVED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class InstallmentStatus(str, Enum):
    """Installment lifecycle."""

    PENDING = "PENDING"
    DISCOUNTED = "DISCOUNTED"
    CANCELLED = "CANCELLED"


# Advances that still generate repayment installments
OUTSTANDING_STATUSES = frozenset({AdvanceStatus.APPROVED, AdvanceStatus.ACTIVE})


@dataclass(frozen=True)
class Installment:
    """One scheduled repayment of an advance."""

    number: int
    amount: Decimal
    status: InstallmentStatus = InstallmentStatus.PENDING
    due_date: date | None = None


@dataclass(frozen=True)
class SalaryAdvance:
    """An advance on salary, repaid in installments."""

    advance_id: str
    employee_id: str
    amount: Decimal
    remaining_amount: Decimal
    status: AdvanceStatus
    installments: tuple[Installment, ...] = field(default_factory=tuple)

    @property
    def is_outstanding(self) -> bool:
        return self.status in OUTSTANDING_STATUSES and self.remaining_amount > 0

    @property
    def pending_installments(self) -> list[Installment]:
        """Unpaid installments in schedule order."""
        return sorted(
            (i for i in self.installments if i.status == InstallmentStatus.PENDING),
            key=lambda i: i.number,
        )

    @property
    def next_installment(self) -> Installment | None:
        pending = self.pending_installments
        return pending[0] if pending else None
