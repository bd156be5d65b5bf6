"""Type definitions for the component calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from payroll_compute.models import Employee


class ComponentType(str, Enum):
    """Salary component kinds."""

    EARNING = "EARNING"
    DEDUCTION = "DEDUCTION"


class CalcType(str, Enum):
    """Evaluation strategy for a component."""

    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"
    FORMULA = "FORMULA"
    DAYS_BASED = "DAYS_BASED"


class BaseVariable(str, Enum):
    """Running accumulator a PERCENTAGE/FORMULA component measures against."""

    GROSS = "gross"
    BASE = "base"
    NET = "net"


class RoundingMode(str, Enum):
    """Rounding policies.

    HALF_UP rounds ties away from zero, UP always away from zero, DOWN
    truncates toward zero, NONE keeps full precision.
    """

    HALF_UP = "HALF_UP"
    DOWN = "DOWN"
    UP = "UP"
    NONE = "NONE"


class ComponentStatus(str, Enum):
    """Outcome of evaluating one component for one employee."""

    COMPLETE = "COMPLETE"
    FAILED = "FAILED"
    SKIPPED_DUE_TO_DEPENDENCY_FAILURE = "SKIPPED_DUE_TO_DEPENDENCY_FAILURE"
    NOT_APPLICABLE = "NOT_APPLICABLE"


@dataclass(frozen=True)
class PopulationFilter:
    """Restricts a component to part of the workforce.

    Each populated set must contain the employee's value; an empty filter
    matches everyone.
    """

    employee_ids: frozenset[str] = frozenset()
    cost_center_ids: frozenset[str] = frozenset()
    union_ids: frozenset[str] = frozenset()

    def matches(self, employee: Employee) -> bool:
        if self.employee_ids and employee.employee_id not in self.employee_ids:
            return False
        if self.cost_center_ids and employee.cost_center_id not in self.cost_center_ids:
            return False
        if self.union_ids and employee.union_id not in self.union_ids:
            return False
        return True

    def to_canonical_dict(self) -> dict[str, Any]:
        return {
            "employee_ids": sorted(self.employee_ids),
            "cost_center_ids": sorted(self.cost_center_ids),
            "union_ids": sorted(self.union_ids),
        }


@dataclass(frozen=True)
class SalaryComponentDefinition:
    """A tenant-configured salary component (immutable per version)."""

    code: str
    type: ComponentType
    calc_type: CalcType
    name: str = ""
    calc_value: Decimal | None = None
    calc_formula: str | None = None
    base_variable: BaseVariable = BaseVariable.GROSS
    depends_on: tuple[str, ...] = ()
    rounding_mode: RoundingMode = RoundingMode.HALF_UP
    rounding_decimals: int = 2
    cap_min: Decimal | None = None
    cap_max: Decimal | None = None
    is_taxable: bool = True
    apply_to: PopulationFilter = field(default_factory=PopulationFilter)
    prorate_on_partial: bool = True
    order: int = 0
    is_mandatory: bool = False

    @property
    def is_earning(self) -> bool:
        return self.type == ComponentType.EARNING

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for fingerprinting (deterministic ordering)."""
        return {
            "code": self.code,
            "type": self.type.value,
            "calc_type": self.calc_type.value,
            "calc_value": str(self.calc_value) if self.calc_value is not None else None,
            "calc_formula": self.calc_formula,
            "base_variable": self.base_variable.value,
            "depends_on": list(self.depends_on),
            "rounding_mode": self.rounding_mode.value,
            "rounding_decimals": self.rounding_decimals,
            "cap_min": str(self.cap_min) if self.cap_min is not None else None,
            "cap_max": str(self.cap_max) if self.cap_max is not None else None,
            "is_taxable": self.is_taxable,
            "apply_to": self.apply_to.to_canonical_dict(),
            "prorate_on_partial": self.prorate_on_partial,
            "order": self.order,
            "is_mandatory": self.is_mandatory,
        }


@dataclass(frozen=True)
class ComponentAmounts:
    """Values produced at each step of the component pipeline."""

    raw: Decimal
    prorated: Decimal
    rounded: Decimal
    capped: Decimal


@dataclass(frozen=True)
class ComponentLine:
    """One line of a pay computation result."""

    component_code: str
    component_type: ComponentType
    status: ComponentStatus
    raw_value: Decimal | None = None
    prorated_value: Decimal | None = None
    rounded_value: Decimal | None = None
    capped_value: Decimal | None = None
    error: str | None = None

    @property
    def amount(self) -> Decimal:
        """Contribution to totals (zero unless complete)."""
        if self.status != ComponentStatus.COMPLETE or self.capped_value is None:
            return Decimal("0")
        return self.capped_value

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "component_code": self.component_code,
            "component_type": self.component_type.value,
            "status": self.status.value,
            "raw_value": str(self.raw_value) if self.raw_value is not None else None,
            "prorated_value": (
                str(self.prorated_value) if self.prorated_value is not None else None
            ),
            "rounded_value": (
                str(self.rounded_value) if self.rounded_value is not None else None
            ),
            "capped_value": str(self.capped_value) if self.capped_value is not None else None,
            "error": self.error,
        }


@dataclass
class VariableScope:
    """Running accumulators for one employee's run.

    `gross` reports the employee's nominal salary until an earning has
    contributed, then the sum of earnings. `base` sums taxable earnings.
    `net` is earnings minus deductions.
    """

    gross_salary: Decimal
    years: int = 0
    months: int = 0
    days_worked: int = 0
    days_in_period: int = 0
    earnings: Decimal = Decimal("0")
    base: Decimal = Decimal("0")
    net: Decimal = Decimal("0")
    has_earnings: bool = False
    values: dict[str, Decimal] = field(default_factory=dict)

    @property
    def gross(self) -> Decimal:
        return self.earnings if self.has_earnings else self.gross_salary

    def accumulate(self, component: SalaryComponentDefinition, amount: Decimal) -> None:
        """Fold a completed component's final value into the accumulators."""
        self.values[component.code] = amount
        if component.is_earning:
            self.earnings += amount
            self.has_earnings = True
            self.net += amount
            if component.is_taxable:
                self.base += amount
        else:
            self.net -= amount

    def record_inert(self, code: str) -> None:
        """A component that does not apply contributes zero to dependents."""
        self.values[code] = Decimal("0")

    def view_for(self, component: SalaryComponentDefinition) -> dict[str, Decimal]:
        """Names visible to a component: accumulators plus its dependencies."""
        view: dict[str, Decimal] = {
            "gross": self.gross,
            "base": self.base,
            "net": self.net,
            "grossSalary": self.gross_salary,
            "years": Decimal(self.years),
            "months": Decimal(self.months),
            "days_worked": Decimal(self.days_worked),
            "days_in_period": Decimal(self.days_in_period),
        }
        for code in component.depends_on:
            if code in self.values:
                view[code] = self.values[code]
        return view
