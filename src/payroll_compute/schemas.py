"""Pydantic schemas for request/response payloads.

Inputs accept camelCase keys (or field names) and convert to the frozen
domain objects via ``to_domain()``. Outputs are built from domain objects
with ``model_validate(obj)`` and dump camelCase with ``by_alias=True``.
"""

import datetime as dt
from decimal import Decimal
from uuid import UUID

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from payroll_compute.calculators.dependency_resolver import MAX_ROUNDING_DECIMALS
from payroll_compute.calculators.types import (
    BaseVariable,
    CalcType,
    ComponentStatus,
    ComponentType,
    PopulationFilter,
    RoundingMode,
    SalaryComponentDefinition,
)
from payroll_compute.models import (
    AdvanceStatus,
    Employee,
    Holiday,
    Installment,
    InstallmentStatus,
    PaymentDayRule,
    PaymentFrequency,
    PayrollPeriod,
    PeriodType,
    ProjectionConfig,
    SalaryAdvance,
)
from payroll_compute.projections.types import AlertKind, AlertSeverity
from payroll_compute.services.state_machine import RunStatus


class InputModel(BaseModel):
    """Base for inbound payloads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class OutputModel(BaseModel):
    """Base for outbound payloads."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )


# ============================================================================
# Component configuration
# ============================================================================


class PopulationFilterSchema(InputModel):
    employee_ids: list[str] = Field(default_factory=list)
    cost_center_ids: list[str] = Field(default_factory=list)
    union_ids: list[str] = Field(default_factory=list)

    def to_domain(self) -> PopulationFilter:
        return PopulationFilter(
            employee_ids=frozenset(self.employee_ids),
            cost_center_ids=frozenset(self.cost_center_ids),
            union_ids=frozenset(self.union_ids),
        )


class SalaryComponentSchema(InputModel):
    """Schema for a configured salary component."""

    code: str = Field(min_length=1)
    type: ComponentType
    calc_type: CalcType
    name: str = ""
    calc_value: Decimal | None = None
    calc_formula: str | None = None
    base_variable: BaseVariable = BaseVariable.GROSS
    depends_on: list[str] = Field(default_factory=list)
    rounding_mode: RoundingMode = RoundingMode.HALF_UP
    rounding_decimals: int = Field(default=2, ge=0, le=MAX_ROUNDING_DECIMALS)
    cap_min: Decimal | None = None
    cap_max: Decimal | None = None
    is_taxable: bool = True
    apply_to: PopulationFilterSchema = Field(default_factory=PopulationFilterSchema)
    prorate_on_partial: bool = True
    order: int = 0
    is_mandatory: bool = False

    def to_domain(self) -> SalaryComponentDefinition:
        return SalaryComponentDefinition(
            code=self.code,
            type=self.type,
            calc_type=self.calc_type,
            name=self.name,
            calc_value=self.calc_value,
            calc_formula=self.calc_formula,
            base_variable=self.base_variable,
            depends_on=tuple(self.depends_on),
            rounding_mode=self.rounding_mode,
            rounding_decimals=self.rounding_decimals,
            cap_min=self.cap_min,
            cap_max=self.cap_max,
            is_taxable=self.is_taxable,
            apply_to=self.apply_to.to_domain(),
            prorate_on_partial=self.prorate_on_partial,
            order=self.order,
            is_mandatory=self.is_mandatory,
        )


# ============================================================================
# Workforce and calendar
# ============================================================================


class EmployeeSchema(InputModel):
    employee_id: str = Field(min_length=1)
    gross_salary: Decimal = Field(ge=0)
    hire_date: dt.date
    termination_date: dt.date | None = None
    is_active: bool = True
    cost_center_id: str | None = None
    union_id: str | None = None

    @model_validator(mode="after")
    def check_dates(self) -> "EmployeeSchema":
        if self.termination_date is not None and self.termination_date < self.hire_date:
            raise ValueError("terminationDate must not precede hireDate")
        return self

    def to_domain(self) -> Employee:
        return Employee(
            employee_id=self.employee_id,
            gross_salary=self.gross_salary,
            hire_date=self.hire_date,
            termination_date=self.termination_date,
            is_active=self.is_active,
            cost_center_id=self.cost_center_id,
            union_id=self.union_id,
        )


class PayrollPeriodSchema(InputModel):
    period_type: PeriodType
    year: int
    month: int = Field(ge=1, le=12)
    period_start: dt.date
    period_end: dt.date
    payment_date: dt.date
    business_days: int = Field(default=0, ge=0)
    is_closed: bool = False

    @model_validator(mode="after")
    def check_range(self) -> "PayrollPeriodSchema":
        if self.period_end < self.period_start:
            raise ValueError("periodEnd must not precede periodStart")
        return self

    def to_domain(self) -> PayrollPeriod:
        return PayrollPeriod(
            period_type=self.period_type,
            year=self.year,
            month=self.month,
            period_start=self.period_start,
            period_end=self.period_end,
            payment_date=self.payment_date,
            business_days=self.business_days,
            is_closed=self.is_closed,
        )


class HolidaySchema(InputModel):
    date: dt.date
    name: str = ""
    is_national: bool = True

    def to_domain(self) -> Holiday:
        return Holiday(date=self.date, name=self.name, is_national=self.is_national)


class ProjectionConfigSchema(InputModel):
    """Schema for the tenant's payment schedule."""

    payment_frequency: PaymentFrequency = PaymentFrequency.BIWEEKLY
    first_payment_day: int = Field(default=15, ge=1, le=31)
    second_payment_day: int = Field(default=30, ge=1, le=31)
    payment_day_rule: PaymentDayRule = PaymentDayRule.PREVIOUS_BUSINESS_DAY
    quincena_percentage: Decimal = Field(default=Decimal("50"), ge=0, le=100)
    max_advance_percent: Decimal = Field(default=Decimal("30"), ge=0, le=100)
    max_active_advances: int = Field(default=1, ge=1)

    def to_domain(self) -> ProjectionConfig:
        return ProjectionConfig(
            payment_frequency=self.payment_frequency,
            first_payment_day=self.first_payment_day,
            second_payment_day=self.second_payment_day,
            payment_day_rule=self.payment_day_rule,
            quincena_percentage=self.quincena_percentage,
            max_advance_percent=self.max_advance_percent,
            max_active_advances=self.max_active_advances,
        )


# ============================================================================
# Advances
# ============================================================================


class InstallmentSchema(InputModel):
    number: int = Field(ge=1)
    amount: Decimal = Field(ge=0)
    status: InstallmentStatus = InstallmentStatus.PENDING
    due_date: dt.date | None = None

    def to_domain(self) -> Installment:
        return Installment(
            number=self.number,
            amount=self.amount,
            status=self.status,
            due_date=self.due_date,
        )


class SalaryAdvanceSchema(InputModel):
    advance_id: str
    employee_id: str
    amount: Decimal = Field(ge=0)
    remaining_amount: Decimal = Field(ge=0)
    status: AdvanceStatus
    installments: list[InstallmentSchema] = Field(default_factory=list)

    def to_domain(self) -> SalaryAdvance:
        return SalaryAdvance(
            advance_id=self.advance_id,
            employee_id=self.employee_id,
            amount=self.amount,
            remaining_amount=self.remaining_amount,
            status=self.status,
            installments=tuple(i.to_domain() for i in self.installments),
        )


# ============================================================================
# Computation results
# ============================================================================


class ComponentLineResponse(OutputModel):
    component_code: str
    component_type: ComponentType
    status: ComponentStatus
    raw_value: Decimal | None = None
    prorated_value: Decimal | None = None
    rounded_value: Decimal | None = None
    capped_value: Decimal | None = None
    amount: Decimal
    error: str | None = None


class PayComputationResponse(OutputModel):
    """Schema for one employee's computation result."""

    employee_id: str
    period_key: str
    status: RunStatus
    lines: list[ComponentLineResponse]
    gross_total: Decimal
    deductions_total: Decimal
    net_total: Decimal
    taxable_total: Decimal
    proration_factor: Decimal
    calculation_id: UUID | None = None
    errors: list[str] = Field(default_factory=list)


class BatchResponse(OutputModel):
    """Schema for a batch run summary."""

    period_key: str
    results: dict[str, PayComputationResponse]
    total_gross: Decimal
    total_deductions: Decimal
    total_net: Decimal
    error_count: int
    not_processed_count: int
    cancelled: bool
    deadline_exceeded: bool
    advisory: bool


# ============================================================================
# Projections
# ============================================================================


class OutflowBreakdownResponse(OutputModel):
    gross_salaries: Decimal
    deductions: Decimal
    net_salaries: Decimal
    advances: Decimal


class ProjectedPaymentResponse(OutputModel):
    period_key: str
    payment_date: dt.date
    expected_outflow: Decimal
    employee_count: int
    breakdown: OutflowBreakdownResponse


class NextPaymentResponse(OutputModel):
    date: dt.date
    period_key: str
    days_until: int
    expected_outflow: Decimal
    employee_count: int
    breakdown: OutflowBreakdownResponse


class PendingAdvanceResponse(OutputModel):
    employee_id: str
    advance_id: str
    next_installment_amount: Decimal
    remaining_amount: Decimal
    pending_installments: int


class ProjectionAlertResponse(OutputModel):
    kind: AlertKind
    severity: AlertSeverity
    message: str
    details: str | None = None


class ProjectionSummaryResponse(OutputModel):
    """Schema for the projection dashboard payload."""

    as_of: dt.date
    next_payment: NextPaymentResponse | None = None
    monthly_projection: list[ProjectedPaymentResponse]
    pending_advances: list[PendingAdvanceResponse]
    alerts: list[ProjectionAlertResponse]
