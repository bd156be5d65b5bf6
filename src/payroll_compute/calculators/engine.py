"""Payroll calculation engine - per-employee orchestrator."""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from uuid import UUID

from payroll_compute.calculators.component_calculator import ComponentCalculator
from payroll_compute.calculators.dependency_resolver import ResolvedConfiguration
from payroll_compute.calculators.line_builder import LineItemBuilder
from payroll_compute.calculators.proration import ProrationPolicy
from payroll_compute.calculators.types import (
    ComponentLine,
    ComponentStatus,
    SalaryComponentDefinition,
    VariableScope,
)
from payroll_compute.config import Settings, get_settings
from payroll_compute.errors import EvaluationError, PeriodClosedError
from payroll_compute.models import Employee, PayrollPeriod
from payroll_compute.services.state_machine import RunStateMachine, RunStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayComputationResult:
    """Result of computing pay for one employee in one period.

    Created fresh on every run. A FAILED result keeps its lines for
    diagnostics but reports zero totals.
    """

    employee_id: str
    period_key: str
    status: RunStatus
    lines: tuple[ComponentLine, ...]
    gross_total: Decimal
    deductions_total: Decimal
    net_total: Decimal
    taxable_total: Decimal
    proration_factor: Decimal
    calculation_id: UUID | None
    errors: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        return self.status == RunStatus.COMPLETE

    @property
    def has_partial_failures(self) -> bool:
        return any(
            line.status
            in (ComponentStatus.FAILED, ComponentStatus.SKIPPED_DUE_TO_DEPENDENCY_FAILURE)
            for line in self.lines
        )

    def line_for(self, code: str) -> ComponentLine | None:
        for line in self.lines:
            if line.component_code == code:
                return line
        return None

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict (deterministic ordering)."""
        return {
            "employee_id": self.employee_id,
            "period_key": self.period_key,
            "status": self.status.value,
            "lines": [line.to_canonical_dict() for line in self.lines],
            "gross_total": str(self.gross_total),
            "deductions_total": str(self.deductions_total),
            "net_total": str(self.net_total),
            "taxable_total": str(self.taxable_total),
            "proration_factor": str(self.proration_factor),
            "calculation_id": str(self.calculation_id) if self.calculation_id else None,
            "errors": list(self.errors),
        }

    @classmethod
    def without_totals(
        cls,
        employee_id: str,
        period_key: str,
        status: RunStatus,
        errors: tuple[str, ...],
        lines: tuple[ComponentLine, ...] = (),
        proration_factor: Decimal = Decimal("0"),
    ) -> PayComputationResult:
        """A result that publishes no totals (FAILED or NOT_PROCESSED)."""
        zero = Decimal("0")
        return cls(
            employee_id=employee_id,
            period_key=period_key,
            status=status,
            lines=lines,
            gross_total=zero,
            deductions_total=zero,
            net_total=zero,
            taxable_total=zero,
            proration_factor=proration_factor,
            calculation_id=None,
            errors=errors,
        )

    @classmethod
    def not_processed(
        cls, employee_id: str, period_key: str, reason: str
    ) -> PayComputationResult:
        """Placeholder for an employee a batch never started."""
        return cls.without_totals(employee_id, period_key, RunStatus.NOT_PROCESSED, (reason,))

    @classmethod
    def failed(cls, employee_id: str, period_key: str, reason: str) -> PayComputationResult:
        return cls.without_totals(employee_id, period_key, RunStatus.FAILED, (reason,))


class PayrollEngine:
    """Main payroll calculation engine.

    Calculation pipeline (stable order per employee):
    1) Refuse closed periods
    2) Compute the proration factor and seed the variable scope
    3) Walk components in resolved dependency order:
       - not applicable to this employee -> NOT_APPLICABLE, contributes 0
       - depends on a failed/skipped component -> SKIPPED
       - otherwise evaluate; EvaluationError -> FAILED
    4) Fold each completed value into gross/base/net
    5) Fail the employee if a mandatory component did not complete
    6) Totals and deterministic calculation ID
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.calculator = ComponentCalculator()

    def run(
        self,
        employee: Employee,
        period: PayrollPeriod,
        resolved: ResolvedConfiguration,
    ) -> PayComputationResult:
        """Compute pay for a single employee.

        Raises PeriodClosedError if the period is closed.
        """
        if period.is_closed:
            raise PeriodClosedError(period.key)

        machine = RunStateMachine()
        machine.transition(RunStatus.EVALUATING)

        factor = ProrationPolicy.factor(employee, period)
        years, months = employee.seniority(period.period_end)
        scope = VariableScope(
            gross_salary=employee.gross_salary,
            years=years,
            months=months,
            days_worked=ProrationPolicy.active_days(employee, period),
            days_in_period=period.length_days,
        )

        lines: list[ComponentLine] = []
        errors: list[str] = []
        unavailable: set[str] = set()  # failed or skipped codes

        for component in resolved.ordered():
            line = self._evaluate_component(
                component, employee, resolved, scope, factor, unavailable
            )
            if line.status == ComponentStatus.COMPLETE:
                scope.accumulate(component, line.amount)
            elif line.status == ComponentStatus.NOT_APPLICABLE:
                scope.record_inert(component.code)
            else:
                unavailable.add(component.code)
                errors.append(f"{component.code}: {line.error}")
            lines.append(line)

        missing_mandatory = sorted(
            c.code for c in resolved.ordered() if c.code in unavailable and self._is_mandatory(c)
        )
        if missing_mandatory:
            machine.transition(RunStatus.FAILED)
            logger.warning(
                "Employee %s failed for %s: mandatory component(s) %s unavailable",
                employee.employee_id,
                period.key,
                ", ".join(missing_mandatory),
            )
            errors.insert(
                0, f"Mandatory component(s) unavailable: {', '.join(missing_mandatory)}"
            )
            return PayComputationResult.without_totals(
                employee.employee_id,
                period.key,
                machine.status,
                tuple(errors),
                lines=tuple(lines),
                proration_factor=factor,
            )

        machine.transition(RunStatus.COMPLETE)
        calculation_id = self._generate_calculation_id(
            employee.employee_id,
            period.key,
            resolved.fingerprint,
            self._compute_lines_fingerprint(lines),
        )
        logger.debug(
            "Employee %s computed for %s (%d lines, %d errors)",
            employee.employee_id,
            period.key,
            len(lines),
            len(errors),
        )

        return PayComputationResult(
            employee_id=employee.employee_id,
            period_key=period.key,
            status=machine.status,
            lines=tuple(lines),
            gross_total=LineItemBuilder.calculate_gross_from_lines(lines),
            deductions_total=LineItemBuilder.calculate_deductions_from_lines(lines),
            net_total=LineItemBuilder.calculate_net_from_lines(lines),
            taxable_total=scope.base,
            proration_factor=factor,
            calculation_id=calculation_id,
            errors=tuple(errors),
        )

    def _evaluate_component(
        self,
        component: SalaryComponentDefinition,
        employee: Employee,
        resolved: ResolvedConfiguration,
        scope: VariableScope,
        factor: Decimal,
        unavailable: set[str],
    ) -> ComponentLine:
        if not component.apply_to.matches(employee):
            return LineItemBuilder.create_not_applicable_line(component)

        failed_deps = [dep for dep in component.depends_on if dep in unavailable]
        if failed_deps:
            return LineItemBuilder.create_skipped_line(component, failed_deps)

        syntax_error = resolved.formula_errors.get(component.code)
        if syntax_error is not None:
            return LineItemBuilder.create_failed_line(component, str(syntax_error))

        try:
            amounts = self.calculator.calculate(
                component,
                scope.view_for(component),
                factor,
                formula=resolved.formulas.get(component.code),
            )
        except EvaluationError as e:
            logger.warning(
                "Component %s failed for employee %s: %s",
                component.code,
                employee.employee_id,
                e,
            )
            return LineItemBuilder.create_failed_line(component, str(e))

        return LineItemBuilder.create_complete_line(component, amounts)

    def _is_mandatory(self, component: SalaryComponentDefinition) -> bool:
        return component.is_mandatory or component.code in self.settings.mandatory_components

    def _generate_calculation_id(
        self,
        employee_id: str,
        period_key: str,
        config_fingerprint: str,
        lines_fingerprint: str,
    ) -> UUID:
        """Generate deterministic calculation ID."""
        data = {
            "employee_id": employee_id,
            "period_key": period_key,
            "engine_version": self.settings.engine_version,
            "config_fingerprint": config_fingerprint,
            "lines_fingerprint": lines_fingerprint,
        }
        json_str = json.dumps(data, sort_keys=True)
        hash_bytes = hashlib.sha256(json_str.encode()).digest()
        return UUID(bytes=hash_bytes[:16])

    def _compute_lines_fingerprint(self, lines: list[ComponentLine]) -> str:
        """Compute fingerprint of all computed lines."""
        json_str = json.dumps([LineItemBuilder.compute_line_hash(l) for l in lines])
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]


@dataclass
class BatchResult:
    """Result of computing a whole period for many employees."""

    period_key: str
    results: dict[str, PayComputationResult]  # employee_id -> result
    total_gross: Decimal = Decimal("0")
    total_deductions: Decimal = Decimal("0")
    total_net: Decimal = Decimal("0")
    error_count: int = 0
    not_processed_count: int = 0
    cancelled: bool = False
    deadline_exceeded: bool = False
    advisory: bool = False  # period closed while the batch was running
    statuses: dict[RunStatus, int] = field(default_factory=dict)
