"""Projection generator: upcoming payments, pending advances and alerts."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Iterable

from dateutil.relativedelta import relativedelta

from payroll_compute.calculators.dependency_resolver import (
    DependencyResolver,
    ResolvedConfiguration,
)
from payroll_compute.calculators.engine import PayComputationResult, PayrollEngine
from payroll_compute.calculators.line_builder import LineItemBuilder
from payroll_compute.calculators.types import SalaryComponentDefinition
from payroll_compute.config import Settings, get_settings
from payroll_compute.errors import CalendarConfigurationError
from payroll_compute.models import (
    Employee,
    Holiday,
    Installment,
    PaymentFrequency,
    PayrollPeriod,
    PeriodType,
    ProjectionConfig,
    SalaryAdvance,
)
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
from payroll_compute.scheduling import BusinessDayResolver, generate_periods
from payroll_compute.services.state_machine import RunStatus

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class ProjectionGenerator:
    """Builds a forward-looking payment schedule.

    Read-only over all inputs: it previews every active employee through
    the engine but never publishes or mutates a run.

    Steps:
    1) Resolve the component configuration (configuration errors raise)
    2) Collect upcoming periods: supplied open periods plus generated
       periods for every period of the horizon that was not supplied, all
       with a resolved payment date between as_of and the horizon end
    3) Place pending advance installments into periods
    4) Preview active employees per period, scale by the period share,
       add installments -> expected outflow
    5) Alerts
    """

    def __init__(self, settings: Settings | None = None, engine: PayrollEngine | None = None):
        self.settings = settings or (engine.settings if engine else get_settings())
        self.engine = engine or PayrollEngine(self.settings)

    def project(
        self,
        employees: Iterable[Employee],
        components: Iterable[SalaryComponentDefinition] | ResolvedConfiguration,
        periods: Iterable[PayrollPeriod],
        config: ProjectionConfig,
        holidays: Iterable[Holiday | date],
        advances: Iterable[SalaryAdvance],
        as_of: date,
    ) -> ProjectionSummary:
        """Project upcoming payments as of a date."""
        if isinstance(components, ResolvedConfiguration):
            resolved = components
        else:
            resolved = DependencyResolver().order(components)

        roster = list(employees)
        alerts: list[ProjectionAlert] = []
        resolver = BusinessDayResolver(holidays, self.settings.business_day_scan_limit)

        upcoming = self._upcoming_periods(list(periods), config, resolver, as_of, alerts)
        outstanding = [a for a in advances if a.is_outstanding]
        installments_by_period = self._place_installments(outstanding, upcoming)

        alerts.extend(self._advance_alerts(outstanding, roster, config))

        active = [e for e in roster if e.is_active]
        projection: list[ProjectedPayment] = []
        for period in upcoming:
            payment, period_alerts = self._project_period(
                period, active, resolved, config, installments_by_period[period.key]
            )
            projection.append(payment)
            alerts.extend(period_alerts)

        next_payment = None
        if projection:
            first = projection[0]
            days_until = (first.payment_date - as_of).days
            next_payment = NextPayment(
                date=first.payment_date,
                period_key=first.period_key,
                days_until=days_until,
                expected_outflow=first.expected_outflow,
                employee_count=first.employee_count,
                breakdown=first.breakdown,
            )
            if days_until <= self.settings.imminent_payment_days:
                alerts.append(
                    ProjectionAlert(
                        kind=AlertKind.PAYMENT_IMMINENT,
                        severity=AlertSeverity.INFO,
                        message=f"Next payment ({first.period_key}) is due in {days_until} day(s)",
                        details=first.payment_date.isoformat(),
                    )
                )
        else:
            alerts.append(
                ProjectionAlert(
                    kind=AlertKind.NO_UPCOMING_PAYMENT,
                    severity=AlertSeverity.ERROR,
                    message="No resolvable payment date within the projection horizon",
                    details=f"{self.settings.projection_horizon_months} month(s) from {as_of.isoformat()}",
                )
            )

        return ProjectionSummary(
            as_of=as_of,
            next_payment=next_payment,
            monthly_projection=projection,
            pending_advances=self._pending_advances(outstanding),
            alerts=alerts,
        )

    # === Periods ===

    def _upcoming_periods(
        self,
        supplied: list[PayrollPeriod],
        config: ProjectionConfig,
        resolver: BusinessDayResolver,
        as_of: date,
        alerts: list[ProjectionAlert],
    ) -> list[PayrollPeriod]:
        first_month = as_of.replace(day=1)
        horizon_end = first_month + relativedelta(
            months=self.settings.projection_horizon_months, days=-1
        )

        upcoming: list[PayrollPeriod] = []
        supplied_types: dict[tuple[int, int], set[PeriodType]] = defaultdict(set)
        for period in supplied:
            supplied_types[(period.year, period.month)].add(period.period_type)

        for period in supplied:
            if period.is_closed:
                continue
            try:
                payment_date = resolver.resolve(period.payment_date, config.payment_day_rule)
            except CalendarConfigurationError as e:
                alerts.append(self._calendar_alert(period.key, e))
                continue
            if as_of <= payment_date <= horizon_end:
                upcoming.append(replace(period, payment_date=payment_date))

        for offset in range(self.settings.projection_horizon_months):
            month_start = first_month + relativedelta(months=offset)
            year, month = month_start.year, month_start.month
            missing = self._missing_period_types(
                config.payment_frequency, supplied_types[(year, month)]
            )
            if not missing:
                continue
            try:
                generated = generate_periods(year, month, config, resolver)
            except CalendarConfigurationError as e:
                alerts.append(self._calendar_alert(f"{year:04d}-{month:02d}", e))
                continue
            upcoming.extend(
                p
                for p in generated
                if p.period_type in missing and as_of <= p.payment_date <= horizon_end
            )

        upcoming.sort(key=lambda p: (p.payment_date, p.period_start))
        return upcoming

    @staticmethod
    def _missing_period_types(
        frequency: PaymentFrequency, supplied: set[PeriodType]
    ) -> set[PeriodType]:
        """Period types of a month that still have to be generated.

        Closed periods count as supplied. A supplied MONTHLY period covers
        the whole month, and so does any supplied period under a MONTHLY
        schedule.
        """
        if PeriodType.MONTHLY in supplied:
            return set()
        if frequency == PaymentFrequency.MONTHLY:
            return set() if supplied else {PeriodType.MONTHLY}
        return {PeriodType.QUINCENA_1, PeriodType.QUINCENA_2} - supplied

    @staticmethod
    def _calendar_alert(label: str, error: CalendarConfigurationError) -> ProjectionAlert:
        logger.warning("Unresolvable payment date for %s: %s", label, error)
        return ProjectionAlert(
            kind=AlertKind.UNRESOLVABLE_PAYMENT_DATE,
            severity=AlertSeverity.ERROR,
            message=f"Payment date for {label} cannot be resolved to a business day",
            details=str(error),
        )

    # === Advances ===

    @staticmethod
    def _place_installments(
        advances: list[SalaryAdvance], upcoming: list[PayrollPeriod]
    ) -> dict[str, list[Installment]]:
        """Assign pending installments to the period that will discount them.

        Dated installments go to the period containing their due date
        (overdue ones to the first period). Undated installments fill
        periods in order: the k-th pending one to the k-th period.
        """
        placed: dict[str, list[Installment]] = defaultdict(list)
        if not upcoming:
            return placed

        for advance in advances:
            undated_slot = 0
            for installment in advance.pending_installments:
                if installment.due_date is None:
                    if undated_slot < len(upcoming):
                        placed[upcoming[undated_slot].key].append(installment)
                    undated_slot += 1
                    continue
                if installment.due_date < upcoming[0].period_start:
                    placed[upcoming[0].key].append(installment)
                    continue
                for period in upcoming:
                    if period.period_start <= installment.due_date <= period.period_end:
                        placed[period.key].append(installment)
                        break
        return placed

    @staticmethod
    def _pending_advances(advances: list[SalaryAdvance]) -> list[PendingAdvance]:
        pending: list[PendingAdvance] = []
        for advance in sorted(advances, key=lambda a: (a.employee_id, a.advance_id)):
            installment = advance.next_installment
            if installment is None:
                continue
            pending.append(
                PendingAdvance(
                    employee_id=advance.employee_id,
                    advance_id=advance.advance_id,
                    next_installment_amount=installment.amount,
                    remaining_amount=advance.remaining_amount,
                    pending_installments=len(advance.pending_installments),
                )
            )
        return pending

    @staticmethod
    def _advance_alerts(
        advances: list[SalaryAdvance],
        employees: list[Employee],
        config: ProjectionConfig,
    ) -> list[ProjectionAlert]:
        alerts: list[ProjectionAlert] = []
        by_employee: dict[str, list[SalaryAdvance]] = defaultdict(list)
        for advance in advances:
            by_employee[advance.employee_id].append(advance)
        salaries = {e.employee_id: e.gross_salary for e in employees}

        for employee_id in sorted(by_employee):
            employee_advances = by_employee[employee_id]
            if len(employee_advances) > config.max_active_advances:
                alerts.append(
                    ProjectionAlert(
                        kind=AlertKind.ADVANCE_LIMIT_EXCEEDED,
                        severity=AlertSeverity.WARNING,
                        message=(
                            f"Employee {employee_id} has {len(employee_advances)} active "
                            f"advances (limit {config.max_active_advances})"
                        ),
                    )
                )
            salary = salaries.get(employee_id)
            if salary is None or salary <= 0:
                continue
            limit = salary * config.max_advance_percent / Decimal("100")
            for advance in employee_advances:
                installment = advance.next_installment
                if installment is not None and installment.amount > limit:
                    alerts.append(
                        ProjectionAlert(
                            kind=AlertKind.ADVANCE_LIMIT_EXCEEDED,
                            severity=AlertSeverity.WARNING,
                            message=(
                                f"Advance {advance.advance_id} installment exceeds "
                                f"{config.max_advance_percent}% of employee {employee_id}'s salary"
                            ),
                            details=(
                                f"installment={installment.amount} "
                                f"limit={LineItemBuilder.round_to_cents(limit)}"
                            ),
                        )
                    )
        return alerts

    # === Outflow ===

    def _project_period(
        self,
        period: PayrollPeriod,
        employees: list[Employee],
        resolved: ResolvedConfiguration,
        config: ProjectionConfig,
        installments: list[Installment],
    ) -> tuple[ProjectedPayment, list[ProjectionAlert]]:
        alerts: list[ProjectionAlert] = []
        results: list[PayComputationResult] = [
            self.engine.run(employee, period, resolved) for employee in employees
        ]
        completed = [r for r in results if r.status == RunStatus.COMPLETE]
        failed = sorted(r.employee_id for r in results if r.status != RunStatus.COMPLETE)
        if failed:
            alerts.append(
                ProjectionAlert(
                    kind=AlertKind.EMPLOYEE_COMPUTATION_FAILED,
                    severity=AlertSeverity.WARNING,
                    message=(
                        f"{len(failed)} employee(s) could not be computed for {period.key} "
                        "and are excluded from the projection"
                    ),
                    details=", ".join(failed),
                )
            )

        share = config.period_share(period.period_type)
        gross = sum((r.gross_total for r in completed), ZERO) * share
        deductions = sum((r.deductions_total for r in completed), ZERO) * share
        net = sum((r.net_total for r in completed), ZERO) * share
        advances = sum((i.amount for i in installments), ZERO)
        outflow = net + advances

        threshold = gross * self.settings.outflow_alert_ratio
        if outflow > threshold:
            alerts.append(
                ProjectionAlert(
                    kind=AlertKind.OUTFLOW_EXCEEDS_GROSS,
                    severity=AlertSeverity.WARNING,
                    message=(
                        f"Projected outflow for {period.key} exceeds gross salaries; "
                        "check component configuration"
                    ),
                    details=(
                        f"outflow={LineItemBuilder.round_to_cents(outflow)} "
                        f"gross={LineItemBuilder.round_to_cents(gross)}"
                    ),
                )
            )

        breakdown = OutflowBreakdown(
            gross_salaries=LineItemBuilder.round_to_cents(gross),
            deductions=LineItemBuilder.round_to_cents(deductions),
            net_salaries=LineItemBuilder.round_to_cents(net),
            advances=LineItemBuilder.round_to_cents(advances),
        )
        payment = ProjectedPayment(
            period_key=period.key,
            payment_date=period.payment_date,
            expected_outflow=LineItemBuilder.round_to_cents(outflow),
            employee_count=len(completed),
            breakdown=breakdown,
        )
        return payment, alerts
