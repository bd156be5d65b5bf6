"""Batch payroll service - one period, many employees."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Callable, Iterable

from payroll_compute.calculators.dependency_resolver import ResolvedConfiguration
from payroll_compute.calculators.engine import BatchResult, PayComputationResult, PayrollEngine
from payroll_compute.config import Settings, get_settings
from payroll_compute.errors import PeriodClosedError
from payroll_compute.models import Employee, PayrollPeriod
from payroll_compute.services.state_machine import RunStatus

logger = logging.getLogger(__name__)


class _StopSignal:
    """Shared between workers; decides whether the next employee may start."""

    def __init__(
        self,
        cancel_event: threading.Event | None,
        deadline: float | None,
        period_closed_probe: Callable[[], bool] | None,
    ):
        self.cancel_event = cancel_event
        self.deadline = deadline
        self.period_closed_probe = period_closed_probe
        self.cancelled = False
        self.deadline_exceeded = False
        self.period_closed = False
        self._lock = threading.Lock()

    def check(self) -> str | None:
        """Return a reason not to start another employee, or None."""
        with self._lock:
            if self.cancel_event is not None and self.cancel_event.is_set():
                self.cancelled = True
            if self.deadline is not None and time.monotonic() >= self.deadline:
                self.deadline_exceeded = True
            if (
                not self.period_closed
                and self.period_closed_probe is not None
                and self.period_closed_probe()
            ):
                self.period_closed = True

            if self.cancelled:
                return "Batch cancelled before this employee started"
            if self.deadline_exceeded:
                return "Batch deadline reached before this employee started"
            if self.period_closed:
                return "Period closed before this employee started"
            return None


class PayrollBatchService:
    """Runs a payroll period for many employees.

    Employees are independent, so they are fanned out over a thread pool.
    Cancellation, the deadline and period closure are checked between
    employees only; an employee that has started always finishes.
    Employees never started are reported as NOT_PROCESSED.
    """

    def __init__(self, engine: PayrollEngine | None = None, settings: Settings | None = None):
        self.settings = settings or (engine.settings if engine else get_settings())
        self.engine = engine or PayrollEngine(self.settings)

    def run_batch(
        self,
        employees: Iterable[Employee],
        period: PayrollPeriod,
        resolved: ResolvedConfiguration,
        cancel_event: threading.Event | None = None,
        deadline_seconds: float | None = None,
        period_closed_probe: Callable[[], bool] | None = None,
        max_workers: int | None = None,
    ) -> BatchResult:
        """Compute every employee for a period.

        Raises PeriodClosedError before any work if the period is closed.
        If the probe reports closure mid-batch, remaining employees are not
        started and the batch is flagged advisory.
        """
        if period.is_closed:
            raise PeriodClosedError(period.key)

        roster = list(employees)
        seen: set[str] = set()
        for employee in roster:
            if employee.employee_id in seen:
                raise ValueError(f"Employee {employee.employee_id} appears more than once")
            seen.add(employee.employee_id)

        deadline = (
            time.monotonic() + deadline_seconds if deadline_seconds is not None else None
        )
        signal = _StopSignal(cancel_event, deadline, period_closed_probe)
        workers = max_workers or self.settings.worker_count

        logger.info(
            "Starting batch for %s: %d employees, %d workers",
            period.key,
            len(roster),
            workers,
        )

        def task(employee: Employee) -> PayComputationResult:
            reason = signal.check()
            if reason is not None:
                return PayComputationResult.not_processed(
                    employee.employee_id, period.key, reason
                )
            try:
                return self.engine.run(employee, period, resolved)
            except Exception as e:
                logger.exception(
                    "Unexpected error computing employee %s for %s",
                    employee.employee_id,
                    period.key,
                )
                return PayComputationResult.failed(
                    employee.employee_id, period.key, f"Unexpected error: {e}"
                )

        with ThreadPoolExecutor(max_workers=workers) as pool:
            computed = list(pool.map(task, roster))

        result = self._aggregate(period, computed)
        result.cancelled = signal.cancelled
        result.deadline_exceeded = signal.deadline_exceeded
        result.advisory = signal.period_closed

        if result.cancelled or result.deadline_exceeded or result.advisory:
            logger.info(
                "Batch for %s stopped early: %d of %d employees not processed",
                period.key,
                result.not_processed_count,
                len(roster),
            )
        logger.info(
            "Finished batch for %s: gross=%s net=%s errors=%d",
            period.key,
            result.total_gross,
            result.total_net,
            result.error_count,
        )
        return result

    @staticmethod
    def _aggregate(
        period: PayrollPeriod, computed: list[PayComputationResult]
    ) -> BatchResult:
        results: dict[str, PayComputationResult] = {}
        statuses: dict[RunStatus, int] = {status: 0 for status in RunStatus}
        total_gross = Decimal("0")
        total_deductions = Decimal("0")
        total_net = Decimal("0")

        for item in computed:
            results[item.employee_id] = item
            statuses[item.status] += 1
            if item.status == RunStatus.COMPLETE:
                total_gross += item.gross_total
                total_deductions += item.deductions_total
                total_net += item.net_total

        return BatchResult(
            period_key=period.key,
            results=results,
            total_gross=total_gross,
            total_deductions=total_deductions,
            total_net=total_net,
            error_count=statuses[RunStatus.FAILED],
            not_processed_count=statuses[RunStatus.NOT_PROCESSED],
            statuses=statuses,
        )
