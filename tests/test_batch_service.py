"""Tests for batch payroll runs."""

import threading
from dataclasses import replace
from decimal import Decimal

import pytest

from payroll_compute.calculators import PayrollEngine
from payroll_compute.errors import PeriodClosedError
from payroll_compute.services.batch_service import PayrollBatchService
from payroll_compute.services.state_machine import RunStatus


class ExplodingEngine(PayrollEngine):
    """Raises a non-domain error for one employee."""

    def run(self, employee, period, resolved):
        if employee.employee_id == "BOOM":
            raise RuntimeError("disk on fire")
        return super().run(employee, period, resolved)


@pytest.fixture
def service(engine) -> PayrollBatchService:
    return PayrollBatchService(engine)


@pytest.fixture
def resolved(resolver, standard_components):
    return resolver.order(standard_components)


@pytest.fixture
def roster(make_employee):
    return [make_employee(f"E{i}") for i in range(1, 6)]


class TestBatchRun:
    """Whole-period runs."""

    def test_all_employees_complete(self, service, roster, march_q1, resolved):
        result = service.run_batch(roster, march_q1, resolved)

        assert result.period_key == "2026-03/QUINCENA_1"
        assert set(result.results) == {e.employee_id for e in roster}
        assert result.statuses[RunStatus.COMPLETE] == 5
        assert result.total_gross == Decimal("275000.00")
        assert result.total_deductions == Decimal("30250.00")
        assert result.total_net == Decimal("244750.00")
        assert result.error_count == 0
        assert not result.cancelled
        assert not result.advisory

    def test_matches_single_employee_runs(self, engine, service, roster, march_q1, resolved):
        batch = service.run_batch(roster, march_q1, resolved, max_workers=3)
        for employee in roster:
            single = engine.run(employee, march_q1, resolved)
            assert batch.results[employee.employee_id].calculation_id == single.calculation_id

    def test_closed_period_is_refused(self, service, roster, march_q1, resolved):
        with pytest.raises(PeriodClosedError):
            service.run_batch(roster, replace(march_q1, is_closed=True), resolved)

    def test_duplicate_employee_rejected(self, service, make_employee, march_q1, resolved):
        with pytest.raises(ValueError):
            service.run_batch([make_employee("E1"), make_employee("E1")], march_q1, resolved)

    def test_empty_roster(self, service, march_q1, resolved):
        result = service.run_batch([], march_q1, resolved)
        assert result.results == {}
        assert result.total_net == Decimal("0")

    def test_unexpected_error_fails_only_that_employee(
        self, settings, make_employee, march_q1, resolved, caplog
    ):
        service = PayrollBatchService(ExplodingEngine(settings))
        roster = [make_employee("E1"), make_employee("BOOM"), make_employee("E2")]

        with caplog.at_level("ERROR"):
            result = service.run_batch(roster, march_q1, resolved)

        assert result.results["BOOM"].status == RunStatus.FAILED
        assert "disk on fire" in result.results["BOOM"].errors[0]
        assert result.results["E1"].status == RunStatus.COMPLETE
        assert result.error_count == 1
        assert result.total_net == Decimal("97900.00")
        assert "Unexpected error computing employee BOOM" in caplog.text


class TestEarlyStop:
    """Cancellation, deadline and period closure act between employees."""

    def test_cancelled_before_start(self, service, roster, march_q1, resolved):
        cancel = threading.Event()
        cancel.set()

        result = service.run_batch(roster, march_q1, resolved, cancel_event=cancel)

        assert result.cancelled
        assert result.not_processed_count == 5
        assert all(r.status == RunStatus.NOT_PROCESSED for r in result.results.values())
        assert result.total_net == Decimal("0")

    def test_cancel_mid_batch(self, settings, make_employee, march_q1, resolved):
        cancel = threading.Event()

        class CancellingEngine(PayrollEngine):
            def run(self, employee, period, resolved):
                result = super().run(employee, period, resolved)
                if employee.employee_id == "E2":
                    cancel.set()
                return result

        service = PayrollBatchService(CancellingEngine(settings))
        roster = [make_employee(f"E{i}") for i in range(1, 5)]

        result = service.run_batch(roster, march_q1, resolved, cancel_event=cancel, max_workers=1)

        assert result.cancelled
        assert result.results["E1"].status == RunStatus.COMPLETE
        # E2 had already started, so it finishes
        assert result.results["E2"].status == RunStatus.COMPLETE
        assert result.results["E3"].status == RunStatus.NOT_PROCESSED
        assert result.results["E4"].status == RunStatus.NOT_PROCESSED
        assert result.not_processed_count == 2

    def test_deadline_already_passed(self, service, roster, march_q1, resolved):
        result = service.run_batch(roster, march_q1, resolved, deadline_seconds=0)

        assert result.deadline_exceeded
        assert result.not_processed_count == 5
        assert "deadline" in result.results["E1"].errors[0]

    def test_period_closed_mid_batch_is_advisory(self, service, roster, march_q1, resolved):
        calls = []

        def probe() -> bool:
            calls.append(1)
            return len(calls) > 2

        result = service.run_batch(
            roster, march_q1, resolved, period_closed_probe=probe, max_workers=1
        )

        assert result.advisory
        assert result.statuses[RunStatus.COMPLETE] == 2
        assert result.not_processed_count == 3
        assert result.total_net == Decimal("97900.00")
