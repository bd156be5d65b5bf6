"""Payroll compute services."""

from payroll_compute.services.state_machine import InvalidTransitionError, RunStateMachine, RunStatus

__all__ = [
    "RunStateMachine",
    "RunStatus",
    "InvalidTransitionError",
]
