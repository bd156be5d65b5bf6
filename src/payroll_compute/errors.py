"""Exception hierarchy for payroll computation and projection.

Configuration errors are fatal for a whole batch and are raised before any
employee is computed. Evaluation errors are component-local: the run records
them on the failing line and keeps going with independent components.
"""

from __future__ import annotations

from datetime import date


class PayrollComputeError(Exception):
    """Base class for all engine errors."""


# === Configuration ===


class ConfigurationError(PayrollComputeError):
    """Raised when a tenant's component configuration is invalid."""


class DuplicateComponentError(ConfigurationError):
    """Two components share the same code."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Component code '{code}' is defined more than once")


class InvalidComponentError(ConfigurationError):
    """A single component definition violates a structural rule."""

    def __init__(self, code: str, reason: str):
        self.code = code
        self.reason = reason
        super().__init__(f"Component '{code}' is invalid: {reason}")


class UnknownDependencyError(ConfigurationError):
    """A component depends on a code absent from the configured set."""

    def __init__(self, code: str, missing: str):
        self.code = code
        self.missing = missing
        super().__init__(
            f"Component '{code}' depends on unknown component '{missing}'"
        )


class CyclicDependencyError(ConfigurationError):
    """The depends_on graph contains a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(f"Cyclic component dependency: {' -> '.join(cycle)}")


# === Evaluation (component-local) ===


class EvaluationError(PayrollComputeError):
    """Raised when a single component cannot be evaluated."""


class FormulaSyntaxError(EvaluationError):
    """The formula text could not be parsed."""

    def __init__(self, formula: str, position: int, reason: str):
        self.formula = formula
        self.position = position
        self.reason = reason
        super().__init__(f"Invalid formula '{formula}' at position {position}: {reason}")


class UnknownVariableError(EvaluationError):
    """The formula references a name that is not in scope."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown variable '{name}'")


# === Calendar / periods ===


class CalendarConfigurationError(PayrollComputeError):
    """No business day could be found within the scan limit."""

    def __init__(self, start: date, rule: str, max_scan: int):
        self.start = start
        self.rule = rule
        self.max_scan = max_scan
        super().__init__(
            f"No business day found within {max_scan} days of {start.isoformat()} "
            f"using rule {rule}"
        )


class PeriodClosedError(PayrollComputeError):
    """A run was attempted against a closed (immutable) period."""

    def __init__(self, period_key: str):
        self.period_key = period_key
        super().__init__(f"Payroll period {period_key} is closed")
