"""Single-component evaluation: calc type dispatch, proration, rounding, caps."""

from __future__ import annotations

from decimal import Decimal, DecimalException
from types import MappingProxyType
from typing import Mapping

from payroll_compute.calculators.formula import Formula, compile_formula
from payroll_compute.calculators.line_builder import LineItemBuilder
from payroll_compute.calculators.types import (
    BaseVariable,
    CalcType,
    ComponentAmounts,
    SalaryComponentDefinition,
)
from payroll_compute.errors import EvaluationError, UnknownVariableError

HUNDRED = Decimal("100")


class FormulaEvaluator:
    """Produces a component's raw value from its calc type."""

    @staticmethod
    def evaluate(
        calc_type: CalcType,
        calc_value: Decimal | None,
        calc_formula: str | None,
        scope: Mapping[str, Decimal],
        base_variable: BaseVariable = BaseVariable.GROSS,
        formula: Formula | None = None,
    ) -> Decimal:
        """Raw value before proration, rounding and caps.

        DAYS_BASED reads `days_worked` and `days_in_period` from the scope,
        so its proration is part of the raw value.
        """
        if calc_type == CalcType.FIXED:
            return FormulaEvaluator._require_value(calc_type, calc_value)

        if calc_type == CalcType.PERCENTAGE:
            value = FormulaEvaluator._require_value(calc_type, calc_value)
            return value / HUNDRED * FormulaEvaluator._lookup(scope, base_variable.value)

        if calc_type == CalcType.FORMULA:
            if formula is None:
                formula = compile_formula(calc_formula or "")
            return formula.evaluate(scope)

        if calc_type == CalcType.DAYS_BASED:
            value = FormulaEvaluator._require_value(calc_type, calc_value)
            days_in_period = FormulaEvaluator._lookup(scope, "days_in_period")
            if days_in_period == 0:
                raise EvaluationError("Division by zero: period has no days")
            return value * FormulaEvaluator._lookup(scope, "days_worked") / days_in_period

        raise EvaluationError(f"Unsupported calc_type: {calc_type}")

    @staticmethod
    def _require_value(calc_type: CalcType, calc_value: Decimal | None) -> Decimal:
        if calc_value is None:
            raise EvaluationError(f"{calc_type.value} component has no calc_value")
        return calc_value

    @staticmethod
    def _lookup(scope: Mapping[str, Decimal], name: str) -> Decimal:
        try:
            return scope[name]
        except KeyError:
            raise UnknownVariableError(name) from None


class ComponentCalculator:
    """Evaluates one component for one employee.

    Pipeline (fixed order):
    1) Formula evaluator produces `raw`
    2) Proration (unless DAYS_BASED or prorate_on_partial is off) -> `prorated`
    3) Rounding per rounding_mode/rounding_decimals -> `rounded`
    4) cap_min/cap_max clamp -> `capped`
    """

    def calculate(
        self,
        component: SalaryComponentDefinition,
        scope: Mapping[str, Decimal],
        proration_factor: Decimal,
        formula: Formula | None = None,
    ) -> ComponentAmounts:
        """Run the pipeline, raising EvaluationError on component-local failure."""
        frozen_scope = MappingProxyType(dict(scope))
        try:
            raw = FormulaEvaluator.evaluate(
                component.calc_type,
                component.calc_value,
                component.calc_formula,
                frozen_scope,
                base_variable=component.base_variable,
                formula=formula,
            )
            prorated = self.prorate(component, raw, proration_factor)
            rounded = LineItemBuilder.apply_rounding(
                prorated, component.rounding_mode, component.rounding_decimals
            )
        except DecimalException as e:
            raise EvaluationError(
                f"Arithmetic error evaluating {component.code}: {e!r}"
            ) from e
        capped = LineItemBuilder.apply_caps(rounded, component.cap_min, component.cap_max)
        return ComponentAmounts(raw=raw, prorated=prorated, rounded=rounded, capped=capped)

    @staticmethod
    def prorate(
        component: SalaryComponentDefinition, raw: Decimal, factor: Decimal
    ) -> Decimal:
        if component.calc_type == CalcType.DAYS_BASED or not component.prorate_on_partial:
            return raw
        if factor == 1:
            return raw
        return raw * factor
