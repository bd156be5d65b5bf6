"""Tests for single-component evaluation."""

from decimal import Decimal

import pytest

from payroll_compute.calculators import ComponentCalculator, FormulaEvaluator
from payroll_compute.calculators.types import (
    BaseVariable,
    CalcType,
    ComponentType,
    RoundingMode,
    VariableScope,
)
from payroll_compute.errors import EvaluationError, UnknownVariableError


@pytest.fixture
def calculator() -> ComponentCalculator:
    return ComponentCalculator()


@pytest.fixture
def scope() -> VariableScope:
    scope = VariableScope(
        gross_salary=Decimal("50000"),
        years=6,
        months=75,
        days_worked=10,
        days_in_period=15,
    )
    return scope


class TestFormulaEvaluator:
    """Raw value per calc type."""

    def test_fixed(self):
        assert FormulaEvaluator.evaluate(
            CalcType.FIXED, Decimal("1234.5"), None, {}
        ) == Decimal("1234.5")

    def test_percentage_of_base_variable(self):
        view = {"gross": Decimal("50000"), "base": Decimal("40000"), "net": Decimal("0")}
        assert FormulaEvaluator.evaluate(
            CalcType.PERCENTAGE, Decimal("10"), None, view
        ) == Decimal("5000")
        assert FormulaEvaluator.evaluate(
            CalcType.PERCENTAGE, Decimal("10"), None, view, base_variable=BaseVariable.BASE
        ) == Decimal("4000")

    def test_percentage_missing_base(self):
        with pytest.raises(UnknownVariableError):
            FormulaEvaluator.evaluate(CalcType.PERCENTAGE, Decimal("10"), None, {})

    def test_formula_text_compiled_on_demand(self):
        assert FormulaEvaluator.evaluate(
            CalcType.FORMULA, None, "gross * 2", {"gross": Decimal("3")}
        ) == Decimal("6")

    def test_days_based(self):
        view = {"days_worked": Decimal("10"), "days_in_period": Decimal("15")}
        assert FormulaEvaluator.evaluate(
            CalcType.DAYS_BASED, Decimal("3000"), None, view
        ) == Decimal("2000")

    def test_days_based_empty_period(self):
        view = {"days_worked": Decimal("0"), "days_in_period": Decimal("0")}
        with pytest.raises(EvaluationError):
            FormulaEvaluator.evaluate(CalcType.DAYS_BASED, Decimal("3000"), None, view)

    def test_fixed_without_value(self):
        with pytest.raises(EvaluationError):
            FormulaEvaluator.evaluate(CalcType.FIXED, None, None, {})


class TestComponentCalculator:
    """Pipeline: raw -> prorated -> rounded -> capped."""

    def test_pipeline_order(self, calculator, make_component, scope):
        component = make_component(
            "PREMIO",
            CalcType.FIXED,
            calc_value=Decimal("1000.555"),
            cap_max=Decimal("400"),
        )
        amounts = calculator.calculate(component, scope.view_for(component), Decimal("0.5"))
        assert amounts.raw == Decimal("1000.555")
        assert amounts.prorated == Decimal("500.2775")
        assert amounts.rounded == Decimal("500.28")
        assert amounts.capped == Decimal("400")

    def test_prorate_disabled(self, calculator, make_component, scope):
        component = make_component(
            "BONO", calc_value=Decimal("1000"), prorate_on_partial=False
        )
        amounts = calculator.calculate(component, scope.view_for(component), Decimal("0.5"))
        assert amounts.prorated == Decimal("1000")

    def test_days_based_is_not_prorated_twice(self, calculator, make_component, scope):
        component = make_component("VIATICO", CalcType.DAYS_BASED, calc_value=Decimal("3000"))
        amounts = calculator.calculate(component, scope.view_for(component), Decimal("0.5"))
        assert amounts.raw == Decimal("2000")
        assert amounts.prorated == Decimal("2000")

    def test_cap_min_applies_after_rounding(self, calculator, make_component, scope):
        component = make_component(
            "MINIMO",
            CalcType.FORMULA,
            calc_formula="gross * 0.00001",
            rounding_mode=RoundingMode.DOWN,
            rounding_decimals=0,
            cap_min=Decimal("1"),
        )
        amounts = calculator.calculate(component, scope.view_for(component), Decimal("1"))
        assert amounts.rounded == Decimal("0")
        assert amounts.capped == Decimal("1")

    def test_formula_sees_seniority_and_dependencies(self, calculator, make_component, scope):
        basico = make_component("BASICO", calc_value=Decimal("50000"))
        scope.accumulate(basico, Decimal("50000"))
        antiguedad = make_component(
            "ANTIGUEDAD",
            CalcType.FORMULA,
            calc_formula="BASICO * years / 100",
            depends_on=("BASICO",),
        )
        amounts = calculator.calculate(antiguedad, scope.view_for(antiguedad), Decimal("1"))
        assert amounts.capped == Decimal("3000.00")

    def test_undeclared_dependency_is_unknown(self, calculator, make_component, scope):
        """Only declared dependencies are visible to a formula."""
        basico = make_component("BASICO", calc_value=Decimal("50000"))
        scope.accumulate(basico, Decimal("50000"))
        sneaky = make_component("SNEAKY", CalcType.FORMULA, calc_formula="BASICO * 2")
        with pytest.raises(UnknownVariableError):
            calculator.calculate(sneaky, scope.view_for(sneaky), Decimal("1"))

    def test_deduction_percentage_on_net(self, calculator, make_component, scope):
        basico = make_component("BASICO", calc_value=Decimal("50000"))
        scope.accumulate(basico, Decimal("50000"))
        cuota = make_component(
            "CUOTA",
            CalcType.PERCENTAGE,
            type=ComponentType.DEDUCTION,
            calc_value=Decimal("2"),
            base_variable=BaseVariable.NET,
        )
        amounts = calculator.calculate(cuota, scope.view_for(cuota), Decimal("1"))
        assert amounts.capped == Decimal("1000.00")
