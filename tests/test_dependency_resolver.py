"""Tests for configuration validation and evaluation ordering."""

from decimal import Decimal

import pytest

from payroll_compute.calculators.types import CalcType
from payroll_compute.errors import (
    ConfigurationError,
    CyclicDependencyError,
    DuplicateComponentError,
    InvalidComponentError,
    UnknownDependencyError,
)


class TestOrdering:
    """Topological order with (order, code) tie-break."""

    def test_dependencies_come_first(self, resolver, standard_components):
        resolved = resolver.order(standard_components)
        assert resolved.codes == ["BASICO", "PRESENTISMO", "JUBILACION"]

    def test_declaration_order_does_not_matter(self, resolver, standard_components):
        forward = resolver.order(standard_components)
        backward = resolver.order(list(reversed(standard_components)))
        assert forward.codes == backward.codes
        assert forward.fingerprint == backward.fingerprint

    def test_independent_components_sorted_by_order_then_code(self, resolver, make_component):
        components = [
            make_component("ZETA", calc_value=Decimal("1"), order=1),
            make_component("BETA", calc_value=Decimal("1"), order=2),
            make_component("ALFA", calc_value=Decimal("1"), order=2),
        ]
        assert resolver.order(components).codes == ["ZETA", "ALFA", "BETA"]

    def test_dependency_overrides_order_field(self, resolver, make_component):
        components = [
            make_component("A", CalcType.FORMULA, calc_formula="B * 2", depends_on=("B",), order=1),
            make_component("B", calc_value=Decimal("10"), order=99),
        ]
        assert resolver.order(components).codes == ["B", "A"]

    def test_dependents_index(self, resolver, standard_components):
        resolved = resolver.order(standard_components)
        assert resolved.dependents["BASICO"] == ("JUBILACION", "PRESENTISMO")
        assert resolved.transitive_dependents("BASICO") == {"PRESENTISMO", "JUBILACION"}
        assert resolved.transitive_dependents("JUBILACION") == set()

    def test_arena_lookup(self, resolver, standard_components):
        resolved = resolver.order(standard_components)
        assert resolved.get("PRESENTISMO").calc_value == Decimal("10")
        assert [resolved.components[i].code for i in resolved.evaluation_order] == resolved.codes

    def test_fingerprint_changes_with_configuration(self, resolver, make_component):
        one = resolver.order([make_component("BASICO", calc_value=Decimal("50000"))])
        two = resolver.order([make_component("BASICO", calc_value=Decimal("50001"))])
        assert one.fingerprint != two.fingerprint


class TestValidation:
    """Configuration errors are raised before any run."""

    def test_cycle_is_rejected(self, resolver, make_component):
        components = [
            make_component("A", CalcType.FORMULA, calc_formula="B", depends_on=("B",)),
            make_component("B", CalcType.FORMULA, calc_formula="A", depends_on=("A",)),
        ]
        with pytest.raises(CyclicDependencyError) as exc_info:
            resolver.order(components)
        assert exc_info.value.cycle == ["A", "B", "A"]
        assert "A -> B -> A" in str(exc_info.value)

    def test_self_dependency_is_a_cycle(self, resolver, make_component):
        components = [make_component("A", CalcType.FORMULA, calc_formula="A", depends_on=("A",))]
        with pytest.raises(CyclicDependencyError) as exc_info:
            resolver.order(components)
        assert exc_info.value.cycle == ["A", "A"]

    def test_cycle_behind_valid_prefix(self, resolver, make_component):
        components = [
            make_component("BASICO", calc_value=Decimal("1")),
            make_component("X", CalcType.FORMULA, calc_formula="Y", depends_on=("BASICO", "Y")),
            make_component("Y", CalcType.FORMULA, calc_formula="Z", depends_on=("Z",)),
            make_component("Z", CalcType.FORMULA, calc_formula="X", depends_on=("X",)),
        ]
        with pytest.raises(CyclicDependencyError) as exc_info:
            resolver.order(components)
        assert exc_info.value.cycle == ["X", "Y", "Z", "X"]

    def test_unknown_dependency(self, resolver, make_component):
        components = [make_component("A", calc_value=Decimal("1"), depends_on=("GHOST",))]
        with pytest.raises(UnknownDependencyError) as exc_info:
            resolver.order(components)
        assert exc_info.value.missing == "GHOST"

    def test_duplicate_code(self, resolver, make_component):
        components = [
            make_component("A", calc_value=Decimal("1")),
            make_component("A", calc_value=Decimal("2")),
        ]
        with pytest.raises(DuplicateComponentError):
            resolver.order(components)

    def test_cap_min_above_cap_max(self, resolver, make_component):
        components = [
            make_component(
                "A", calc_value=Decimal("1"), cap_min=Decimal("10"), cap_max=Decimal("5")
            )
        ]
        with pytest.raises(InvalidComponentError, match="cap_min"):
            resolver.order(components)

    def test_negative_rounding_decimals(self, resolver, make_component):
        with pytest.raises(InvalidComponentError):
            resolver.order([make_component("A", calc_value=Decimal("1"), rounding_decimals=-1)])

    def test_rounding_decimals_beyond_decimal_precision(self, resolver, make_component):
        with pytest.raises(InvalidComponentError, match="rounding_decimals"):
            resolver.order([make_component("A", calc_value=Decimal("1"), rounding_decimals=30)])

    def test_rounding_decimals_upper_bound_is_accepted(self, resolver, make_component):
        resolved = resolver.order(
            [make_component("A", calc_value=Decimal("1"), rounding_decimals=10)]
        )
        assert resolved.codes == ["A"]

    def test_missing_calc_inputs(self, resolver, make_component):
        with pytest.raises(InvalidComponentError):
            resolver.order([make_component("A", CalcType.PERCENTAGE)])
        with pytest.raises(InvalidComponentError):
            resolver.order([make_component("B", CalcType.FORMULA, calc_formula="  ")])

    def test_all_are_configuration_errors(self):
        for error in (
            CyclicDependencyError,
            UnknownDependencyError,
            DuplicateComponentError,
            InvalidComponentError,
        ):
            assert issubclass(error, ConfigurationError)

    def test_bad_formula_is_deferred_to_runs(self, resolver, make_component):
        """Syntax errors are recorded, not raised; they fail the component per employee."""
        components = [make_component("A", CalcType.FORMULA, calc_formula="gross *")]
        resolved = resolver.order(components)
        assert "A" in resolved.formula_errors
        assert "A" not in resolved.formulas

    def test_deeply_nested_formula_is_deferred_to_runs(self, resolver, make_component):
        components = [
            make_component("A", CalcType.FORMULA, calc_formula="(" * 400 + "1" + ")" * 400)
        ]
        resolved = resolver.order(components)
        assert "nested too deeply" in str(resolved.formula_errors["A"])

    def test_days_based_proration_flag_logs_warning(self, resolver, make_component, caplog):
        components = [make_component("VIATICO", CalcType.DAYS_BASED, calc_value=Decimal("3000"))]
        with caplog.at_level("WARNING"):
            resolver.order(components)
        assert "prorate_on_partial is ignored" in caplog.text
