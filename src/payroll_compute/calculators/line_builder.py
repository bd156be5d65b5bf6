"""Line item builder: rounding, caps, totals and idempotent hashing."""

from __future__ import annotations

import hashlib
import json
from decimal import ROUND_DOWN, ROUND_HALF_UP, ROUND_UP, Decimal

from payroll_compute.calculators.types import (
    ComponentAmounts,
    ComponentLine,
    ComponentStatus,
    ComponentType,
    RoundingMode,
    SalaryComponentDefinition,
)

_DECIMAL_ROUNDING = {
    RoundingMode.HALF_UP: ROUND_HALF_UP,
    RoundingMode.UP: ROUND_UP,
    RoundingMode.DOWN: ROUND_DOWN,
}


class LineItemBuilder:
    """Builds component lines with deterministic hashing.

    Conventions (non-negotiable):
    - Line values are magnitudes; the component type carries the sign
    - Rounding happens exactly once, after proration and before caps
    - Caps clamp the rounded value; the capped value feeds accumulators
    - NET = Σ(EARNING) - Σ(DEDUCTION) over COMPLETE lines only
    """

    OUTPUT_PRECISION = Decimal("0.01")  # projections are reported in cents

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        return amount.quantize(LineItemBuilder.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def apply_rounding(value: Decimal, mode: RoundingMode, decimals: int) -> Decimal:
        """Round to `decimals` places with the given mode.

        HALF_UP and UP round away from zero, DOWN truncates toward zero,
        NONE returns the value unchanged.
        """
        if mode == RoundingMode.NONE:
            return value
        exponent = Decimal(1).scaleb(-decimals)
        return value.quantize(exponent, rounding=_DECIMAL_ROUNDING[mode])

    @staticmethod
    def apply_caps(
        value: Decimal, cap_min: Decimal | None, cap_max: Decimal | None
    ) -> Decimal:
        """Clamp a value into [cap_min, cap_max]; either bound may be absent."""
        if cap_max is not None and value > cap_max:
            value = cap_max
        if cap_min is not None and value < cap_min:
            value = cap_min
        return value

    @staticmethod
    def compute_line_hash(line: ComponentLine) -> str:
        """Compute deterministic hash for a line item."""
        canonical = line.to_canonical_dict()
        json_str = json.dumps(canonical, sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    @staticmethod
    def create_complete_line(
        component: SalaryComponentDefinition, amounts: ComponentAmounts
    ) -> ComponentLine:
        return ComponentLine(
            component_code=component.code,
            component_type=component.type,
            status=ComponentStatus.COMPLETE,
            raw_value=amounts.raw,
            prorated_value=amounts.prorated,
            rounded_value=amounts.rounded,
            capped_value=amounts.capped,
        )

    @staticmethod
    def create_failed_line(
        component: SalaryComponentDefinition, error: str
    ) -> ComponentLine:
        return ComponentLine(
            component_code=component.code,
            component_type=component.type,
            status=ComponentStatus.FAILED,
            error=error,
        )

    @staticmethod
    def create_skipped_line(
        component: SalaryComponentDefinition, failed_dependencies: list[str]
    ) -> ComponentLine:
        return ComponentLine(
            component_code=component.code,
            component_type=component.type,
            status=ComponentStatus.SKIPPED_DUE_TO_DEPENDENCY_FAILURE,
            error=f"Depends on failed component(s): {', '.join(failed_dependencies)}",
        )

    @staticmethod
    def create_not_applicable_line(component: SalaryComponentDefinition) -> ComponentLine:
        return ComponentLine(
            component_code=component.code,
            component_type=component.type,
            status=ComponentStatus.NOT_APPLICABLE,
        )

    @staticmethod
    def calculate_gross_from_lines(lines: list[ComponentLine]) -> Decimal:
        """GROSS = Σ(EARNING)."""
        gross = Decimal("0")
        for line in lines:
            if line.component_type == ComponentType.EARNING:
                gross += line.amount
        return gross

    @staticmethod
    def calculate_deductions_from_lines(lines: list[ComponentLine]) -> Decimal:
        """DEDUCTIONS = Σ(DEDUCTION)."""
        total = Decimal("0")
        for line in lines:
            if line.component_type == ComponentType.DEDUCTION:
                total += line.amount
        return total

    @staticmethod
    def calculate_net_from_lines(lines: list[ComponentLine]) -> Decimal:
        """NET = Σ(EARNING) - Σ(DEDUCTION)."""
        return LineItemBuilder.calculate_gross_from_lines(
            lines
        ) - LineItemBuilder.calculate_deductions_from_lines(lines)
