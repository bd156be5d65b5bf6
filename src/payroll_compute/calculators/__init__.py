"""Payroll calculation engine."""

from payroll_compute.calculators.component_calculator import ComponentCalculator, FormulaEvaluator
from payroll_compute.calculators.dependency_resolver import DependencyResolver, ResolvedConfiguration
from payroll_compute.calculators.engine import BatchResult, PayComputationResult, PayrollEngine
from payroll_compute.calculators.formula import Formula, compile_formula
from payroll_compute.calculators.line_builder import LineItemBuilder
from payroll_compute.calculators.proration import ProrationPolicy

__all__ = [
    "BatchResult",
    "ComponentCalculator",
    "DependencyResolver",
    "Formula",
    "FormulaEvaluator",
    "LineItemBuilder",
    "PayComputationResult",
    "PayrollEngine",
    "ProrationPolicy",
    "ResolvedConfiguration",
    "compile_formula",
]
