"""Configuration validation and evaluation ordering for salary components."""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

import networkx as nx

from payroll_compute.calculators.formula import Formula, compile_formula
from payroll_compute.calculators.types import CalcType, SalaryComponentDefinition
from payroll_compute.errors import (
    CyclicDependencyError,
    DuplicateComponentError,
    FormulaSyntaxError,
    InvalidComponentError,
    UnknownDependencyError,
)

logger = logging.getLogger(__name__)

# Quantizing past this overflows the default 28-digit decimal context
MAX_ROUNDING_DECIMALS = 10


@dataclass(frozen=True)
class ResolvedConfiguration:
    """A validated component set, ordered for evaluation.

    Computed once per configuration version and passed into every run.
    Components live in an arena (`components`); `evaluation_order` holds
    arena indices in dependency order.
    """

    components: tuple[SalaryComponentDefinition, ...]
    evaluation_order: tuple[int, ...]
    index_by_code: Mapping[str, int]
    dependents: Mapping[str, tuple[str, ...]]
    formulas: Mapping[str, Formula]
    formula_errors: Mapping[str, FormulaSyntaxError]
    fingerprint: str

    def ordered(self) -> Iterator[SalaryComponentDefinition]:
        """Components in evaluation order."""
        for index in self.evaluation_order:
            yield self.components[index]

    def get(self, code: str) -> SalaryComponentDefinition:
        return self.components[self.index_by_code[code]]

    @property
    def codes(self) -> list[str]:
        return [c.code for c in self.ordered()]

    def transitive_dependents(self, code: str) -> set[str]:
        """All components that directly or indirectly depend on `code`."""
        seen: set[str] = set()
        stack = list(self.dependents.get(code, ()))
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self.dependents.get(current, ()))
        return seen


class DependencyResolver:
    """Validates a component set and orders it for evaluation.

    Validation order (first failure wins):
    1) Duplicate codes
    2) Per-component structure (rounding decimals, caps, calc inputs)
    3) Unknown dependency references
    4) Cycles

    Ordering is a topological sort over depends_on; among components
    ready at the same time, lower `order` first, then code.
    """

    def order(
        self, components: Iterable[SalaryComponentDefinition]
    ) -> ResolvedConfiguration:
        arena = tuple(components)

        index_by_code: dict[str, int] = {}
        for i, component in enumerate(arena):
            if component.code in index_by_code:
                raise DuplicateComponentError(component.code)
            index_by_code[component.code] = i

        for component in self._sorted(arena):
            self._validate_component(component)

        # Edges point from a dependency to its dependent
        graph = nx.DiGraph()
        graph.add_nodes_from(c.code for c in arena)
        for component in self._sorted(arena):
            for dep in component.depends_on:
                if dep not in index_by_code:
                    raise UnknownDependencyError(component.code, dep)
                graph.add_edge(dep, component.code)

        evaluation_order = self._topological_order(arena, index_by_code, graph)

        formulas: dict[str, Formula] = {}
        formula_errors: dict[str, FormulaSyntaxError] = {}
        for component in arena:
            if component.calc_type != CalcType.FORMULA:
                continue
            try:
                formulas[component.code] = compile_formula(component.calc_formula or "")
            except FormulaSyntaxError as e:
                # Reported per employee as a component-local failure
                logger.warning("Component %s has an invalid formula: %s", component.code, e)
                formula_errors[component.code] = e

        return ResolvedConfiguration(
            components=arena,
            evaluation_order=tuple(evaluation_order),
            index_by_code=MappingProxyType(index_by_code),
            dependents=MappingProxyType(
                {code: tuple(sorted(graph.successors(code))) for code in graph.nodes}
            ),
            formulas=MappingProxyType(formulas),
            formula_errors=MappingProxyType(formula_errors),
            fingerprint=self._compute_fingerprint(arena),
        )

    @staticmethod
    def _sorted(
        arena: tuple[SalaryComponentDefinition, ...]
    ) -> list[SalaryComponentDefinition]:
        return sorted(arena, key=lambda c: (c.order, c.code))

    def _validate_component(self, component: SalaryComponentDefinition) -> None:
        code = component.code
        if not code:
            raise InvalidComponentError(code, "code is required")
        if not 0 <= component.rounding_decimals <= MAX_ROUNDING_DECIMALS:
            raise InvalidComponentError(
                code, f"rounding_decimals must be between 0 and {MAX_ROUNDING_DECIMALS}"
            )
        if (
            component.cap_min is not None
            and component.cap_max is not None
            and component.cap_min > component.cap_max
        ):
            raise InvalidComponentError(
                code, f"cap_min {component.cap_min} exceeds cap_max {component.cap_max}"
            )
        if component.calc_type == CalcType.FORMULA:
            if not (component.calc_formula or "").strip():
                raise InvalidComponentError(code, "FORMULA component has no calc_formula")
        elif component.calc_value is None:
            raise InvalidComponentError(
                code, f"{component.calc_type.value} component has no calc_value"
            )
        if component.calc_type == CalcType.DAYS_BASED and component.prorate_on_partial:
            logger.warning(
                "Component %s is DAYS_BASED; prorate_on_partial is ignored", code
            )

    def _topological_order(
        self,
        arena: tuple[SalaryComponentDefinition, ...],
        index_by_code: dict[str, int],
        graph: nx.DiGraph,
    ) -> list[int]:
        """Lexicographic topological sort keyed by (order, code)."""
        try:
            codes = list(
                nx.lexicographical_topological_sort(
                    graph, key=lambda code: (arena[index_by_code[code]].order, code)
                )
            )
        except nx.NetworkXUnfeasible:
            cyclic = [
                scc
                for scc in nx.strongly_connected_components(graph)
                if len(scc) > 1 or any(graph.has_edge(code, code) for code in scc)
            ]
            blocked = min(cyclic, key=min)
            raise CyclicDependencyError(
                self._find_cycle(arena, index_by_code, set(blocked))
            ) from None
        return [index_by_code[code] for code in codes]

    @staticmethod
    def _find_cycle(
        arena: tuple[SalaryComponentDefinition, ...],
        index_by_code: dict[str, int],
        blocked: set[str],
    ) -> list[str]:
        """Walk depends_on edges inside one strongly connected component until a node repeats."""
        start = min(blocked)
        path: list[str] = []
        position: dict[str, int] = {}
        current = start
        while current not in position:
            position[current] = len(path)
            path.append(current)
            component = arena[index_by_code[current]]
            # Every node of a cyclic component has a dependency inside it
            current = min(dep for dep in component.depends_on if dep in blocked)
        return path[position[current]:] + [current]

    @staticmethod
    def _compute_fingerprint(arena: tuple[SalaryComponentDefinition, ...]) -> str:
        """Fingerprint of the configuration version (order-independent)."""
        canonical = sorted(
            (c.to_canonical_dict() for c in arena), key=lambda d: d["code"]
        )
        json_str = json.dumps(canonical, sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]
