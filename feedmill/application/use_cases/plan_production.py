"""Plan Production Use Case - material checks before committing to a run."""

import math

from feedmill.application.dto.requests import CheckProductionRequest
from feedmill.application.use_cases.execute_production import material_requirements
from feedmill.config import get_logger
from feedmill.core.entities.common import quantize
from feedmill.core.entities.formula import Formula
from feedmill.core.entities.planning import MaxProducible, ProductionCheck
from feedmill.core.exceptions import FormulaNotFoundError
from feedmill.core.interfaces.catalog import IFormulaStore, IMaterialStore

logger = get_logger(__name__)


class PlanProductionUseCase:
    """Read-only simulation of a production request."""

    def __init__(
        self,
        formula_store: IFormulaStore | None = None,
        material_store: IMaterialStore | None = None,
    ):
        self._formula_store = formula_store
        self._material_store = material_store

    async def _get_formula_store(self) -> IFormulaStore:
        if self._formula_store is None:
            from feedmill.infrastructure.storage.sqlite import get_formula_store

            self._formula_store = await get_formula_store()
        return self._formula_store

    async def _get_material_store(self) -> IMaterialStore:
        if self._material_store is None:
            from feedmill.infrastructure.storage.sqlite import get_material_store

            self._material_store = await get_material_store()
        return self._material_store

    async def _formula(self, formula_id: int) -> Formula:
        formula = await (await self._get_formula_store()).get_formula(formula_id)
        if formula is None:
            raise FormulaNotFoundError(formula_id)
        return formula

    async def check(self, request: CheckProductionRequest) -> ProductionCheck:
        """Needed, available and cost per material for the requested quantity."""
        formula = await self._formula(request.formula_id)
        quantity = quantize(request.quantity)
        requirements = await material_requirements(
            formula, quantity, await self._get_material_store()
        )
        total_cost = quantize(sum(r.cost for r in requirements))
        check = ProductionCheck(
            formula_id=request.formula_id,
            product_id=formula.product_id,
            quantity=quantity,
            requirements=requirements,
            total_cost=total_cost,
            cost_per_unit=quantize(total_cost / quantity),
            can_produce=formula.is_active and all(r.is_sufficient for r in requirements),
        )
        logger.info(
            "production_check_complete",
            formula_id=request.formula_id,
            quantity=quantity,
            can_produce=check.can_produce,
        )
        return check

    async def max_producible(self, formula_id: int) -> MaxProducible:
        """Largest whole quantity the current balances allow, and what limits it."""
        formula = await self._formula(formula_id)
        material_store = await self._get_material_store()

        best: float | None = None
        limiting = None
        for line in formula.lines:
            material = await material_store.get_material(line.material_id)
            stock = material.stock if material else 0.0
            possible = math.floor(stock / line.quantity)
            if best is None or possible < best:
                best = possible
                limiting = line

        return MaxProducible(
            formula_id=formula_id,
            max_quantity=float(best or 0),
            limiting_material_id=limiting.material_id if limiting else None,
            limiting_material_name=limiting.material_name if limiting else None,
        )
