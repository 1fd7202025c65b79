"""Formula (bill of materials) entities."""

from datetime import datetime

from pydantic import BaseModel, Field

from feedmill.core.entities.common import quantize, utc_now

# Line quantities are per unit of output and add up to this basis.
FORMULA_BASIS = 1.0
FORMULA_BASIS_TOLERANCE = 0.001


class FormulaLine(BaseModel):
    """Quantity of one material per unit of product."""

    material_id: int
    quantity: float = Field(gt=0)

    # Joined from materials on read
    material_name: str | None = None
    unit_cost: float = 0.0

    @property
    def cost(self) -> float:
        return self.quantity * self.unit_cost


class Formula(BaseModel):
    """A recipe for one product."""

    id: int | None = None
    product_id: int
    name: str
    notes: str | None = None
    is_active: bool = True
    lines: list[FormulaLine] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def total_quantity(self) -> float:
        return round(sum(line.quantity for line in self.lines), 4)

    @property
    def unit_cost(self) -> float:
        """Material cost of one unit of output."""
        return round(sum(line.cost for line in self.lines), 2)

    def cost_of(self, quantity: float) -> float:
        """Material cost of `quantity` units, rounded once after multiplying."""
        return quantize(quantity * sum(line.cost for line in self.lines))

    @property
    def is_balanced(self) -> bool:
        return abs(self.total_quantity - FORMULA_BASIS) <= FORMULA_BASIS_TOLERANCE
