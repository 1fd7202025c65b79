"""Abstract interfaces for catalog data: materials, products and formulas."""

from abc import ABC, abstractmethod
from typing import Any

from feedmill.core.entities.formula import Formula
from feedmill.core.entities.material import Material, MaterialCategory
from feedmill.core.entities.product import Product


class IMaterialStore(ABC):
    """Material master data. Balances are changed through IMaterialInventory."""

    @abstractmethod
    async def create_material(self, material: Material) -> Material:
        pass

    @abstractmethod
    async def get_material(self, material_id: int, conn: Any = None) -> Material | None:
        pass

    @abstractmethod
    async def get_material_by_name(self, name: str) -> Material | None:
        pass

    @abstractmethod
    async def list_materials(
        self,
        category: MaterialCategory | None = None,
        limit: int = 500,
        offset: int = 0,
    ) -> list[Material]:
        pass

    @abstractmethod
    async def update_material(self, material: Material) -> Material:
        """Update attributes other than the balance."""
        pass

    @abstractmethod
    async def delete_material(self, material_id: int) -> bool:
        """Raises MaterialInUseError unless the balance is zero and nothing references it."""
        pass


class IProductStore(ABC):
    @abstractmethod
    async def create_product(self, product: Product) -> Product:
        pass

    @abstractmethod
    async def get_product(self, product_id: int, conn: Any = None) -> Product | None:
        pass

    @abstractmethod
    async def get_product_by_code(self, code: str) -> Product | None:
        pass

    @abstractmethod
    async def list_products(self, limit: int = 500, offset: int = 0) -> list[Product]:
        pass


class IFormulaStore(ABC):
    """Read access to recipes, plus creation for seeding."""

    @abstractmethod
    async def create_formula(self, formula: Formula) -> Formula:
        pass

    @abstractmethod
    async def get_formula(self, formula_id: int, conn: Any = None) -> Formula | None:
        """Formula with its lines joined to material name and unit cost."""
        pass

    @abstractmethod
    async def get_active_formula(self, product_id: int) -> Formula | None:
        pass

    @abstractmethod
    async def set_active(self, formula_id: int, is_active: bool) -> None:
        pass

    @abstractmethod
    async def list_formulas_using_material(
        self, material_id: int, active_only: bool = True
    ) -> list[Formula]:
        pass
