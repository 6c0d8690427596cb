"""
Type definitions for recipe stock checks
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class IngredientRequirement:
    """One raw material's need for a production of N units"""
    raw_material_id: int
    name: str
    recipe_quantity: float
    recipe_unit: str
    required_qty: Optional[float]
    unit: str
    available_qty: float = 0.0

    @property
    def convertible(self) -> bool:
        return self.required_qty is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'raw_material_id': self.raw_material_id,
            'required_qty': self.required_qty,
            'unit': self.unit,
            'name': self.name,
            'recipe_quantity': self.recipe_quantity,
            'recipe_unit': self.recipe_unit,
            'convertible': self.convertible,
        }


@dataclass(frozen=True)
class MissingIngredient:
    """Shortfall entry. `required` is in the recipe unit, `available` in the stock unit."""
    raw_material_id: int
    name: str
    required: float
    available: float
    unit_recipe: str
    unit_stock: str
    required_in_stock_unit: Optional[float] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'raw_material_id': self.raw_material_id,
            'name': self.name,
            'required': self.required,
            'available': self.available,
            'unit_recipe': self.unit_recipe,
            'unit_stock': self.unit_stock,
            'required_in_stock_unit': self.required_in_stock_unit,
        }
        if self.message:
            data['message'] = self.message
        return data


@dataclass(frozen=True)
class InventoryCheck:
    recipe_id: int
    quantity: int
    requirements: Tuple[IngredientRequirement, ...] = field(default_factory=tuple)
    missing: Tuple[MissingIngredient, ...] = field(default_factory=tuple)

    @property
    def sufficient(self) -> bool:
        return not self.missing

    def to_dict(self) -> Dict[str, Any]:
        return {
            'recipe_id': self.recipe_id,
            'quantity': self.quantity,
            'sufficient': self.sufficient,
            'missing': [item.to_dict() for item in self.missing],
        }
