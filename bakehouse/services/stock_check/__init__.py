"""
Recipe Stock Check

Requirement calculation and availability reports for recipes.
"""

from .core import check_inventory, compute_requirements, evaluate, load_recipe
from .types import IngredientRequirement, InventoryCheck, MissingIngredient

__all__ = [
    'check_inventory',
    'compute_requirements',
    'evaluate',
    'load_recipe',
    'IngredientRequirement',
    'InventoryCheck',
    'MissingIngredient',
]
