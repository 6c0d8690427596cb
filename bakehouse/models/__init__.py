"""Models package - imports all models for the application"""
from ..extensions import db

# Import in dependency order for table creation
from .user import User
from .inventory import RawMaterial, IngredientInflow, InventoryMovement
from .recipe import Recipe, RecipeIngredient
from .production import ProductionRun
from .sale import Sale, SaleLine

__all__ = [
    'db',
    'User',
    'RawMaterial',
    'IngredientInflow',
    'InventoryMovement',
    'Recipe',
    'RecipeIngredient',
    'ProductionRun',
    'Sale',
    'SaleLine',
]
