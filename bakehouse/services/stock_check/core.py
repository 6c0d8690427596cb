"""
Recipe Requirement Calculator

Turns a recipe's bill of materials and a batch multiplier into per-material
requirements in each material's stock unit, then compares them against the
ledger. An ingredient whose units cannot be related is reported as missing;
availability is never assumed.
"""

import logging
from typing import List, Tuple

from sqlalchemy.orm import selectinload

from ...extensions import db
from ...models import Recipe, RecipeIngredient
from ..errors import NotFoundError
from ..inventory_adjustment import check_available
from ..unit_conversion import ConversionEngine
from .._validation import require_positive_int
from .types import IngredientRequirement, InventoryCheck, MissingIngredient

logger = logging.getLogger(__name__)


def load_recipe(recipe_id: int, lock: bool = False) -> Recipe:
    """Recipe with its ingredient lines. `lock` takes a row lock until commit."""
    recipe = db.session.get(
        Recipe,
        recipe_id,
        options=[selectinload(Recipe.recipe_ingredients).selectinload(RecipeIngredient.raw_material)],
        with_for_update=lock,
    )
    if recipe is None:
        raise NotFoundError('Recipe', recipe_id)
    return recipe


def requirements_for(recipe: Recipe, quantity: int) -> List[IngredientRequirement]:
    requirements = []
    for link in recipe.recipe_ingredients:
        material = link.raw_material
        in_recipe_unit = link.quantity * quantity
        result = ConversionEngine.convert_units(in_recipe_unit, link.unit, material.unit)
        if not result.success:
            logger.warning(
                "Recipe %s: cannot convert %s to %s for %s",
                recipe.id, link.unit, material.unit, material.name,
            )
        requirements.append(IngredientRequirement(
            raw_material_id=material.id,
            name=material.name,
            recipe_quantity=in_recipe_unit,
            recipe_unit=link.unit,
            required_qty=result.converted_value if result.success else None,
            unit=material.unit,
            available_qty=material.stock_quantity,
        ))
    return requirements


def find_shortfalls(requirements: List[IngredientRequirement]) -> List[MissingIngredient]:
    """Every requirement the ledger cannot cover. Never stops at the first."""
    missing = []
    for req in requirements:
        if not req.convertible:
            missing.append(MissingIngredient(
                raw_material_id=req.raw_material_id,
                name=req.name,
                required=req.recipe_quantity,
                available=req.available_qty,
                unit_recipe=req.recipe_unit,
                unit_stock=req.unit,
                message=f"Cannot convert {req.recipe_unit} to {req.unit}",
            ))
        elif not check_available(req.raw_material_id, req.required_qty):
            missing.append(MissingIngredient(
                raw_material_id=req.raw_material_id,
                name=req.name,
                required=req.recipe_quantity,
                available=req.available_qty,
                unit_recipe=req.recipe_unit,
                unit_stock=req.unit,
                required_in_stock_unit=req.required_qty,
            ))
    return missing


def evaluate(recipe_id: int, quantity: int) -> Tuple[Recipe, InventoryCheck]:
    quantity = require_positive_int(quantity)
    recipe = load_recipe(recipe_id)
    requirements = requirements_for(recipe, quantity)
    missing = find_shortfalls(requirements)
    return recipe, InventoryCheck(
        recipe_id=recipe.id,
        quantity=quantity,
        requirements=tuple(requirements),
        missing=tuple(missing),
    )


def compute_requirements(recipe_id: int, quantity: int) -> List[IngredientRequirement]:
    """Required quantity of each raw material, in its stock unit, for `quantity` units."""
    quantity = require_positive_int(quantity)
    return requirements_for(load_recipe(recipe_id), quantity)


def check_inventory(recipe_id: int, quantity: int) -> InventoryCheck:
    """Read-only availability report for producing `quantity` units of a recipe."""
    _, result = evaluate(recipe_id, quantity)
    if not result.sufficient:
        logger.info(
            "Recipe %s x%s short on %s",
            recipe_id, quantity, ', '.join(item.name for item in result.missing),
        )
    return result
