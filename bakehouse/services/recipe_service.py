import logging
from typing import Any, Dict, Iterable, List, Optional

from ..extensions import db
from ..models import Recipe, RecipeIngredient
from .errors import ValidationError
from .inventory_adjustment._ledger import get_material
from .stock_check import load_recipe
from .types import OperationContext, RecipeRecord
from .unit_conversion import Unit
from ._transaction import atomic
from ._validation import optional_text, require_id, require_non_negative_number, require_positive_number, require_text

logger = logging.getLogger(__name__)


def _clean_ingredients(ingredients: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    cleaned = []
    seen = set()
    for position, item in enumerate(ingredients or []):
        if not isinstance(item, dict):
            raise ValidationError("Each ingredient must be an object", field='ingredients')
        raw_material_id = require_id(item.get('raw_material_id'), 'raw_material_id')
        if raw_material_id in seen:
            raise ValidationError(
                f"Raw material {raw_material_id} is listed more than once",
                field='ingredients',
            )
        seen.add(raw_material_id)
        cleaned.append({
            'raw_material_id': raw_material_id,
            'quantity': require_positive_number(item.get('quantity')),
            'unit': Unit.parse(item.get('unit')).code,
            'position': position,
        })
    if not cleaned:
        raise ValidationError("A recipe needs at least one ingredient", field='ingredients')
    return cleaned


def create_recipe(
    name: str,
    sale_price: float,
    ingredients: Iterable[Dict[str, Any]],
    context: OperationContext,
    instructions: Optional[str] = None,
    image: Optional[str] = None,
) -> RecipeRecord:
    """Create a recipe with its ordered ingredient lines.

    Ingredient units may differ from the stock unit; convertibility is checked
    at production time, not here.
    """
    name = require_text(name, 'name')
    sale_price = require_non_negative_number(sale_price, 'sale_price')
    lines = _clean_ingredients(ingredients)

    with atomic('create_recipe'):
        for line in lines:
            get_material(line['raw_material_id'])
        recipe = Recipe(
            name=name,
            sale_price=sale_price,
            instructions=optional_text(instructions, 'instructions'),
            image=optional_text(image, 'image'),
        )
        recipe.recipe_ingredients = [RecipeIngredient(**line) for line in lines]
        db.session.add(recipe)
        db.session.flush()
        record = recipe.to_record()

    logger.info("Recipe %s created by user %s with %s ingredient(s)", record.name, context.actor_id, len(lines))
    return record


def get_recipe(recipe_id: int) -> RecipeRecord:
    return load_recipe(recipe_id).to_record()
