"""
Derived finished-goods availability.

Sellable quantity is never stored: it is recomputed from the production and
sale-line aggregates every time it is asked for.
"""

from sqlalchemy import func

from ...extensions import db
from ...models import ProductionRun, SaleLine
from ..stock_check import load_recipe


def produced_total(recipe_id: int) -> int:
    return int(
        db.session.query(func.coalesce(func.sum(ProductionRun.quantity), 0))
        .filter(ProductionRun.recipe_id == recipe_id)
        .scalar()
    )


def sold_total(recipe_id: int) -> int:
    # Lines of voided sales still count: voiding does not return goods to availability.
    return int(
        db.session.query(func.coalesce(func.sum(SaleLine.quantity), 0))
        .filter(SaleLine.recipe_id == recipe_id)
        .scalar()
    )


def available_to_sell(recipe_id: int) -> int:
    """Total produced minus total sold for a recipe."""
    load_recipe(recipe_id)
    return produced_total(recipe_id) - sold_total(recipe_id)
