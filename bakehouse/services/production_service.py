"""
Production Transaction Orchestrator

A production either succeeds completely or leaves inventory and records
untouched. Each request moves through

    Started -> RequirementsComputed -> AvailabilityChecked -> Committed | RolledBack

and every shortfall is collected before any stock is touched.
"""

import logging
from datetime import date
from typing import List, Optional

from ..extensions import db
from ..models import ProductionRun
from ..utils.timezone_utils import DEFAULT_TIMEZONE, TimezoneUtils
from .errors import InsufficientIngredientsError, InventoryError, ValidationError
from .inventory_adjustment import deduct
from .stock_check import load_recipe
from .stock_check.core import find_shortfalls, requirements_for
from .types import OperationContext, ProductionRunRecord
from ._transaction import atomic
from ._validation import require_positive_int

logger = logging.getLogger(__name__)


def produce(recipe_id: int, quantity: int, context: OperationContext) -> ProductionRunRecord:
    """
    Produce `quantity` units of a recipe, deducting every ingredient.

    Raises:
        ValidationError: quantity is not a positive integer (before any transaction).
        NotFoundError: the recipe does not exist.
        InsufficientIngredientsError: one or more ingredients are short; carries all of them.
        TransactionError: persistence failed; nothing was written.
    """
    quantity = require_positive_int(quantity)
    logger.info("PRODUCTION Started: recipe=%s quantity=%s actor=%s", recipe_id, quantity, context.actor_id)

    try:
        with atomic('produce'):
            recipe = load_recipe(recipe_id)
            requirements = requirements_for(recipe, quantity)
            logger.info("PRODUCTION RequirementsComputed: %s ingredient(s)", len(requirements))

            missing = find_shortfalls(requirements)
            logger.info("PRODUCTION AvailabilityChecked: %s shortfall(s)", len(missing))
            if missing:
                for item in missing:
                    logger.warning(
                        "Shortfall for %s: required %s %s, available %s %s",
                        item.name, item.required, item.unit_recipe, item.available, item.unit_stock,
                    )
                raise InsufficientIngredientsError(
                    f"Not enough ingredients to produce {quantity} x {recipe.name}",
                    [item.to_dict() for item in missing],
                )

            run = ProductionRun(
                recipe_id=recipe.id,
                quantity=quantity,
                user_id=context.actor_id,
                produced_at=context.stored_timestamp,
            )
            for req in requirements:
                deduct(req.raw_material_id, req.required_qty, context, production_run=run)
            db.session.add(run)
            db.session.flush()
            record = run.to_record()
    except InventoryError as exc:
        logger.info("PRODUCTION RolledBack: recipe=%s reason=%s", recipe_id, exc.error_code)
        raise

    logger.info("PRODUCTION Committed: run=%s recipe=%s quantity=%s", record.id, recipe_id, quantity)
    return record


def list_production_runs(
    recipe_id: Optional[int] = None,
    day: Optional[date] = None,
    tz_name: str = DEFAULT_TIMEZONE,
) -> List[ProductionRunRecord]:
    """Production history, newest first, optionally for one recipe and/or one local day."""
    query = ProductionRun.query
    if recipe_id is not None:
        load_recipe(recipe_id)
        query = query.filter(ProductionRun.recipe_id == recipe_id)
    if day is not None:
        if not TimezoneUtils.validate_timezone(tz_name):
            raise ValidationError(f"Unknown timezone: {tz_name}", field='tz')
        start, end = TimezoneUtils.day_bounds(day, tz_name)
        query = query.filter(ProductionRun.produced_at >= start, ProductionRun.produced_at < end)
    runs = query.order_by(ProductionRun.produced_at.desc(), ProductionRun.id.desc()).all()
    return [run.to_record() for run in runs]
