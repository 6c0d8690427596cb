import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from flask import current_app

from ...extensions import db
from ...models import Sale, SaleLine
from ...utils.timezone_utils import TimezoneUtils
from ..errors import InsufficientInventoryError, InventoryError, NotFoundError, SaleAlreadyVoidedError, ValidationError
from ..stock_check import load_recipe
from ..types import OperationContext, SaleRecord
from .._transaction import atomic
from .._validation import require_id, require_positive_int, require_text
from ._availability import available_to_sell

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaleTotalMismatch:
    sale_id: int
    stored_total: float
    computed_total: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sale_id': self.sale_id,
            'stored_total': self.stored_total,
            'computed_total': self.computed_total,
        }


def _clean_lines(lines: Iterable[Dict[str, Any]]) -> List[Dict[str, int]]:
    if not isinstance(lines, (list, tuple)) or not lines:
        raise ValidationError("A sale needs at least one line", field='lines')
    cleaned = []
    for item in lines:
        if not isinstance(item, dict):
            raise ValidationError("Each sale line must be an object", field='lines')
        cleaned.append({
            'recipe_id': require_id(item.get('recipe_id'), 'recipe_id'),
            'quantity': require_positive_int(item.get('quantity')),
        })
    return cleaned


def _get_sale(sale_id: int, lock: bool = False) -> Sale:
    if lock:
        sale = db.session.get(Sale, sale_id, with_for_update=True)
    else:
        sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError('Sale', sale_id)
    return sale


def sell(lines: Iterable[Dict[str, Any]], context: OperationContext) -> SaleRecord:
    """
    Create a sale if every line is covered by derived availability.

    Quantities for the same recipe across several lines are checked together.
    Unit prices are frozen from the recipe at this instant and the persisted
    total always equals the sum of the persisted line subtotals.
    """
    cleaned = _clean_lines(lines)
    requested: Dict[int, int] = {}
    for line in cleaned:
        requested[line['recipe_id']] = requested.get(line['recipe_id'], 0) + line['quantity']

    try:
        with atomic('sell'):
            # Locked in id order so concurrent sales of the same recipe queue up.
            recipes = {recipe_id: load_recipe(recipe_id, lock=True) for recipe_id in sorted(requested)}
            missing = []
            for recipe_id, quantity in requested.items():
                recipe = recipes[recipe_id]
                available = available_to_sell(recipe_id)
                if available < quantity:
                    missing.append({
                        'recipe_id': recipe_id,
                        'name': recipe.name,
                        'requested': quantity,
                        'available': available,
                    })
            if missing:
                for item in missing:
                    logger.warning(
                        "Cannot sell %s x %s: only %s available",
                        item['requested'], item['name'], item['available'],
                    )
                raise InsufficientInventoryError("Not enough finished goods for this sale", missing)

            sale = Sale(
                user_id=context.actor_id,
                sold_at=context.stored_timestamp,
                total=0.0,
                status=Sale.STATUS_ACTIVE,
            )
            db.session.add(sale)
            db.session.flush()

            total = 0.0
            for line in cleaned:
                unit_price = recipes[line['recipe_id']].sale_price
                subtotal = unit_price * line['quantity']
                db.session.add(SaleLine(
                    sale_id=sale.id,
                    recipe_id=line['recipe_id'],
                    quantity=line['quantity'],
                    unit_price=unit_price,
                    subtotal=subtotal,
                ))
                db.session.flush()
                total += subtotal

            sale.total = total
            db.session.flush()
            db.session.refresh(sale)
            record = sale.to_record()
    except InventoryError as exc:
        logger.info("Sale rolled back: %s", exc.error_code)
        raise

    logger.info("Sale %s committed: %s line(s), total %s", record.id, len(record.lines), record.total)
    return record


def void_sale(sale_id: int, reason: str, context: OperationContext) -> SaleRecord:
    """Active -> Voided. Lines stay for audit and no stock is restored."""
    reason = require_text(reason, 'reason')
    with atomic('void_sale'):
        sale = _get_sale(sale_id, lock=True)
        if sale.is_voided:
            raise SaleAlreadyVoidedError(sale.id)
        sale.status = Sale.STATUS_VOIDED
        sale.void_reason = reason
        sale.voided_by = context.actor_id
        sale.voided_at = context.stored_timestamp
        db.session.flush()
        record = sale.to_record()

    logger.info("Sale %s voided by user %s: %s", sale_id, context.actor_id, reason)
    return record


def get_sale(sale_id: int) -> SaleRecord:
    return _get_sale(sale_id).to_record()


def list_sales(start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[SaleRecord]:
    """Sales newest first, voided ones included, optionally within [start, end]."""
    start = TimezoneUtils.to_storage(start)
    end = TimezoneUtils.to_storage(end)
    if start and end and start > end:
        raise ValidationError("start must not be after end", field='start')

    query = Sale.query
    if start:
        query = query.filter(Sale.sold_at >= start)
    if end:
        query = query.filter(Sale.sold_at <= end)
    sales = query.order_by(Sale.sold_at.desc(), Sale.id.desc()).all()
    return [sale.to_record() for sale in sales]


def verify_sale_totals(repair: bool = False) -> List[SaleTotalMismatch]:
    """
    Find sales whose stored total differs from the sum of their lines.

    With `repair`, stored totals are rewritten to the computed sum in one
    transaction. Returns the mismatches found either way.
    """
    tolerance = float(current_app.config.get('CONVERSION_TOLERANCE', 1e-9))
    mismatches = []
    for sale in Sale.query.order_by(Sale.id).all():
        computed = sale.computed_total()
        if abs((sale.total or 0.0) - computed) > tolerance:
            mismatches.append(SaleTotalMismatch(sale.id, sale.total, computed))

    if repair and mismatches:
        with atomic('verify_sale_totals'):
            for mismatch in mismatches:
                _get_sale(mismatch.sale_id, lock=True).total = mismatch.computed_total
        logger.warning("Repaired totals for %s sale(s)", len(mismatches))
    return mismatches
