"""Raw material creation and read-side queries over the ledger."""

import logging
from typing import List, Optional

from ...extensions import db
from ...models import InventoryMovement, RawMaterial
from ..types import MovementRecord, OperationContext, RawMaterialRecord
from ..unit_conversion import Unit
from .._transaction import atomic
from .._validation import (
    optional_non_negative_number,
    require_non_negative_number,
    require_nonzero_number,
    require_text,
)
from . import _ledger

logger = logging.getLogger(__name__)


def create_raw_material(
    name: str,
    unit: str,
    context: OperationContext,
    stock_quantity: float = 0.0,
    min_threshold: float = 0.0,
    unit_cost: Optional[float] = None,
) -> RawMaterialRecord:
    """Create a raw material. Any initial stock enters through the ledger as an opening movement."""
    name = require_text(name, 'name')
    unit_code = Unit.parse(unit).code
    stock_quantity = require_non_negative_number(stock_quantity, 'stock_quantity')
    min_threshold = require_non_negative_number(min_threshold, 'min_threshold')
    unit_cost = optional_non_negative_number(unit_cost, 'unit_cost')

    with atomic('create_raw_material'):
        material = RawMaterial(
            name=name,
            unit=unit_code,
            stock_quantity=0.0,
            min_threshold=min_threshold,
            unit_cost=unit_cost,
            last_updated_at=context.stored_timestamp,
        )
        db.session.add(material)
        db.session.flush()
        if stock_quantity > 0:
            _ledger.open_stock(material, stock_quantity, context)
        record = material.to_record()

    logger.info("Raw material %s created with %s %s", record.name, record.stock_quantity, record.unit)
    return record


def adjust_stock(raw_material_id: int, delta: float, reason: str, context: OperationContext) -> RawMaterialRecord:
    """
    Manual stock correction (count discrepancies, spoilage, found stock).

    `delta` is signed and in the material's stock unit. A correction that
    would leave stock below zero raises InsufficientStockError and changes nothing.
    """
    delta = require_nonzero_number(delta, 'delta')
    reason = require_text(reason, 'reason')

    with atomic('adjust_stock'):
        material = _ledger.get_material(raw_material_id, lock=True)
        before = material.stock_quantity
        _ledger.apply_adjustment(material, delta, reason, context)
        record = material.to_record()

    logger.info(
        "Stock of %s adjusted by user %s: %s -> %s %s (%s)",
        record.name, context.actor_id, before, record.stock_quantity, record.unit, reason,
    )
    return record


def get_raw_material(raw_material_id: int) -> RawMaterialRecord:
    return _ledger.get_material(raw_material_id).to_record()


def list_raw_materials() -> List[RawMaterialRecord]:
    return [m.to_record() for m in RawMaterial.query.order_by(RawMaterial.name).all()]


def low_stock_materials() -> List[RawMaterialRecord]:
    """Raw materials at or below their minimum threshold, emptiest first."""
    materials = (
        RawMaterial.query
        .filter(RawMaterial.stock_quantity <= RawMaterial.min_threshold)
        .order_by(RawMaterial.stock_quantity.asc(), RawMaterial.name)
        .all()
    )
    return [m.to_record() for m in materials]


def list_movements(raw_material_id: int) -> List[MovementRecord]:
    """Stock history of one raw material in the order it happened."""
    _ledger.get_material(raw_material_id)
    movements = (
        InventoryMovement.query
        .filter_by(raw_material_id=raw_material_id)
        .order_by(InventoryMovement.id.asc())
        .all()
    )
    return [m.to_record() for m in movements]
