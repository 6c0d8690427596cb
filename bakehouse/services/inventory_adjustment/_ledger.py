"""
Stock Ledger

The only code path that writes RawMaterial.stock_quantity. Functions here
never commit: they work inside the caller's transaction (see
services._transaction.atomic), flush, and append one InventoryMovement per
change so that every deduction can be explained afterwards.
"""

import logging
from typing import Optional

from flask import current_app

from ...extensions import db
from ...models import InventoryMovement, RawMaterial
from ..errors import InsufficientStockError, NotFoundError
from ..types import OperationContext, RawMaterialRecord
from .._validation import require_positive_number

logger = logging.getLogger(__name__)

MOVEMENT_OPENING = 'opening'
MOVEMENT_PRODUCTION = 'production'
MOVEMENT_RESTORE = 'restore'
MOVEMENT_INFLOW = 'inflow'
MOVEMENT_INFLOW_REVERSAL = 'inflow_reversal'
MOVEMENT_INFLOW_DELETE = 'inflow_delete'
MOVEMENT_ADJUSTMENT = 'adjustment'


def _tolerance() -> float:
    return float(current_app.config.get('CONVERSION_TOLERANCE', 1e-9))


def get_material(raw_material_id: int, lock: bool = False) -> RawMaterial:
    if lock:
        material = db.session.get(RawMaterial, raw_material_id, with_for_update=True)
    else:
        material = db.session.get(RawMaterial, raw_material_id)
    if material is None:
        raise NotFoundError('RawMaterial', raw_material_id)
    return material


def shortfall_entry(material: RawMaterial, required: float) -> dict:
    return {
        'raw_material_id': material.id,
        'name': material.name,
        'required': required,
        'available': material.stock_quantity,
        'unit_recipe': material.unit,
        'unit_stock': material.unit,
    }


def _record_movement(material, delta, change_type, context, production_run=None, inflow_id=None, notes=None):
    movement = InventoryMovement(
        raw_material_id=material.id,
        change_type=change_type,
        quantity_change=delta,
        resulting_stock=material.stock_quantity,
        unit=material.unit,
        inflow_id=inflow_id,
        created_by=context.actor_id,
        created_at=context.stored_timestamp,
        notes=notes,
    )
    if production_run is not None:
        movement.production_run = production_run
    db.session.add(movement)
    return movement


def _adjust(material: RawMaterial, delta: float, context: OperationContext, change_type: str,
            floor_at_zero: bool = False, enforce: bool = True, **refs) -> RawMaterial:
    current = material.stock_quantity or 0.0
    new_stock = current + delta

    if new_stock < 0:
        if floor_at_zero or new_stock >= -_tolerance():
            new_stock = 0.0
        elif enforce:
            logger.warning(
                "Ledger rejected %s on %s: stock %s, change %s",
                change_type, material.name, current, delta,
            )
            raise InsufficientStockError(
                f"Insufficient stock for {material.name}",
                [shortfall_entry(material, -delta)],
            )

    material.stock_quantity = new_stock
    material.last_updated_at = context.stored_timestamp
    _record_movement(material, new_stock - current, change_type, context, **refs)
    logger.debug(
        "Ledger %s: %s %s -> %s %s", change_type, material.name, current, new_stock, material.unit
    )
    return material


def check_available(raw_material_id: int, required_qty: float) -> bool:
    """Pure read: is the current stock enough for `required_qty` (in the stock unit)?"""
    material = get_material(raw_material_id)
    return (material.stock_quantity or 0.0) + _tolerance() >= required_qty


def deduct(raw_material_id: int, quantity: float, context: OperationContext,
           production_run=None, notes: Optional[str] = None) -> RawMaterialRecord:
    """
    Decrement stock inside the caller's transaction.

    Re-reads the row under a lock and re-checks availability even when the
    caller already validated, so a concurrent deduction cannot overdraw it.
    """
    quantity = require_positive_number(quantity)
    material = get_material(raw_material_id, lock=True)
    if (material.stock_quantity or 0.0) + _tolerance() < quantity:
        logger.warning(
            "Defensive recheck failed for %s: required %s, available %s",
            material.name, quantity, material.stock_quantity,
        )
        raise InsufficientStockError(
            f"Insufficient stock for {material.name}",
            [shortfall_entry(material, quantity)],
        )
    _adjust(material, -quantity, context, MOVEMENT_PRODUCTION, production_run=production_run, notes=notes)
    db.session.flush()
    return material.to_record()


def restore(raw_material_id: int, quantity: float, context: OperationContext,
            change_type: str = MOVEMENT_RESTORE, inflow_id: Optional[int] = None,
            notes: Optional[str] = None) -> RawMaterialRecord:
    """Inverse of `deduct`: put quantity back into stock."""
    quantity = require_positive_number(quantity)
    material = get_material(raw_material_id, lock=True)
    _adjust(material, quantity, context, change_type, inflow_id=inflow_id, notes=notes)
    db.session.flush()
    return material.to_record()


def apply_inflow(raw_material_id: int, quantity: float, context: OperationContext,
                 inflow_id: Optional[int] = None, defer_check: bool = False) -> RawMaterialRecord:
    """Increase stock for a received inflow. Unit cost on the material is left untouched."""
    if defer_check:
        material = get_material(raw_material_id, lock=True)
        _adjust(material, quantity, context, MOVEMENT_INFLOW, enforce=False, inflow_id=inflow_id)
        return material.to_record()
    return restore(raw_material_id, quantity, context, change_type=MOVEMENT_INFLOW, inflow_id=inflow_id)


def reverse_inflow(raw_material_id: int, quantity: float, context: OperationContext,
                   inflow_id: Optional[int] = None, change_type: str = MOVEMENT_INFLOW_REVERSAL,
                   floor_at_zero: bool = False, defer_check: bool = False) -> RawMaterialRecord:
    """
    Take back the stock a prior inflow added.

    `floor_at_zero` clamps at zero instead of failing (inflow deletion).
    `defer_check` skips the negativity check and the flush so an edit can
    reverse and reapply before validating; call `ensure_non_negative` after.
    """
    material = get_material(raw_material_id, lock=True)
    _adjust(
        material,
        -quantity,
        context,
        change_type,
        floor_at_zero=floor_at_zero,
        enforce=not defer_check,
        inflow_id=inflow_id,
    )
    if not defer_check:
        db.session.flush()
    return material.to_record()


def ensure_non_negative(*raw_material_ids: int) -> None:
    """Validate deferred adjustments, reporting every material that went negative."""
    missing = []
    tolerance = _tolerance()
    for raw_material_id in dict.fromkeys(raw_material_ids):
        material = get_material(raw_material_id)
        if material.stock_quantity < -tolerance:
            entry = shortfall_entry(material, 0.0)
            entry['required'] = -material.stock_quantity
            entry['available'] = 0.0
            missing.append(entry)
        elif material.stock_quantity < 0:
            material.stock_quantity = 0.0
    if missing:
        raise InsufficientStockError(
            "Stock already consumed cannot be reversed", missing
        )
    db.session.flush()


def open_stock(material: RawMaterial, quantity: float, context: OperationContext) -> None:
    """Record the opening balance of a newly created raw material."""
    _adjust(material, quantity, context, MOVEMENT_OPENING, notes='Opening balance')
    db.session.flush()


def apply_adjustment(material: RawMaterial, delta: float, reason: str, context: OperationContext) -> None:
    """Signed manual correction. Refuses to take stock below zero."""
    _adjust(material, delta, context, MOVEMENT_ADJUSTMENT, notes=reason)
    db.session.flush()
