"""
Ingredient inflows (raw-material replenishment).

Recording an inflow adds its quantity to stock through the ledger. Editing
reverses the old stock effect before applying the new one, possibly on a
different raw material; deleting reverses it, floored at zero. Costs stay on
the inflow row and are never blended into RawMaterial.unit_cost.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ...extensions import db
from ...models import IngredientInflow
from ...utils.timezone_utils import TimezoneUtils
from ..errors import NotFoundError, ValidationError
from ..types import InflowRecord, OperationContext
from ..unit_conversion import ConversionEngine, Unit
from .._transaction import atomic
from .._validation import (
    optional_non_negative_number,
    optional_text,
    require_id,
    require_positive_number,
    require_text,
)
from . import _ledger

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({
    'raw_material_id',
    'quantity',
    'unit',
    'unit_cost',
    'total_cost',
    'supplier',
    'invoice_number',
    'notes',
})


def _derive_costs(quantity: float, unit_cost: Optional[float], total_cost: Optional[float]):
    """Fill in whichever of unit cost / total cost is missing."""
    if unit_cost is None and total_cost is None:
        raise ValidationError("Either unit_cost or total_cost is required", field='unit_cost')
    if unit_cost is None:
        unit_cost = total_cost / quantity
    elif total_cost is None:
        total_cost = quantity * unit_cost
    return unit_cost, total_cost


def _stock_effect(quantity: float, unit: str, material) -> float:
    """Inflow quantity expressed in the material's stock unit."""
    return ConversionEngine.convert(quantity, unit, material.unit)


def _get_inflow(inflow_id: int) -> IngredientInflow:
    inflow = db.session.get(IngredientInflow, inflow_id)
    if inflow is None:
        raise NotFoundError('IngredientInflow', inflow_id)
    return inflow


def record_inflow(
    raw_material_id: int,
    quantity: float,
    context: OperationContext,
    supplier: str,
    unit_cost: Optional[float] = None,
    total_cost: Optional[float] = None,
    unit: Optional[str] = None,
    invoice_number: Optional[str] = None,
    notes: Optional[str] = None,
    received_at: Optional[datetime] = None,
) -> InflowRecord:
    raw_material_id = require_id(raw_material_id, 'raw_material_id')
    quantity = require_positive_number(quantity)
    supplier = require_text(supplier, 'supplier')
    unit_cost = optional_non_negative_number(unit_cost, 'unit_cost')
    total_cost = optional_non_negative_number(total_cost, 'total_cost')
    unit_cost, total_cost = _derive_costs(quantity, unit_cost, total_cost)
    invoice_number = optional_text(invoice_number, 'invoice_number')
    notes = optional_text(notes, 'notes')

    with atomic('record_inflow'):
        material = _ledger.get_material(raw_material_id, lock=True)
        inflow_unit = Unit.parse(unit).code if unit is not None else material.unit
        effect = _stock_effect(quantity, inflow_unit, material)

        inflow = IngredientInflow(
            raw_material_id=material.id,
            user_id=context.actor_id,
            quantity=quantity,
            unit=inflow_unit,
            unit_cost=unit_cost,
            total_cost=total_cost,
            supplier=supplier,
            invoice_number=invoice_number,
            notes=notes,
            received_at=TimezoneUtils.to_storage(received_at) or context.stored_timestamp,
        )
        db.session.add(inflow)
        db.session.flush()

        _ledger.apply_inflow(material.id, effect, context, inflow_id=inflow.id)
        record = inflow.to_record()

    logger.info(
        "Inflow %s recorded: +%s %s of %s from %s",
        record.id, quantity, inflow_unit, material.name, supplier,
    )
    return record


def edit_inflow(inflow_id: int, changes: Dict[str, Any], context: OperationContext) -> InflowRecord:
    """
    Apply `changes` to an inflow: reverse its old stock effect, then apply the new one.

    Fails with InsufficientStockError when the stock the inflow added has
    already been consumed so far that the edit would leave it negative.
    """
    if not isinstance(changes, dict) or not changes:
        raise ValidationError("No changes supplied")
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(
            f"Fields cannot be edited: {', '.join(sorted(unknown))}",
            details={'fields': sorted(unknown)},
        )

    new_material_id = changes.get('raw_material_id')
    if new_material_id is not None:
        require_id(new_material_id, 'raw_material_id')
    if 'quantity' in changes:
        require_positive_number(changes['quantity'])
    if changes.get('supplier') is not None:
        require_text(changes['supplier'], 'supplier')
    unit_cost_in = optional_non_negative_number(changes.get('unit_cost'), 'unit_cost')
    total_cost_in = optional_non_negative_number(changes.get('total_cost'), 'total_cost')

    with atomic('edit_inflow'):
        inflow = _get_inflow(inflow_id)
        old_material = _ledger.get_material(inflow.raw_material_id, lock=True)
        new_material = _ledger.get_material(new_material_id or inflow.raw_material_id, lock=True)

        old_effect = _stock_effect(inflow.quantity, inflow.unit, old_material)

        quantity = float(changes['quantity']) if 'quantity' in changes else inflow.quantity
        unit = Unit.parse(changes['unit']).code if changes.get('unit') else inflow.unit
        new_effect = _stock_effect(quantity, unit, new_material)

        unit_cost = inflow.unit_cost if unit_cost_in is None else unit_cost_in
        total_cost = inflow.total_cost if total_cost_in is None else total_cost_in
        if total_cost_in is not None:
            unit_cost = total_cost_in / quantity
        elif unit_cost_in is not None or 'quantity' in changes:
            total_cost = quantity * unit_cost

        with db.session.no_autoflush:
            _ledger.reverse_inflow(old_material.id, old_effect, context, inflow_id=inflow.id, defer_check=True)

            inflow.raw_material_id = new_material.id
            inflow.quantity = quantity
            inflow.unit = unit
            inflow.unit_cost = unit_cost
            inflow.total_cost = total_cost
            if changes.get('supplier') is not None:
                inflow.supplier = require_text(changes['supplier'], 'supplier')
            if 'invoice_number' in changes:
                inflow.invoice_number = optional_text(changes['invoice_number'], 'invoice_number')
            if 'notes' in changes:
                inflow.notes = optional_text(changes['notes'], 'notes')

            _ledger.apply_inflow(new_material.id, new_effect, context, inflow_id=inflow.id, defer_check=True)
            _ledger.ensure_non_negative(old_material.id, new_material.id)

        record = inflow.to_record()

    logger.info(
        "Inflow %s edited: reversed %s %s of %s, applied %s %s of %s",
        inflow_id, old_effect, old_material.unit, old_material.name,
        new_effect, new_material.unit, new_material.name,
    )
    return record


def delete_inflow(inflow_id: int, context: OperationContext) -> None:
    """Remove an inflow and take its quantity back out of stock, never below zero."""
    with atomic('delete_inflow'):
        inflow = _get_inflow(inflow_id)
        material = _ledger.get_material(inflow.raw_material_id, lock=True)
        effect = _stock_effect(inflow.quantity, inflow.unit, material)
        _ledger.reverse_inflow(
            material.id,
            effect,
            context,
            inflow_id=inflow.id,
            change_type=_ledger.MOVEMENT_INFLOW_DELETE,
            floor_at_zero=True,
        )
        db.session.delete(inflow)

    logger.info("Inflow %s deleted; stock of %s reduced by up to %s", inflow_id, material.name, effect)


def list_inflows(
    raw_material_id: Optional[int] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[InflowRecord]:
    """Inflow history, newest first, optionally narrowed to one material and a date range."""
    query = IngredientInflow.query
    if raw_material_id is not None:
        _ledger.get_material(raw_material_id)
        query = query.filter(IngredientInflow.raw_material_id == raw_material_id)

    start = TimezoneUtils.to_storage(start)
    end = TimezoneUtils.to_storage(end)
    if start and end and start > end:
        raise ValidationError("start must not be after end", field='start')
    if start:
        query = query.filter(IngredientInflow.received_at >= start)
    if end:
        query = query.filter(IngredientInflow.received_at <= end)

    inflows = query.order_by(IngredientInflow.received_at.desc(), IngredientInflow.id.desc()).all()
    return [inflow.to_record() for inflow in inflows]
