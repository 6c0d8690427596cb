"""
Inventory Adjustment Service Package

The stock ledger and everything that moves raw-material stock: production
deductions, inflow application and reversal, and the movement history.
"""

from ._ledger import (
    MOVEMENT_ADJUSTMENT,
    MOVEMENT_INFLOW,
    MOVEMENT_INFLOW_DELETE,
    MOVEMENT_INFLOW_REVERSAL,
    MOVEMENT_OPENING,
    MOVEMENT_PRODUCTION,
    MOVEMENT_RESTORE,
    apply_inflow,
    check_available,
    deduct,
    ensure_non_negative,
    restore,
    reverse_inflow,
)
from ._inflows import delete_inflow, edit_inflow, list_inflows, record_inflow
from ._materials import (
    adjust_stock,
    create_raw_material,
    get_raw_material,
    list_movements,
    list_raw_materials,
    low_stock_materials,
)

__all__ = [
    'MOVEMENT_ADJUSTMENT',
    'MOVEMENT_INFLOW',
    'MOVEMENT_INFLOW_DELETE',
    'MOVEMENT_INFLOW_REVERSAL',
    'MOVEMENT_OPENING',
    'MOVEMENT_PRODUCTION',
    'MOVEMENT_RESTORE',
    'apply_inflow',
    'check_available',
    'deduct',
    'ensure_non_negative',
    'restore',
    'reverse_inflow',
    'record_inflow',
    'edit_inflow',
    'delete_inflow',
    'list_inflows',
    'create_raw_material',
    'adjust_stock',
    'get_raw_material',
    'list_raw_materials',
    'low_stock_materials',
    'list_movements',
]
