"""
Plain data records returned by the inventory services.

Callers never receive ORM instances; every service operation hands back one of
these frozen records so that stock can only change through the ledger.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from ..utils.timezone_utils import TimezoneUtils


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return TimezoneUtils.ensure_timezone_aware(value).isoformat()
    if isinstance(value, tuple):
        return [_serialize(item) for item in value]
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    return value


class RecordMixin:
    def to_dict(self) -> Dict[str, Any]:
        return {f.name: _serialize(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True)
class OperationContext:
    """Acting user and wall-clock instant for one service call."""
    actor_id: Optional[int]
    timestamp: datetime

    @classmethod
    def for_actor(cls, actor_id: Optional[int], timestamp: Optional[datetime] = None) -> 'OperationContext':
        return cls(actor_id=actor_id, timestamp=timestamp or TimezoneUtils.utc_now())

    @property
    def stored_timestamp(self) -> datetime:
        return TimezoneUtils.to_storage(self.timestamp)


@dataclass(frozen=True)
class RawMaterialRecord(RecordMixin):
    id: int
    name: str
    unit: str
    stock_quantity: float
    min_threshold: float
    unit_cost: Optional[float]
    last_updated_at: Optional[datetime]

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.min_threshold


@dataclass(frozen=True)
class RecipeIngredientRecord(RecordMixin):
    raw_material_id: int
    raw_material_name: str
    quantity: float
    unit: str


@dataclass(frozen=True)
class RecipeRecord(RecordMixin):
    id: int
    name: str
    instructions: Optional[str]
    sale_price: float
    image: Optional[str]
    ingredients: Tuple[RecipeIngredientRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ProductionRunRecord(RecordMixin):
    id: int
    recipe_id: int
    quantity: int
    produced_at: datetime
    user_id: Optional[int]


@dataclass(frozen=True)
class SaleLineRecord(RecordMixin):
    id: int
    recipe_id: int
    quantity: int
    unit_price: float
    subtotal: float


@dataclass(frozen=True)
class SaleRecord(RecordMixin):
    id: int
    status: str
    total: float
    sold_at: datetime
    user_id: Optional[int]
    lines: Tuple[SaleLineRecord, ...]
    void_reason: Optional[str] = None
    voided_by: Optional[int] = None
    voided_at: Optional[datetime] = None

    @property
    def is_voided(self) -> bool:
        return self.status == 'voided'


@dataclass(frozen=True)
class InflowRecord(RecordMixin):
    id: int
    raw_material_id: int
    quantity: float
    unit: str
    unit_cost: float
    total_cost: float
    supplier: str
    invoice_number: Optional[str]
    notes: Optional[str]
    received_at: datetime
    user_id: Optional[int]


@dataclass(frozen=True)
class MovementRecord(RecordMixin):
    id: int
    raw_material_id: int
    change_type: str
    quantity_change: float
    resulting_stock: float
    unit: str
    production_run_id: Optional[int]
    inflow_id: Optional[int]
    created_by: Optional[int]
    created_at: datetime
    notes: Optional[str]
