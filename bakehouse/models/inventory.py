from ..extensions import db
from ..services.types import InflowRecord, MovementRecord, RawMaterialRecord
from .mixins import TimestampMixin, utc_now_naive


class RawMaterial(TimestampMixin, db.Model):
    """Stocked ingredient. `stock_quantity` is written only by the inventory ledger."""
    __tablename__ = 'raw_material'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    unit = db.Column(db.String(16), nullable=False)
    stock_quantity = db.Column(db.Float, nullable=False, default=0.0)
    min_threshold = db.Column(db.Float, nullable=False, default=0.0)
    unit_cost = db.Column(db.Float, nullable=True)
    last_updated_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)

    __table_args__ = (
        db.CheckConstraint('stock_quantity >= 0', name='ck_raw_material_stock_non_negative'),
        db.CheckConstraint('min_threshold >= 0', name='ck_raw_material_threshold_non_negative'),
    )

    def to_record(self) -> RawMaterialRecord:
        return RawMaterialRecord(
            id=self.id,
            name=self.name,
            unit=self.unit,
            stock_quantity=self.stock_quantity,
            min_threshold=self.min_threshold,
            unit_cost=self.unit_cost,
            last_updated_at=self.last_updated_at,
        )

    def __repr__(self):
        return f'<RawMaterial {self.name}: {self.stock_quantity} {self.unit}>'


class IngredientInflow(TimestampMixin, db.Model):
    """Replenishment of a raw material. Costs are informational only."""
    __tablename__ = 'ingredient_inflow'

    id = db.Column(db.Integer, primary_key=True)
    raw_material_id = db.Column(db.Integer, db.ForeignKey('raw_material.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(16), nullable=False)
    unit_cost = db.Column(db.Float, nullable=False)
    total_cost = db.Column(db.Float, nullable=False)
    supplier = db.Column(db.String(128), nullable=False)
    invoice_number = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    received_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False, index=True)

    raw_material = db.relationship('RawMaterial', backref=db.backref('inflows', lazy='dynamic'))

    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='ck_ingredient_inflow_quantity_positive'),
    )

    def to_record(self) -> InflowRecord:
        return InflowRecord(
            id=self.id,
            raw_material_id=self.raw_material_id,
            quantity=self.quantity,
            unit=self.unit,
            unit_cost=self.unit_cost,
            total_cost=self.total_cost,
            supplier=self.supplier,
            invoice_number=self.invoice_number,
            notes=self.notes,
            received_at=self.received_at,
            user_id=self.user_id,
        )


class InventoryMovement(db.Model):
    """Append-only history of every stock change made by the ledger."""
    __tablename__ = 'inventory_movement'

    id = db.Column(db.Integer, primary_key=True)
    raw_material_id = db.Column(db.Integer, db.ForeignKey('raw_material.id'), nullable=False, index=True)
    change_type = db.Column(db.String(32), nullable=False, index=True)
    quantity_change = db.Column(db.Float, nullable=False)
    resulting_stock = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(16), nullable=False)
    # No FK on inflow_id: the inflow row may be deleted while its history stays.
    inflow_id = db.Column(db.Integer, nullable=True, index=True)
    production_run_id = db.Column(db.Integer, db.ForeignKey('production_run.id'), nullable=True, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)

    raw_material = db.relationship('RawMaterial', backref=db.backref('movements', lazy='dynamic'))
    production_run = db.relationship('ProductionRun')

    def to_record(self) -> MovementRecord:
        return MovementRecord(
            id=self.id,
            raw_material_id=self.raw_material_id,
            change_type=self.change_type,
            quantity_change=self.quantity_change,
            resulting_stock=self.resulting_stock,
            unit=self.unit,
            production_run_id=self.production_run_id,
            inflow_id=self.inflow_id,
            created_by=self.created_by,
            created_at=self.created_at,
            notes=self.notes,
        )
