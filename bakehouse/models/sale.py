from ..extensions import db
from ..services.types import SaleLineRecord, SaleRecord
from .mixins import utc_now_naive


class Sale(db.Model):
    __tablename__ = 'sale'

    STATUS_ACTIVE = 'active'
    STATUS_VOIDED = 'voided'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    sold_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False, index=True)
    total = db.Column(db.Float, nullable=False, default=0.0)
    status = db.Column(db.String(16), nullable=False, default=STATUS_ACTIVE)
    void_reason = db.Column(db.Text, nullable=True)
    voided_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    voided_at = db.Column(db.DateTime, nullable=True)

    lines = db.relationship(
        'SaleLine',
        backref='sale',
        cascade="all, delete-orphan",
        order_by='SaleLine.id',
    )

    @property
    def is_voided(self) -> bool:
        return self.status == self.STATUS_VOIDED

    def computed_total(self) -> float:
        total = 0.0
        for line in self.lines:
            total += line.subtotal
        return total

    def to_record(self) -> SaleRecord:
        return SaleRecord(
            id=self.id,
            status=self.status,
            total=self.total,
            sold_at=self.sold_at,
            user_id=self.user_id,
            lines=tuple(line.to_record() for line in self.lines),
            void_reason=self.void_reason,
            voided_by=self.voided_by,
            voided_at=self.voided_at,
        )


class SaleLine(db.Model):
    """One recipe/quantity entry of a sale, with the price frozen at sale time."""
    __tablename__ = 'sale_line'

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey('sale.id'), nullable=False, index=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipe.id'), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Float, nullable=False)
    subtotal = db.Column(db.Float, nullable=False)

    recipe = db.relationship('Recipe')

    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='ck_sale_line_quantity_positive'),
    )

    def to_record(self) -> SaleLineRecord:
        return SaleLineRecord(
            id=self.id,
            recipe_id=self.recipe_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            subtotal=self.subtotal,
        )
