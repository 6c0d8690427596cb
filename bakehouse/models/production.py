from ..extensions import db
from ..services.types import ProductionRunRecord
from .mixins import utc_now_naive


class ProductionRun(db.Model):
    """Immutable record of a committed production. Corrections are new records, never edits."""
    __tablename__ = 'production_run'

    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipe.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    produced_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False, index=True)

    recipe = db.relationship('Recipe', backref=db.backref('production_runs', lazy='dynamic'))

    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='ck_production_run_quantity_positive'),
    )

    def to_record(self) -> ProductionRunRecord:
        return ProductionRunRecord(
            id=self.id,
            recipe_id=self.recipe_id,
            quantity=self.quantity,
            produced_at=self.produced_at,
            user_id=self.user_id,
        )
