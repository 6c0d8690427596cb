from ..extensions import db
from ..services.types import RecipeIngredientRecord, RecipeRecord
from .mixins import TimestampMixin


class Recipe(TimestampMixin, db.Model):
    __tablename__ = 'recipe'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    instructions = db.Column(db.Text)
    sale_price = db.Column(db.Float, nullable=False, default=0.0)
    image = db.Column(db.String(255), nullable=True)

    recipe_ingredients = db.relationship(
        'RecipeIngredient',
        backref='recipe',
        cascade="all, delete-orphan",
        order_by='RecipeIngredient.position',
    )

    __table_args__ = (
        db.CheckConstraint('sale_price >= 0', name='ck_recipe_sale_price_non_negative'),
    )

    def to_record(self) -> RecipeRecord:
        return RecipeRecord(
            id=self.id,
            name=self.name,
            instructions=self.instructions,
            sale_price=self.sale_price,
            image=self.image,
            ingredients=tuple(ri.to_record() for ri in self.recipe_ingredients),
        )

    def __repr__(self):
        return f'<Recipe {self.name}>'


class RecipeIngredient(db.Model):
    """Bill-of-materials line. `unit` may differ from the raw material's stock unit."""
    __tablename__ = 'recipe_ingredient'

    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipe.id'), nullable=False, index=True)
    raw_material_id = db.Column(db.Integer, db.ForeignKey('raw_material.id'), nullable=False, index=True)
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(16), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)

    raw_material = db.relationship('RawMaterial')

    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='ck_recipe_ingredient_quantity_positive'),
        db.UniqueConstraint('recipe_id', 'raw_material_id', name='uq_recipe_ingredient_material'),
    )

    def to_record(self) -> RecipeIngredientRecord:
        return RecipeIngredientRecord(
            raw_material_id=self.raw_material_id,
            raw_material_name=self.raw_material.name,
            quantity=self.quantity,
            unit=self.unit,
        )
