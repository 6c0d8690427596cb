"""
Closed set of measurement units used for raw-material stock and recipes.

Each unit carries its canonical code (what the database stores) and the
display label shown to bakers. The grams-equivalent table treats volume
units at water density; count units have no mass equivalent.
"""

from enum import Enum
from typing import Dict, Optional

from ..errors import ValidationError


class Unit(Enum):
    KILOGRAM = ('kg', 'Kilogramos (kg)')
    GRAM = ('g', 'Gramos (g)')
    POUND = ('lb', 'Libras (lb)')
    LITER = ('L', 'Litros (L)')
    MILLILITER = ('ml', 'Mililitros (ml)')
    UNIT = ('u', 'Unidades (u)')
    OUNCE = ('oz', 'Onzas (oz)')
    CUP = ('taza', 'Tazas')
    TABLESPOON = ('cda', 'Cucharadas')
    TEASPOON = ('cdta', 'Cucharaditas')

    def __init__(self, code: str, label: str):
        self.code = code
        self.label = label

    def __str__(self):
        return self.code

    @classmethod
    def parse(cls, value) -> 'Unit':
        """Resolve a unit from its code or exact display label."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            unit = _LOOKUP.get(value.strip())
            if unit is not None:
                return unit
        raise ValidationError(f"Unknown unit of measure: {value!r}", field='unit')


_LOOKUP: Dict[str, Unit] = {}
for _unit in Unit:
    _LOOKUP[_unit.code] = _unit
    _LOOKUP[_unit.label] = _unit


GRAMS_EQUIVALENT: Dict[Unit, Optional[float]] = {
    Unit.KILOGRAM: 1000.0,
    Unit.GRAM: 1.0,
    Unit.POUND: 453.592,
    Unit.LITER: 1000.0,
    Unit.MILLILITER: 1.0,
    Unit.UNIT: None,
    Unit.OUNCE: 28.3495,
    Unit.CUP: 240.0,
    Unit.TABLESPOON: 15.0,
    Unit.TEASPOON: 5.0,
}

DIRECT_FACTORS: Dict[Unit, Dict[Unit, float]] = {
    Unit.KILOGRAM: {
        Unit.GRAM: 1000.0,
        Unit.POUND: 2.20462,
        Unit.OUNCE: 35.274,
    },
    Unit.GRAM: {
        Unit.KILOGRAM: 0.001,
        Unit.POUND: 0.00220462,
        Unit.OUNCE: 0.035274,
    },
    Unit.POUND: {
        Unit.KILOGRAM: 0.453592,
        Unit.GRAM: 453.592,
        Unit.OUNCE: 16.0,
    },
    Unit.OUNCE: {
        Unit.KILOGRAM: 0.0283495,
        Unit.GRAM: 28.3495,
        Unit.POUND: 0.0625,
    },
    Unit.LITER: {
        Unit.MILLILITER: 1000.0,
    },
    Unit.MILLILITER: {
        Unit.LITER: 0.001,
    },
}
