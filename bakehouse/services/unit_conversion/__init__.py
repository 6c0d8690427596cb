from .unit_conversion import ConversionEngine, ConversionResult
from .units import DIRECT_FACTORS, GRAMS_EQUIVALENT, Unit

__all__ = [
    'ConversionEngine',
    'ConversionResult',
    'Unit',
    'GRAMS_EQUIVALENT',
    'DIRECT_FACTORS',
]
