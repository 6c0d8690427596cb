import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import UnconvertibleUnitsError, ValidationError
from .units import DIRECT_FACTORS, GRAMS_EQUIVALENT, Unit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionResult:
    success: bool
    converted_value: Optional[float]
    conversion_type: str
    from_unit: str
    to_unit: str
    error_code: Optional[str] = None

    def to_dict(self):
        return {
            'success': self.success,
            'converted_value': self.converted_value,
            'conversion_type': self.conversion_type,
            'from': self.from_unit,
            'to': self.to_unit,
            'error_code': self.error_code,
        }


class ConversionEngine:
    """
    Unit conversion over the fixed unit tables.

    Resolution order: identity, then the grams-equivalent base shared by both
    units, then a direct pairwise factor. Anything else is unconvertible and
    is never guessed. No rounding happens here.
    """

    @staticmethod
    def convert_units(amount, from_unit, to_unit) -> ConversionResult:
        """
        Convert without raising on unconvertible pairs.

        Unknown unit codes and non-numeric amounts still raise ValidationError
        since they are malformed input rather than a missing conversion.
        """
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise ValidationError(f"Amount must be numeric, got {amount!r}", field='quantity')

        source = Unit.parse(from_unit)
        target = Unit.parse(to_unit)

        if source is target:
            return ConversionResult(True, amount, 'identity', source.code, target.code)

        grams_from = GRAMS_EQUIVALENT.get(source)
        grams_to = GRAMS_EQUIVALENT.get(target)
        if grams_from and grams_to:
            converted = (amount * grams_from) / grams_to
            return ConversionResult(True, converted, 'base', source.code, target.code)

        factor = DIRECT_FACTORS.get(source, {}).get(target)
        if factor is not None:
            return ConversionResult(True, amount * factor, 'direct', source.code, target.code)

        logger.debug("No conversion path from %s to %s", source.code, target.code)
        return ConversionResult(
            False, None, 'failed', source.code, target.code, error_code='UNCONVERTIBLE_UNITS'
        )

    @staticmethod
    def convert(amount, from_unit, to_unit) -> float:
        """Convert or raise UnconvertibleUnitsError."""
        result = ConversionEngine.convert_units(amount, from_unit, to_unit)
        if not result.success:
            raise UnconvertibleUnitsError(result.from_unit, result.to_unit)
        return result.converted_value

    @staticmethod
    def can_convert(from_unit, to_unit) -> bool:
        return ConversionEngine.convert_units(1.0, from_unit, to_unit).success
