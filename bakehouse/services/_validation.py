"""Input guards shared by the services. They run before any transaction opens."""

import math
from numbers import Real
from typing import Any, Optional

from .errors import ValidationError


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def require_positive_int(value: Any, field: str = 'quantity') -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be a whole number, got {value!r}", field=field)
    if value <= 0:
        raise ValidationError(f"{field} must be greater than zero", field=field)
    return value


def require_positive_number(value: Any, field: str = 'quantity') -> float:
    if not _is_number(value):
        raise ValidationError(f"{field} must be numeric, got {value!r}", field=field)
    if value <= 0:
        raise ValidationError(f"{field} must be greater than zero", field=field)
    return float(value)


def require_non_negative_number(value: Any, field: str) -> float:
    if not _is_number(value):
        raise ValidationError(f"{field} must be numeric, got {value!r}", field=field)
    if value < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    return float(value)


def require_nonzero_number(value: Any, field: str) -> float:
    if not _is_number(value):
        raise ValidationError(f"{field} must be numeric, got {value!r}", field=field)
    if value == 0:
        raise ValidationError(f"{field} cannot be zero", field=field)
    return float(value)


def optional_non_negative_number(value: Any, field: str) -> Optional[float]:
    if value is None:
        return None
    return require_non_negative_number(value, field)


def require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    return value.strip()


def optional_text(value: Any, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be text", field=field)
    return value.strip() or None


def require_id(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a valid identifier, got {value!r}", field=field)
    return value
