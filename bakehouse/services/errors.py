"""
Error taxonomy for the inventory services.

Client errors (invalid or insufficient requests) and system errors
(persistence failures) are kept apart so callers know whether to correct
their input or retry.
"""

from typing import Any, Dict, List, Optional


class InventoryError(Exception):
    """Base class for every failure raised by the inventory services."""

    error_code = 'INVENTORY_ERROR'
    status_code = 400
    is_client_error = True

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error_code': self.error_code,
            'message': self.message,
            'details': self.details,
        }


class ValidationError(InventoryError):
    error_code = 'VALIDATION_ERROR'
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if field:
            details.setdefault('field', field)
        super().__init__(message, details)
        self.field = field


class NotFoundError(InventoryError):
    error_code = 'NOT_FOUND'
    status_code = 404

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            f"{resource} {resource_id} not found",
            {'resource': resource, 'id': resource_id},
        )
        self.resource = resource
        self.resource_id = resource_id


class UnconvertibleUnitsError(InventoryError):
    error_code = 'UNCONVERTIBLE_UNITS'
    status_code = 422

    def __init__(self, from_unit: str, to_unit: str):
        super().__init__(
            f"Cannot convert {from_unit} to {to_unit}",
            {'from_unit': from_unit, 'to_unit': to_unit},
        )
        self.from_unit = from_unit
        self.to_unit = to_unit


class _ShortfallError(InventoryError):
    """Business rejection carrying every shortfall, never just the first."""

    status_code = 409

    def __init__(self, message: str, missing: List[Dict[str, Any]]):
        super().__init__(message, {'missing': list(missing)})
        self.missing = list(missing)


class InsufficientStockError(_ShortfallError):
    error_code = 'INSUFFICIENT_STOCK'


class InsufficientIngredientsError(_ShortfallError):
    error_code = 'INSUFFICIENT_INGREDIENTS'


class InsufficientInventoryError(_ShortfallError):
    error_code = 'INSUFFICIENT_INVENTORY'


class SaleAlreadyVoidedError(InventoryError):
    error_code = 'SALE_ALREADY_VOIDED'
    status_code = 409

    def __init__(self, sale_id: int):
        super().__init__(f"Sale {sale_id} is already voided", {'sale_id': sale_id})
        self.sale_id = sale_id


class TransactionError(InventoryError):
    """Persistence failure; the transaction was rolled back in full."""

    error_code = 'TRANSACTION_ERROR'
    status_code = 500
    is_client_error = False

    def __init__(self, message: str = "The operation could not be completed"):
        super().__init__(message)
