"""Global resilience and error-handler registration.

Registers teardown and error handlers so that a failed request never leaves a
half-open transaction behind and every failure reaches the caller as JSON that
distinguishes a bad request from a system fault.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .extensions import db
from .services.errors import InventoryError
from .utils.api_responses import APIResponse

logger = logging.getLogger(__name__)


def register_resilience_handlers(app) -> None:
    """Install global DB rollback and JSON error handlers."""

    @app.teardown_request
    def _rollback_on_error(exc):
        try:
            if exc is not None:
                db.session.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback failed during request teardown", exc_info=True)
        finally:
            db.session.remove()

    @app.errorhandler(InventoryError)
    def _inventory_error_handler(error: InventoryError):
        if not error.is_client_error:
            logger.error("Service failure: %s", error.message)
        return APIResponse.error(
            message=error.message,
            errors=error.details,
            status_code=error.status_code,
            error_code=error.error_code,
        )

    @app.errorhandler(OperationalError)
    @app.errorhandler(DBAPIError)
    def _db_error_handler(_error):
        try:
            db.session.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback failed after database error", exc_info=True)
        logger.exception("Database unavailable")
        return APIResponse.error(
            message="Service temporarily unavailable. Please try again shortly.",
            status_code=503,
            error_code="SERVICE_UNAVAILABLE",
        )

    @app.errorhandler(HTTPException)
    def _http_error_handler(error: HTTPException):
        return APIResponse.error(
            message=error.description or error.name,
            status_code=error.code or 500,
            error_code=error.name.upper().replace(' ', '_'),
        )
