"""
Transaction scope for the orchestrated operations.

Every service operation that writes runs inside `atomic()`: either all of its
rows are committed together or the session is rolled back and nothing
persists.
"""

import logging
from contextlib import contextmanager

from ..extensions import db
from .errors import InventoryError, TransactionError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(operation: str):
    """Commit on success; roll back on any failure.

    Business errors are re-raised unchanged. Anything else is logged and
    surfaced as an opaque TransactionError chained from the cause.
    """
    try:
        yield db.session
        db.session.commit()
    except InventoryError:
        db.session.rollback()
        raise
    except Exception as exc:
        db.session.rollback()
        logger.exception("%s failed; transaction rolled back", operation)
        raise TransactionError(f"{operation} could not be completed") from exc
