from datetime import date, datetime
from typing import Optional

from flask import request
from flask_login import current_user

from ...services.errors import ValidationError
from ...services.types import OperationContext


def operation_context() -> OperationContext:
    """Acting user and wall clock for the current request."""
    actor_id = current_user.id if current_user.is_authenticated else None
    return OperationContext.for_actor(actor_id)


def arg_datetime(name: str) -> Optional[datetime]:
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 datetime", field=name)


def arg_date(name: str) -> Optional[date]:
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 date", field=name)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("A JSON object body is required")
    return data
