from ..extensions import db
from ..utils.timezone_utils import TimezoneUtils


def utc_now_naive():
    return TimezoneUtils.to_storage(TimezoneUtils.utc_now())


class TimestampMixin:
    """Adds created_at and updated_at timestamps to models"""
    created_at = db.Column(db.DateTime, default=utc_now_naive, nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive, nullable=False)
