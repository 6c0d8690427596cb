from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from .extensions import db, login_manager
from .utils.api_responses import APIResponse

logger = logging.getLogger(__name__)


def configure_login_manager(app):
    """Attach Flask-Login handlers. Every unauthenticated request gets a JSON 401."""
    login_manager.init_app(app)

    @login_manager.unauthorized_handler
    def _unauthorized():
        return APIResponse.unauthorized()

    @login_manager.user_loader
    def load_user(user_id: str):
        from .models import User

        try:
            user = db.session.get(User, int(user_id))
        except (ValueError, TypeError):
            return None
        except SQLAlchemyError:
            logger.exception("User lookup failed for session user %s", user_id)
            db.session.rollback()
            return None

        if not user or not user.is_active:
            return None
        return user
