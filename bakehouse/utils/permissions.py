from functools import wraps

from flask_login import current_user

from .api_responses import APIResponse


def role_required(*roles):
    """
    Decorator to require one of `roles` on the logged-in user.

    Unauthenticated requests get 401, authenticated users without the role 403.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return APIResponse.unauthorized()
            if not current_user.has_role(*roles):
                return APIResponse.forbidden(
                    f"This action requires one of the roles: {', '.join(roles)}"
                )
            return f(*args, **kwargs)
        return decorated_function
    return decorator
