from typing import Any, Dict, Optional

from flask import jsonify


class APIResponse:
    """JSON envelope shared by every /api route and error handler."""

    @staticmethod
    def success(data: Any = None, message: str = "Success", status_code: int = 200):
        return jsonify({'success': True, 'message': message, 'data': data}), status_code

    @staticmethod
    def error(message: str, errors: Optional[Dict] = None, status_code: int = 400, error_code: Optional[str] = None):
        body = {
            'success': False,
            'message': message,
            'error_code': error_code,
            'errors': errors or {},
        }
        return jsonify(body), status_code

    @staticmethod
    def unauthorized(message: str = "Authentication required"):
        return APIResponse.error(message, status_code=401, error_code='UNAUTHORIZED')

    @staticmethod
    def forbidden(message: str = "Access denied"):
        return APIResponse.error(message, status_code=403, error_code='FORBIDDEN')
