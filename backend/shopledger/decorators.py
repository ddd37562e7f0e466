# Overview: Operation-boundary decorator for API routes.

from functools import wraps
from flask import jsonify, current_app

from .errors import ShopError


def success(data=None, status: int = 200):
    return jsonify({"success": True, "data": data}), status


def failure(message: str, status: int, details: dict | None = None):
    body = {"success": False, "error": message}
    if details:
        body["details"] = details
    return jsonify(body), status


def operation_result(failure_message: str, *, status: int = 200):
    """
    Convert a route's return value or error into the uniform result shape.

    The wrapped function returns the payload (already JSON-serializable):
        {"success": true, "data": <payload>}
    Domain errors become:
        {"success": false, "error": <message>}   with the error's status code
    Anything unexpected is logged and reported with `failure_message` (500).
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                data = f(*args, **kwargs)
            except ShopError as e:
                if e.status_code >= 500:
                    current_app.logger.error("%s: %s", failure_message, e.message)
                return failure(e.message, e.status_code, e.details)
            except Exception:
                current_app.logger.exception(failure_message)
                return failure(failure_message, 500)
            return success(data, status)

        return decorated_function

    return decorator
