from functools import wraps

from flask import current_app, jsonify, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request


def current_identity():
    """(user_id, role) of the authenticated principal."""
    return int(get_jwt_identity()), get_jwt().get("role")


def role_required(*roles):
    """Only tokens whose `role` claim is in `roles` get through; everyone else gets 403."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            user_id, role = current_identity()
            if role not in roles:
                current_app.logger.info(f"[auth] user={user_id} role={role} denied {request.endpoint}")
                return jsonify({"success": False, "message": "Forbidden"}), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator
