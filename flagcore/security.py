# flagcore/security.py
from functools import wraps

from flask import current_app, jsonify
from flask_jwt_extended import get_jwt, verify_jwt_in_request


def _role_from_claims(claims):
    # role stored under "sub" (dict with role) or as a top-level "role" claim
    sub = claims.get("sub") or {}
    role = sub.get("role") if isinstance(sub, dict) else None
    return role or claims.get("role")


def admin_required(fn):
    """Guard for mutating flag routes; a no-op unless FLAGS_REQUIRE_AUTH is on."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not current_app.config.get("FLAGS_REQUIRE_AUTH"):
            return fn(*args, **kwargs)
        verify_jwt_in_request()
        allowed = current_app.config.get("FLAGS_ADMIN_ROLES") or ()
        if _role_from_claims(get_jwt()) not in allowed:
            return jsonify({"error": "forbidden", "message": "flag admin role required"}), 403
        return fn(*args, **kwargs)
    return wrapper
