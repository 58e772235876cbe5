# Overview: Request decorators for API routes; session and role checks.

from functools import wraps
from flask import jsonify, g

from .services import get_services
from .services.session_service import ROLE_ADMIN


def _is_authenticated() -> bool:
    return hasattr(g, 'session_state') and g.session_state.authenticated


def require_session(f):
    """
    Require a signed-in terminal session.

    Sets the following Flask g attributes:
    - g.session_state: the current SessionSnapshot
    - g.operator: operator identity (None for the local admin bypass)

    Returns 401 when neither the local admin bypass nor a remote session is active.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        snapshot = get_services().session.current
        if not snapshot.authenticated:
            return jsonify({"error": "Authentication required"}), 401

        g.session_state = snapshot
        g.operator = snapshot.operator

        return f(*args, **kwargs)

    return decorated_function


def require_role(role: str):
    """
    Require a specific session role. The admin role satisfies every check.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_session was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            current_role = g.session_state.role
            if current_role != role and current_role != ROLE_ADMIN:
                return jsonify({
                    "error": "Permission denied",
                    "required_role": role,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
