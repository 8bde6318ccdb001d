# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import actor_service
from .validation import UnauthorizedError

# Set by the upstream authentication gateway after it verifies the caller
ACTOR_HEADER = "X-User-Id"


def require_actor(f):
    """
    Require an authenticated actor and resolve it from the directory.

    Sets the following Flask g attributes:
    - g.current_user: The acting User object

    SECURITY: Returns 401 if:
    - No actor header
    - Unknown user id
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor_id = request.headers.get(ACTOR_HEADER)

        if not actor_id:
            return jsonify({"error": "Authentication required"}), 401

        try:
            g.current_user = actor_service.get_actor(actor_id)
        except UnauthorizedError as e:
            current_app.logger.warning("Rejected actor %r on %s: %s", actor_id, request.path, e)
            return jsonify({"error": "Invalid or inactive actor"}), 401

        return f(*args, **kwargs)

    return decorated_function
