# Overview: Request decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .context import ActorContext
from .services import user_service

ACTOR_HEADER = "X-User-Id"


def _unauthorized(message: str):
    return jsonify({"ok": False, "error_kind": "Unauthorized", "message": message, "details": {}}), 401


def require_actor(f):
    """
    Resolve the authenticated actor and establish tenant context.

    Authentication itself happens upstream (gateway/session layer), which
    forwards the user id in the X-User-Id header. This decorator loads that
    user and sets:
    - g.current_user: the active User
    - g.actor: the ActorContext (org_id, user_id, role, branch_id)

    SECURITY: Returns 401 if the header is missing, the user does not exist,
    or the user or its organization is deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        raw_user_id = request.headers.get(ACTOR_HEADER)
        if not raw_user_id:
            return _unauthorized("Authentication required")

        user = user_service.get_active_user(raw_user_id)
        if user is None:
            return _unauthorized("Invalid or inactive user")

        g.current_user = user
        g.actor = ActorContext.for_user(user)
        return f(*args, **kwargs)

    return decorated_function
