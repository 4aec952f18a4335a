# auth_guard.py
from __future__ import annotations

from functools import wraps

from flask import current_app, g, request

from services.auth import AuthService

__all__ = ["require_auth", "auth_service", "session_token"]


def auth_service() -> AuthService:
    return current_app.extensions["auth_service"]


def session_token() -> str | None:
    """Session token from the cookie (web flow) or a Bearer header (API flow)."""
    token = request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def require_auth(f):
    """
    Usage:
      @require_auth   -> any signed-in user; g.user_id holds the token subject

    Missing/invalid tokens raise Unauthorized/InvalidToken, which the app's
    error handler renders as {"success": false, "message": ...}.
    """

    @wraps(f)
    def wrapped(*args, **kwargs):
        user_id = auth_service().authenticate(session_token())
        g.user_id = user_id  # type: ignore[attr-defined]
        current_app.logger.debug(
            "[guard] %s %s uid=%s ip=%s", request.method, request.path, user_id, request.remote_addr
        )
        return f(*args, **kwargs)

    return wrapped
