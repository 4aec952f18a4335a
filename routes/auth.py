# backend/routes/auth.py
from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from auth_guard import auth_service, require_auth
from services.auth import AuthResult
from services.inputs import (
    ForgotPasswordInput,
    LoginInput,
    RegisterInput,
    ResetPasswordInput,
    VerifyEmailInput,
)
from services.tokens import clear_session_cookie, set_session_cookie

__all__ = ["auth_bp"]
auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _ok(message: str | None = None, **extra):
    body = {"success": True}
    if message:
        body["message"] = message
    body.update(extra)
    return jsonify(body)


def _session_response(result: AuthResult):
    """Hand the token out as a cookie, in the body, or both (SESSION_TRANSPORT)."""
    transport = current_app.config.get("SESSION_TRANSPORT", "cookie")
    extra = {"token": result.token} if transport in {"body", "both"} else {}
    resp = _ok(result.message, **extra)
    if transport in {"cookie", "both"}:
        set_session_cookie(resp, result.token, current_app.config)
    return resp


def _min_password_length() -> int:
    return int(current_app.config.get("PASSWORD_MIN_LENGTH", 6))


# -------------------------------------------------------------------
# Middleware
# -------------------------------------------------------------------
@auth_bp.after_request
def add_no_store(resp):
    resp.headers["Cache-Control"] = "no-store"
    return resp


# -------------------------------------------------------------------
# Register / login / logout
# -------------------------------------------------------------------
@auth_bp.route("/register", methods=["POST"])
def register():
    data = RegisterInput.from_json(request.get_json(silent=True), min_password_length=_min_password_length())
    return _session_response(auth_service().register(data))


@auth_bp.route("/login", methods=["POST"])
def login():
    data = LoginInput.from_json(request.get_json(silent=True))
    return _session_response(auth_service().login(data))


@auth_bp.route("/logout", methods=["POST"])
def logout():
    resp = _ok(auth_service().logout())
    clear_session_cookie(resp, current_app.config)
    return resp


@auth_bp.route("/is-auth", methods=["GET", "POST"])
@require_auth
def is_auth():
    return _ok()


# -------------------------------------------------------------------
# Account verification (signed-in user; id comes from the token)
# -------------------------------------------------------------------
@auth_bp.route("/send-verify-otp", methods=["POST"])
@require_auth
def send_verify_otp():
    return _ok(auth_service().send_verify_otp(g.user_id))


@auth_bp.route("/verify-email", methods=["POST"])
@auth_bp.route("/verify-account", methods=["POST"])
@require_auth
def verify_email():
    data = VerifyEmailInput.from_json(request.get_json(silent=True))
    return _ok(auth_service().verify_email(g.user_id, data))


# -------------------------------------------------------------------
# Password reset
# -------------------------------------------------------------------
@auth_bp.route("/forgot-password", methods=["POST"])
@auth_bp.route("/send-reset-otp", methods=["POST"])
def forgot_password():
    data = ForgotPasswordInput.from_json(request.get_json(silent=True))
    return _ok(auth_service().send_reset_otp(data))


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    data = ResetPasswordInput.from_json(request.get_json(silent=True), min_password_length=_min_password_length())
    return _ok(auth_service().reset_password(data))
