# backend/app.py
from __future__ import annotations

import os
from datetime import timedelta

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from config import engine_options, get_config
from db import db, migrate

# Ensure models are imported so Flask-Migrate sees them
from models.user import OtpPurpose, User

from routes.auth import auth_bp
from routes.user import user_bp

from services.auth import AuthService
from services.errors import AuthError, Internal
from services.notifier import Notifier, build_notifier
from services.otp import OtpEngine
from services.passwords import PasswordHasher
from services.tokens import TokenIssuer
from services.user_store import MemoryUserStore, SqlUserStore, UserStore


def create_app(config_object=None, *, store: UserStore | None = None,
               notifier: Notifier | None = None) -> Flask:
    """
    Build the app. ``store`` and ``notifier`` default to the SQL store and the
    configured mail transport; tests inject in-memory fakes.
    """
    app = Flask(__name__)

    # Respect reverse proxy headers (scheme / host); secure cookies depend on it
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)  # type: ignore[arg-type]

    app.config.from_object(config_object or get_config())
    if not app.config.get("JWT_SECRET"):
        raise RuntimeError("JWT_SECRET (or SECRET_KEY) is not set. Please configure it in the environment.")
    app.config.setdefault(
        "SQLALCHEMY_ENGINE_OPTIONS", engine_options(app.config["SQLALCHEMY_DATABASE_URI"])
    )
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Browser client sends the session cookie cross-origin
    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}}, supports_credentials=True)

    db.init_app(app)
    migrate.init_app(app, db)

    if store is None and app.config.get("USER_STORE") == "memory":
        app.logger.warning("[app] USER_STORE=memory: accounts are lost on restart")
        store = MemoryUserStore()
    elif store is None:
        store = SqlUserStore()
        if app.config.get("AUTO_CREATE_TABLES"):
            with app.app_context():
                _ = User  # registered on db.metadata by import
                db.create_all()
    if notifier is None:
        notifier = build_notifier(app.config)

    otp = OtpEngine(
        store,
        {
            OtpPurpose.ACCOUNT_VERIFY: timedelta(minutes=int(app.config["VERIFY_OTP_TTL_MINUTES"])),
            OtpPurpose.PASSWORD_RESET: timedelta(minutes=int(app.config["RESET_OTP_TTL_MINUTES"])),
        },
    )
    app.extensions["auth_service"] = AuthService(
        store,
        PasswordHasher(app.config["PASSWORD_HASH_METHOD"]),
        otp,
        TokenIssuer(app.config["JWT_SECRET"], timedelta(days=int(app.config["SESSION_TTL_DAYS"]))),
        notifier,
        app_name=app.config.get("APP_NAME", "Auth Service"),
    )

    # Health check
    @app.route("/")
    def health_check():
        return jsonify(success=True, status="ok"), 200

    @app.errorhandler(AuthError)
    def handle_auth_error(e: AuthError):
        if isinstance(e, Internal):
            app.logger.error("[app] %s on %s %s: %r", e.kind, request.method, request.path, e.__cause__ or e)
        return jsonify(success=False, message=e.message), e.status_code

    @app.errorhandler(404)
    def handle_404(e):
        return jsonify(success=False, message="Not Found", path=request.path), 404

    # Global error handler
    @app.errorhandler(Exception)
    def handle_any_error(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify(success=False, message=e.description), e.code
        app.logger.exception("[app] unhandled error on %s %s", request.method, request.path)
        return jsonify(success=False, message=Internal.default_message), 500

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(user_bp)

    # CLI: create the users table
    @app.cli.command("init-db")
    def init_db_cmd():
        db.create_all()
        print("Database tables checked/created.")

    return app


# Optional local entrypoint (useful for quick dev runs)
if __name__ == "__main__":
    app = create_app()
    app.run(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "5000")),
        debug=bool(os.environ.get("FLASK_DEBUG", "")),
    )
