# backend/config.py
import os

from dotenv import load_dotenv

load_dotenv()


def _to_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}

def _to_int(val: str | None, default: int) -> int:
    try:
        return int(val) if val is not None else default
    except ValueError:
        return default

def _split_csv(val: str | None, default: str) -> list[str]:
    raw = val if val is not None else default
    return [p.strip() for p in raw.split(",") if p.strip()]


APP_ENV = (os.environ.get("APP_ENV") or os.environ.get("FLASK_ENV") or "development").strip().lower()
_IS_PROD = APP_ENV == "production"


def engine_options(url: str) -> dict:
    """
    SQLAlchemy engine options for the given database URL.
    Every option bounds how long a store call may wait before failing.
    """
    timeout = _to_int(os.environ.get("DB_TIMEOUT"), 10)
    if url.startswith("sqlite"):
        return {"connect_args": {"timeout": timeout, "check_same_thread": False}}

    opts = {
        "pool_pre_ping": True,
        "pool_recycle": 180,
        "pool_size": _to_int(os.environ.get("DB_POOL_SIZE"), 5),
        "max_overflow": _to_int(os.environ.get("DB_MAX_OVERFLOW"), 10),
        "pool_timeout": _to_int(os.environ.get("DB_POOL_TIMEOUT"), 30),
    }
    if url.startswith("mysql"):
        opts["connect_args"] = {
            "connect_timeout": timeout,
            "read_timeout": timeout,
            "write_timeout": timeout,
        }
    elif url.startswith("postgresql"):
        opts["connect_args"] = {"connect_timeout": timeout}
    return opts


class Config:
    # ── Core ─────────────────────────────────────────────────────────────────
    DEBUG = _to_bool(os.environ.get("DEBUG") or os.environ.get("FLASK_DEBUG"), not _IS_PROD)
    TESTING = False
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me-before-deploying-anywhere")  # ← override in prod!
    APP_NAME = os.environ.get("APP_NAME", "Auth Service")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    CORS_ORIGINS = _split_csv(os.environ.get("CORS_ORIGINS"), "http://localhost:3000")
    PREFERRED_URL_SCHEME = os.environ.get("PREFERRED_URL_SCHEME", "https")

    # ── Store ───────────────────────────────────────────────────────────────
    USER_STORE = os.environ.get("USER_STORE", "sql").strip().lower()  # sql|memory
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///auth.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_CREATE_TABLES = _to_bool(os.environ.get("AUTO_CREATE_TABLES"), True)

    # ── Auth / JWT ──────────────────────────────────────────────────────────
    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY
    SESSION_TTL_DAYS = _to_int(os.environ.get("SESSION_TTL_DAYS"), 7)
    AUTH_COOKIE_NAME = os.environ.get("AUTH_COOKIE_NAME", "token")
    SESSION_TRANSPORT = os.environ.get("SESSION_TRANSPORT", "cookie").strip().lower()  # cookie|body|both
    COOKIE_SECURE = _to_bool(os.environ.get("COOKIE_SECURE"), _IS_PROD)
    COOKIE_SAMESITE = os.environ.get("COOKIE_SAMESITE", "None" if _IS_PROD else "Strict")

    PASSWORD_HASH_METHOD = os.environ.get("PASSWORD_HASH_METHOD", "scrypt")
    PASSWORD_MIN_LENGTH = _to_int(os.environ.get("PASSWORD_MIN_LENGTH"), 6)

    # ── OTP ─────────────────────────────────────────────────────────────────
    VERIFY_OTP_TTL_MINUTES = _to_int(os.environ.get("VERIFY_OTP_TTL_MINUTES"), 24 * 60)
    RESET_OTP_TTL_MINUTES = _to_int(os.environ.get("RESET_OTP_TTL_MINUTES"), 10)

    # ── Mail (SMTP relay first, Gmail second, log-only otherwise) ──────────
    SMTP_HOST = (os.environ.get("SMTP_HOST") or "").strip()
    SMTP_PORT = _to_int(os.environ.get("SMTP_PORT"), 0)
    SMTP_SECURE = os.environ.get("SMTP_SECURE")           # "true" → implicit TLS
    SMTP_USER = (os.environ.get("SMTP_USER") or "").strip()
    SMTP_PASS = (os.environ.get("SMTP_PASS") or "").strip()
    EMAIL_USER = (os.environ.get("EMAIL_USER") or "").strip()
    EMAIL_PASS = (os.environ.get("EMAIL_PASS") or "").strip()  # Gmail app password
    SENDER_EMAIL = (os.environ.get("SENDER_EMAIL") or "").strip()
    MAIL_TIMEOUT = _to_int(os.environ.get("MAIL_TIMEOUT"), 10)


class ProductionConfig(Config):
    DEBUG = False
    SECRET_KEY = os.environ.get("SECRET_KEY")
    JWT_SECRET = os.environ.get("JWT_SECRET") or os.environ.get("SECRET_KEY")
    COOKIE_SECURE = True
    COOKIE_SAMESITE = "None"


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    DEBUG = True
    TESTING = True
    SECRET_KEY = "test-secret-key-for-the-flask-test-suite"
    JWT_SECRET = "test-jwt-secret-at-least-32-bytes-long"
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite:///:memory:")
    SESSION_TRANSPORT = "cookie"
    COOKIE_SECURE = False
    COOKIE_SAMESITE = "Strict"
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    CORS_ORIGINS = ["http://localhost:3000"]
    SMTP_USER = SMTP_PASS = EMAIL_USER = EMAIL_PASS = ""


_CONFIGS = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def get_config(name: str | None = None) -> type[Config]:
    return _CONFIGS.get((name or APP_ENV).strip().lower(), DevelopmentConfig)
