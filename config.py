"""
Configuration for the Airlytics Flask app.
Production (Railway/Render): uses DATABASE_URL only; fails if missing.
Local: DATABASE_URL or DB_* fallback.
"""
import os
from pathlib import Path
from datetime import timedelta
from urllib.parse import quote_plus


def _env_flag(name, default="false"):
    return os.environ.get(name, default).lower() in ("true", "on", "1")


def _is_production():
    """True when running on Railway, Render, or explicit production."""
    return (
        os.environ.get("RENDER") == "true"
        or os.environ.get("RAILWAY_ENVIRONMENT") is not None
        or os.environ.get("FLASK_ENV") == "production"
    )


def _normalize_database_url(url):
    """Convert postgres:// to postgresql+psycopg2:// for SQLAlchemy/psycopg2."""
    if not url:
        return url
    url = url.strip()
    if url.startswith("postgres://"):
        return "postgresql+psycopg2://" + url[11:]
    if url.startswith("postgresql://") and "psycopg2" not in url:
        return "postgresql+psycopg2://" + url[13:]
    return url


def _get_database_uri():
    """Database URI: production = DATABASE_URL only; local = DATABASE_URL or DB_*."""
    if _is_production():
        url = os.environ.get("DATABASE_URL")
        if not url or not url.strip():
            raise RuntimeError(
                "DATABASE_URL is required in production (Railway/Render). "
                "Set it in your service environment variables."
            )
        return _normalize_database_url(url.strip())

    url = os.environ.get("DATABASE_URL")
    if url and url.strip():
        return _normalize_database_url(url.strip())

    host = os.environ.get("DB_HOST", "localhost")
    port = os.environ.get("DB_PORT", "5432")
    name = os.environ.get("DB_NAME", "pollutiondb")
    user = os.environ.get("DB_USER", "pollutiondb_user")
    password = os.environ.get("DB_PASSWORD", "")
    if password:
        password = quote_plus(password)
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get("SECRET_KEY") or "dev-secret-key-change-in-production"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    PERMANENT_SESSION_LIFETIME = timedelta(hours=8)
    SESSION_COOKIE_SECURE = _env_flag("SESSION_COOKIE_SECURE")
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    BASE_DIR = Path(__file__).parent
    INSTANCE_DIR = BASE_DIR / "instance"
    try:
        INSTANCE_DIR.mkdir(exist_ok=True)
    except OSError:
        pass
    SQLALCHEMY_DATABASE_URI = _get_database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    MAIL_SERVER = os.environ.get("MAIL_SERVER")
    MAIL_PORT = int(os.environ.get("MAIL_PORT") or 587)
    MAIL_USE_TLS = _env_flag("MAIL_USE_TLS", "true")
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.environ.get("MAIL_DEFAULT_SENDER") or os.environ.get("MAIL_USERNAME") or "noreply@airlytics.app"

    # Bearer tokens for the JSON API (24 hours)
    ACCESS_TOKEN_LIFETIME_SECONDS = int(os.environ.get("ACCESS_TOKEN_LIFETIME_SECONDS") or 24 * 60 * 60)

    # OTP: "database" keeps hashed codes in otp_tokens, "memory" keeps them in-process
    OTP_STORE = os.environ.get("OTP_STORE", "database").lower()
    # Surfaces the code to the caller when email delivery fails. Development only.
    OTP_FALLBACK_ENABLED = _env_flag("OTP_FALLBACK_ENABLED")
    EXPOSE_OTP_CODES = _env_flag("EXPOSE_OTP_CODES")
    # Per email and purpose
    OTP_RESEND_COOLDOWN_SECONDS = int(os.environ.get("OTP_RESEND_COOLDOWN_SECONDS") or 30)
    OTP_MAX_SENDS_PER_HOUR = int(os.environ.get("OTP_MAX_SENDS_PER_HOUR") or 5)

    ANALYTICS_OVERVIEW_LIMIT = int(os.environ.get("ANALYTICS_OVERVIEW_LIMIT") or 20)
    SEED_DEMO_DATA = _env_flag("SEED_DEMO_DATA")
    SEED_ADMIN = _env_flag("SEED_ADMIN", "true")


class TestingConfig(Config):
    """In-memory SQLite, no demo data, OTP codes exposed to the test client."""
    TESTING = True
    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    OTP_STORE = "database"
    OTP_FALLBACK_ENABLED = False
    EXPOSE_OTP_CODES = True
    SEED_DEMO_DATA = False
    SEED_ADMIN = False
    MAIL_SUPPRESS_SEND = True
