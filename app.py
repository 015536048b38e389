"""
Main Flask application entry point for Airlytics
"""
import logging
import os

from flask import Flask, jsonify, request
from flask_login import LoginManager

from config import Config
from errors import register_error_handlers
from models import db
from models.user import User
from utils.mail import FlaskMailSender, mail
from utils.otp_manager import EMAIL_VERIFICATION, LOGIN, OtpManager, OtpStore, SqlOtpStore

logger = logging.getLogger(__name__)

# Initialize login manager (no DB access at import time)
login_manager = LoginManager()
login_manager.login_view = "dashboard.login"
login_manager.login_message = "Please log in to access this page."
login_manager.login_message_category = "info"


@login_manager.user_loader
def load_user(user_id):
    """Load user for Flask-Login (runs in request context)."""
    return db.session.get(User, int(user_id))


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def build_otp_manager(app, purpose=LOGIN):
    """OtpManager for one purpose; the store is chosen by OTP_STORE."""
    store = OtpStore() if app.config.get("OTP_STORE") == "memory" else SqlOtpStore(purpose)
    return OtpManager(
        store,
        FlaskMailSender(),
        purpose=purpose,
        fallback_enabled=app.config.get("OTP_FALLBACK_ENABLED", False),
        expose_codes=app.config.get("EXPOSE_OTP_CODES", False),
        resend_cooldown_seconds=app.config.get("OTP_RESEND_COOLDOWN_SECONDS", 30),
        max_sends_per_hour=app.config.get("OTP_MAX_SENDS_PER_HOUR", 5),
    )


def create_app(config_class=Config):
    """Application factory pattern. DB init runs inside app_context; non-fatal on failure."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)

    db.init_app(app)
    login_manager.init_app(app)
    mail.init_app(app)
    register_error_handlers(app)

    app.extensions["otp_manager"] = build_otp_manager(app)
    app.extensions["email_otp_manager"] = build_otp_manager(app, EMAIL_VERIFICATION)

    @app.errorhandler(500)
    def handle_500_error(e):
        if request.path.startswith("/api/"):
            return jsonify({"success": False, "message": "Internal server error. Please try again later."}), 500
        return "Internal server error", 500

    # Create tables and seed only inside app context; do not crash if DB temporarily unavailable
    with app.app_context():
        try:
            db.create_all()
            if app.config.get("SEED_ADMIN"):
                seed_admin()
            if app.config.get("SEED_DEMO_DATA"):
                seed_demo_data()
        except Exception as e:
            logger.warning("Database init/seed skipped (non-fatal): %s", e)

    # Register blueprints
    from routes import auth_bp, pollution_bp, analytics_bp, dashboard_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(pollution_bp)
    app.register_blueprint(analytics_bp)
    app.register_blueprint(dashboard_bp)

    return app


def seed_admin():
    """Ensure the seed admin user exists with the configured password."""
    seed_email = os.environ.get("SEED_ADMIN_EMAIL", "admin@airlytics.app").strip().lower()
    seed_password = os.environ.get("SEED_ADMIN_PASSWORD", "Admin@2026")
    seed_name = (os.environ.get("SEED_ADMIN_NAME") or "Administrator").strip()

    admin = User.query.filter(User.email.ilike(seed_email)).first()
    if not admin:
        admin = User(name=seed_name, email=seed_email, is_admin=True, is_active=True)
        db.session.add(admin)
    else:
        admin.is_admin = True
        admin.is_active = True

    admin.set_password(seed_password)

    try:
        db.session.commit()
        logger.info("Admin ready. Email: %s", seed_email)
    except Exception as e:
        db.session.rollback()
        logger.error("Error seeding admin: %s", e)


def seed_demo_data(target_cities=None, hours=None, days=None, seed=None):
    """Insert generated cities, readings and summaries when no city exists yet."""
    from models.city import City
    from models.city_daily_summary import CityDailySummary
    from models.pollution_reading import PollutionReading
    from utils.data_generator import DEFAULT_SEED, generate_seed_data

    if City.query.count() > 0:
        return 0

    data = generate_seed_data(
        target_cities=target_cities or int(os.environ.get("SEED_CITY_COUNT") or 160),
        hours=hours or int(os.environ.get("SEED_HOURS") or 120),
        days=days or int(os.environ.get("SEED_DAYS") or 7),
        seed=seed if seed is not None else DEFAULT_SEED,
    )

    try:
        # Generated ids are positional; map them to the ids the database assigns
        cities = {}
        for record in data["cities"]:
            generated_id = record.pop("id")
            cities[generated_id] = City(**record)
        db.session.add_all(cities.values())
        db.session.flush()

        for reading in data["readings"]:
            reading["city_id"] = cities[reading["city_id"]].id
            db.session.add(PollutionReading(**reading))
        for summary in data["summaries"]:
            summary["city_id"] = cities[summary["city_id"]].id
            db.session.add(CityDailySummary(**summary))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Seeded %d cities, %d readings, %d daily summaries",
        len(data["cities"]), len(data["readings"]), len(data["summaries"]),
    )
    return len(data["cities"])


# WSGI entry point (Railway/Render): gunicorn app:app
app = create_app()
application = app

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG", "false").lower() in ("true", "1"))
