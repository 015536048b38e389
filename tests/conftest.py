import os

# Module-level app in app.py is built from Config at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_ADMIN", "false")

from datetime import timedelta

import pytest

from app import create_app
from config import TestingConfig
from models import db
from models.city import City
from models.city_daily_summary import CityDailySummary
from models.pollution_reading import PollutionReading
from models.user import User
from utils.auth_utils import generate_access_token
from utils.datetime_utils import utcnow

PASSWORD = "Passw0rd!23"


class FakeMailer:
    def __init__(self):
        self.sent = []

    def send(self, to_address, subject, text_body, html_body):
        self.sent.append({
            "to": to_address,
            "subject": subject,
            "text": text_body,
            "html": html_body,
        })


class FailingMailer:
    def __init__(self):
        self.calls = 0

    def send(self, to_address, subject, text_body, html_body):
        self.calls += 1
        raise ConnectionRefusedError("SMTP server unavailable")


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def mailer(app):
    fake = FakeMailer()
    app.extensions["otp_manager"].mailer = fake
    app.extensions["email_otp_manager"].mailer = fake
    return fake


@pytest.fixture
def client(app, mailer):
    return app.test_client()


@pytest.fixture
def create_user(app):
    def _create(email="test@example.com", password=PASSWORD, name="Test User", is_admin=False, is_active=True):
        with app.app_context():
            user = User(name=name, email=email, is_admin=is_admin, is_active=is_active)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _create


@pytest.fixture
def auth_header(app):
    def _header(user_id):
        with app.app_context():
            user = db.session.get(User, user_id)
            return {"Authorization": f"Bearer {generate_access_token(user)}"}
    return _header


@pytest.fixture
def create_city(app):
    def _create(name="Testville", slug=None, country="India", region="Test Region", is_indian=True, timezone="UTC"):
        with app.app_context():
            city = City(
                name=name,
                slug=slug or name.lower().replace(" ", "-"),
                country=country,
                region=region,
                latitude=10.0,
                longitude=20.0,
                population=100000,
                timezone=timezone,
                is_indian=is_indian,
            )
            db.session.add(city)
            db.session.commit()
            return city.id
    return _create


def reading_fields(aqi=120, **overrides):
    fields = {
        "aqi": aqi,
        "aqi_category": "unhealthy_sensitive",
        "dominant_pollutant": "pm10",
        "pm25": 40.0,
        "pm10": 80.0,
        "co": 1.0,
        "no2": 20.0,
        "so2": 5.0,
        "o3": 30.0,
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def add_reading(app):
    def _add(city_id, hours_ago=1, user_id=None, **overrides):
        with app.app_context():
            reading = PollutionReading(
                city_id=city_id,
                user_id=user_id,
                recorded_at=utcnow() - timedelta(hours=hours_ago),
                **reading_fields(**overrides),
            )
            db.session.add(reading)
            db.session.commit()
            return reading.id
    return _add


@pytest.fixture
def add_summaries(app):
    """Consecutive daily summaries ending today, oldest first."""
    def _add(city_id, avg_aqis, end=None):
        end = end or utcnow().date()
        with app.app_context():
            previous = None
            for offset, avg in enumerate(avg_aqis):
                day = end - timedelta(days=len(avg_aqis) - 1 - offset)
                db.session.add(CityDailySummary(
                    city_id=city_id,
                    summary_date=day,
                    avg_aqi=avg,
                    max_aqi=int(avg) + 10,
                    min_aqi=max(int(avg) - 10, 0),
                    dominant_pollutant="pm25",
                    avg_pm25=avg / 2,
                    avg_pm10=avg / 3,
                    avg_co=1.0,
                    avg_no2=10.0,
                    avg_so2=5.0,
                    avg_o3=20.0,
                    trend_score=0 if previous is None else avg - previous,
                ))
                previous = avg
            db.session.commit()
    return _add
