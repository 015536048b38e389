"""
Models package for the Airlytics application
"""
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# Import all models here to ensure they're registered
from models.user import User
from models.city import City
from models.pollution_reading import PollutionReading
from models.city_daily_summary import CityDailySummary
from models.otp_token import OtpToken, OtpSendLog

__all__ = [
    'db',
    'User',
    'City',
    'PollutionReading',
    'CityDailySummary',
    'OtpToken',
    'OtpSendLog',
]
