"""
City model definition
"""
from models import db
from datetime import datetime

class City(db.Model):
    """Reference data for a monitored city. Created at seed/admin time."""
    __tablename__ = 'cities'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, index=True)
    slug = db.Column(db.String(120), unique=True, nullable=False)
    country = db.Column(db.String(100), nullable=False, index=True)
    iso_code = db.Column(db.String(8), nullable=True)
    region = db.Column(db.String(100), nullable=True)
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    population = db.Column(db.Integer, nullable=True)
    timezone = db.Column(db.String(64), nullable=True)
    is_indian = db.Column(db.Boolean, nullable=False, default=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    readings = db.relationship('PollutionReading', backref='city', lazy=True, cascade='all, delete-orphan')
    daily_summaries = db.relationship('CityDailySummary', backref='city', lazy=True, cascade='all, delete-orphan')

    def to_dict(self):
        """Convert city to dictionary for JSON responses"""
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'country': self.country,
            'region': self.region,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'isIndian': bool(self.is_indian),
        }

    def __repr__(self):
        return f'<City {self.slug}>'
