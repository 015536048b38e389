"""
Pollution reading model definition
"""
from models import db
from datetime import datetime

POLLUTANT_FIELDS = ('pm25', 'pm10', 'co', 'no2', 'so2', 'o3')

class PollutionReading(db.Model):
    """One AQI measurement for a city. Append-only except owner/admin edits."""
    __tablename__ = 'pollution_readings'

    id = db.Column(db.Integer, primary_key=True)
    city_id = db.Column(db.Integer, db.ForeignKey('cities.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    recorded_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    aqi = db.Column(db.Integer, nullable=False)
    aqi_category = db.Column(db.String(32))  # good, moderate, ..., hazardous
    dominant_pollutant = db.Column(db.String(8))
    pm25 = db.Column(db.Float, nullable=False, default=0)
    pm10 = db.Column(db.Float, nullable=False, default=0)
    co = db.Column(db.Float, nullable=False, default=0)
    no2 = db.Column(db.Float, nullable=False, default=0)
    so2 = db.Column(db.Float, nullable=False, default=0)
    o3 = db.Column(db.Float, nullable=False, default=0)
    temperature = db.Column(db.Float)
    humidity = db.Column(db.Float)
    wind_speed = db.Column(db.Float)
    data_source = db.Column(db.String(50))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def pollutants(self):
        return {field: getattr(self, field) for field in POLLUTANT_FIELDS}

    def to_dict(self, guest=False):
        """Full payload, or the reduced guest view (pm25/pm10 only, no owner)"""
        city = self.city
        if guest:
            return {
                'id': self.id,
                'city': {'name': city.name, 'country': city.country} if city else None,
                'aqi': self.aqi,
                'recordedAt': self.recorded_at.isoformat() if self.recorded_at else None,
                'pollutants': {'pm25': self.pm25, 'pm10': self.pm10},
            }
        return {
            'id': self.id,
            'city': city.to_dict() if city else None,
            'user': {'id': self.user.id, 'name': self.user.name, 'email': self.user.email} if self.user else None,
            'aqi': self.aqi,
            'aqiCategory': self.aqi_category,
            'dominantPollutant': self.dominant_pollutant,
            'recordedAt': self.recorded_at.isoformat() if self.recorded_at else None,
            'pollutants': self.pollutants(),
            'weather': {
                'temperature': self.temperature,
                'humidity': self.humidity,
                'windSpeed': self.wind_speed,
            },
            'dataSource': self.data_source,
        }

    def __repr__(self):
        return f'<PollutionReading {self.id} city={self.city_id} aqi={self.aqi}>'
