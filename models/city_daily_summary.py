"""
City daily summary model definition
"""
from models import db
from datetime import datetime

class CityDailySummary(db.Model):
    """
    Per-city, per-day aggregate of readings.
    trend_score = avg_aqi - previous day's avg_aqi (negative means improving).
    """
    __tablename__ = 'city_daily_summaries'
    __table_args__ = (
        db.UniqueConstraint('city_id', 'summary_date', name='uq_city_summary_date'),
    )

    id = db.Column(db.Integer, primary_key=True)
    city_id = db.Column(db.Integer, db.ForeignKey('cities.id'), nullable=False, index=True)
    summary_date = db.Column(db.Date, nullable=False, index=True)
    avg_aqi = db.Column(db.Float, nullable=False)
    max_aqi = db.Column(db.Integer, nullable=False)
    min_aqi = db.Column(db.Integer, nullable=False)
    dominant_pollutant = db.Column(db.String(8), nullable=False)
    avg_pm25 = db.Column(db.Float, nullable=False, default=0)
    avg_pm10 = db.Column(db.Float, nullable=False, default=0)
    avg_co = db.Column(db.Float, nullable=False, default=0)
    avg_no2 = db.Column(db.Float, nullable=False, default=0)
    avg_so2 = db.Column(db.Float, nullable=False, default=0)
    avg_o3 = db.Column(db.Float, nullable=False, default=0)
    trend_score = db.Column(db.Float, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<CityDailySummary {self.city_id} {self.summary_date}>'
