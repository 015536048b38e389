"""
Read-only data access for analytics, backed by Flask-SQLAlchemy models.
"""
from sqlalchemy import or_

from models import db
from models.city import City
from models.pollution_reading import PollutionReading
from models.city_daily_summary import CityDailySummary


def find_city_by_identifier(identifier):
    """Numeric identifiers are ids; anything else matches slug or name."""
    if identifier is None:
        return None
    identifier = str(identifier).strip()
    if not identifier:
        return None
    if identifier.isdigit():
        return db.session.get(City, int(identifier))
    return City.query.filter(
        or_(City.slug == identifier, City.name == identifier)
    ).first()


class SqlAnalyticsRepository:
    """Data-access object consumed by AnalyticsAggregator."""

    def find_city(self, identifier):
        return find_city_by_identifier(identifier)

    def find_readings(self, city_id, since):
        return PollutionReading.query.filter(
            PollutionReading.city_id == city_id,
            PollutionReading.recorded_at >= since
        ).order_by(PollutionReading.recorded_at.asc()).all()

    def find_recent_summaries(self, city_id, limit):
        return CityDailySummary.query.filter_by(
            city_id=city_id
        ).order_by(CityDailySummary.summary_date.desc()).limit(limit).all()

    def find_cities_by_ids(self, ids=None, limit=None):
        query = City.query
        if ids is not None:
            if not ids:
                return []
            query = query.filter(City.id.in_(ids))
        query = query.order_by(City.id.asc())
        if ids is None and limit:
            query = query.limit(limit)
        return query.all()

    def find_summaries_for_cities(self, city_ids):
        if not city_ids:
            return []
        return CityDailySummary.query.filter(
            CityDailySummary.city_id.in_(city_ids)
        ).order_by(CityDailySummary.summary_date.desc(), CityDailySummary.id.asc()).all()
