"""
Daily summary computation: group a city's readings by UTC calendar date,
average them and score each day against the previous one.
"""
import logging

from models import db
from models.city_daily_summary import CityDailySummary
from models.pollution_reading import PollutionReading
from utils.health_advisor import POLLUTANT_KEYS, dominant_pollutant

logger = logging.getLogger(__name__)


def _value(reading, key):
    if isinstance(reading, dict):
        return reading.get(key)
    return getattr(reading, key)


def build_daily_summaries(city_id, readings, days=None):
    """
    Return summary dicts (oldest first) for the last `days` dates present.
    trend_score is avg_aqi minus the previous day's avg_aqi; the first day
    of the series scores 0.
    """
    grouped = {}
    for reading in readings:
        grouped.setdefault(_value(reading, 'recorded_at').date(), []).append(reading)

    dates = sorted(grouped)

    summaries = []
    previous_avg = None
    for day in dates:
        day_readings = grouped[day]
        aqis = [_value(reading, 'aqi') for reading in day_readings]
        avg_aqi = sum(aqis) / len(aqis)
        avg_pollutants = {
            key: sum(_value(reading, key) or 0 for reading in day_readings) / len(day_readings)
            for key in POLLUTANT_KEYS
        }
        trend = avg_aqi - previous_avg if previous_avg is not None else 0
        summary = {
            'city_id': city_id,
            'summary_date': day,
            'avg_aqi': round(avg_aqi, 2),
            'max_aqi': max(aqis),
            'min_aqi': min(aqis),
            'dominant_pollutant': dominant_pollutant(avg_pollutants),
            'trend_score': round(trend, 2),
        }
        summary.update({'avg_' + key: round(value, 2) for key, value in avg_pollutants.items()})
        summaries.append(summary)
        previous_avg = avg_aqi

    # Trend needs the day before the first kept date
    return summaries[-days:] if days else summaries


def refresh_city_summaries(city):
    """Rebuild and upsert every daily summary for one city. Caller commits."""
    readings = PollutionReading.query.filter_by(city_id=city.id).order_by(PollutionReading.recorded_at.asc()).all()
    summaries = build_daily_summaries(city.id, readings)

    existing = {
        row.summary_date: row
        for row in CityDailySummary.query.filter_by(city_id=city.id).all()
    }
    for data in summaries:
        row = existing.get(data['summary_date'])
        if row is None:
            db.session.add(CityDailySummary(**data))
        else:
            for field, value in data.items():
                setattr(row, field, value)
    return len(summaries)


def refresh_all_summaries(cities):
    """Rebuild summaries for the given cities and commit once."""
    total = 0
    try:
        for city in cities:
            total += refresh_city_summaries(city)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Refreshed %d daily summaries for %d cities", total, len(cities))
    return total
