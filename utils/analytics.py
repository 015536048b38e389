"""
Analytics aggregation over stored readings and daily summaries.

AnalyticsAggregator takes a read-only repository (see
utils.data_access.SqlAnalyticsRepository) and turns rows into the payloads
served by /api/analytics and rendered by the dashboard. Repository errors are
not caught here.
"""
from datetime import date, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from errors import CityNotFoundError
from utils.datetime_utils import isoformat, utcnow
from utils.health_advisor import (
    DEFAULT_POLLUTANT,
    POLLUTANT_KEYS,
    build_health_advice,
    classify_aqi,
)

HOURS_LOOKBACK = 72
DAYS_LOOKBACK = 30
RECENT_SUMMARY_LIMIT = 7
IMPROVEMENT_TRACKER_DAYS = 3
AGGREGATE_TREND_DAYS = 3
MOST_IMPROVED_LIMIT = 3
DEFAULT_OVERVIEW_LIMIT = 20


def average(values):
    values = list(values)
    if not values:
        return 0
    return sum(values) / len(values)


def _round(value):
    return round(float(value or 0), 2)


def _date_key(value):
    return value.isoformat() if isinstance(value, date) else value


def _local_time(recorded_at, tz):
    if recorded_at.tzinfo is None:
        recorded_at = recorded_at.replace(tzinfo=timezone.utc)
    return recorded_at.astimezone(tz)


def _city_timezone(city):
    name = getattr(city, 'timezone', None)
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            pass
    return timezone.utc


def create_empty_overview():
    return {
        'cities': [],
        'averagePollutants': {key: 0 for key in POLLUTANT_KEYS},
        'categoryDistribution': {},
        'regionalCorrelation': [],
        'rankings': {
            'worst': None,
            'best': None,
            'mostImproved': [],
        },
        'threeDayAggregateChange': [],
    }


def summary_pollutants(summary):
    return {key: getattr(summary, 'avg_' + key) or 0 for key in POLLUTANT_KEYS}


class AnalyticsAggregator:

    def __init__(self, repository, clock=utcnow, overview_limit=DEFAULT_OVERVIEW_LIMIT):
        self.repository = repository
        self.clock = clock
        self.overview_limit = overview_limit

    def city_analytics(self, slug_or_id):
        """Trend, patterns and health advice for one city. Raises CityNotFoundError."""
        city = self.repository.find_city(slug_or_id)
        if city is None:
            raise CityNotFoundError(slug_or_id)

        now = self.clock()
        recent_readings = self._sorted(self.repository.find_readings(city.id, now - timedelta(hours=HOURS_LOOKBACK)))
        long_readings = self._sorted(self.repository.find_readings(city.id, now - timedelta(days=DAYS_LOOKBACK)))
        summaries = self.repository.find_recent_summaries(city.id, RECENT_SUMMARY_LIMIT)

        latest_reading = (recent_readings or long_readings or [None])[-1]

        tz = _city_timezone(city)
        hourly_buckets = [[] for _ in range(24)]
        weekday_buckets = [[] for _ in range(7)]
        for reading in long_readings:
            local = _local_time(reading.recorded_at, tz)
            hourly_buckets[local.hour].append(reading.aqi)
            # isoweekday: Monday=1 .. Sunday=7, so Sunday becomes 0
            weekday_buckets[local.isoweekday() % 7].append(reading.aqi)

        improvement_tracker = [
            {
                'date': _date_key(summary.summary_date),
                'avgAqi': _round(summary.avg_aqi),
                'trendScore': _round(summary.trend_score),
                'dominantPollutant': summary.dominant_pollutant,
            }
            for summary in summaries[:IMPROVEMENT_TRACKER_DAYS]
        ]
        improvement_tracker.reverse()

        latest_summary = improvement_tracker[-1] if improvement_tracker else None
        if latest_reading is not None:
            dominant = latest_reading.dominant_pollutant or DEFAULT_POLLUTANT
            health_impact = build_health_advice(latest_reading.aqi, dominant)
        elif latest_summary is not None:
            dominant = latest_summary['dominantPollutant'] or DEFAULT_POLLUTANT
            health_impact = build_health_advice(latest_summary['avgAqi'], dominant)
        else:
            dominant = DEFAULT_POLLUTANT
            health_impact = None

        return {
            'city': {
                'id': city.id,
                'name': city.name,
                'slug': city.slug,
                'country': city.country,
                'region': city.region,
                'latitude': city.latitude,
                'longitude': city.longitude,
                'isIndian': bool(city.is_indian),
            },
            'aqiTrend': [
                {'timestamp': isoformat(reading.recorded_at), 'aqi': reading.aqi}
                for reading in recent_readings
            ],
            'pollutantSnapshot': (
                {key: _round(getattr(latest_reading, key)) for key in POLLUTANT_KEYS}
                if latest_reading is not None else None
            ),
            'dominantPollutant': dominant,
            'healthImpact': health_impact,
            'hourlyPattern': [
                {'hour': hour, 'averageAqi': _round(average(bucket))}
                for hour, bucket in enumerate(hourly_buckets)
            ],
            'weekdayPattern': [
                {'weekday': weekday, 'averageAqi': _round(average(bucket))}
                for weekday, bucket in enumerate(weekday_buckets)
            ],
            'improvementTracker': improvement_tracker,
            'latestReading': (
                {'aqi': latest_reading.aqi, 'recordedAt': isoformat(latest_reading.recorded_at)}
                if latest_reading is not None else None
            ),
        }

    def overview(self, city_ids=None):
        """
        Rankings, distributions and trends across cities.

        city_ids=None takes the first overview_limit cities; a list restricts
        to exactly those ids. Always returns the full payload shape.
        """
        if city_ids is not None and len(city_ids) == 0:
            return create_empty_overview()

        cities = self.repository.find_cities_by_ids(city_ids, limit=self.overview_limit)
        if not cities:
            return create_empty_overview()

        city_by_id = {city.id: city for city in cities}
        summaries = sorted(
            self.repository.find_summaries_for_cities(list(city_by_id)),
            key=lambda summary: _date_key(summary.summary_date),
            reverse=True,
        )

        latest_by_city = {}
        for summary in summaries:
            latest_by_city.setdefault(summary.city_id, summary)

        ranked = []
        for city in cities:
            summary = latest_by_city.get(city.id)
            ranked.append({
                'cityId': city.id,
                'cityName': city.name,
                'slug': city.slug,
                'country': city.country,
                'region': city.region,
                'aqi': _round(summary.avg_aqi) if summary else 0,
                'hasData': summary is not None,
            })
        # Cities without a summary go last and never count as best/worst
        ranked.sort(key=lambda entry: (not entry['hasData'], -entry['aqi']))
        with_data = [entry for entry in ranked if entry['hasData']]

        pollutant_totals = {key: 0.0 for key in POLLUTANT_KEYS}
        for summary in summaries:
            for key, value in summary_pollutants(summary).items():
                pollutant_totals[key] += value
        average_pollutants = {
            key: _round(total / len(summaries)) if summaries else 0
            for key, total in pollutant_totals.items()
        }

        category_distribution = {}
        region_groups = {}
        for city in cities:
            summary = latest_by_city.get(city.id)
            category = classify_aqi(summary.avg_aqi if summary else 0)
            category_distribution[category] = category_distribution.get(category, 0) + 1

            values = region_groups.setdefault(city.region or city.country, [])
            if summary:
                values.append(summary.avg_aqi)

        regional_correlation = sorted(
            ({'region': region, 'averageAqi': _round(average(values))} for region, values in region_groups.items()),
            key=lambda entry: entry['averageAqi'],
            reverse=True,
        )

        recent_dates = []
        for summary in summaries:
            key = _date_key(summary.summary_date)
            if key not in recent_dates:
                recent_dates.append(key)
            if len(recent_dates) == AGGREGATE_TREND_DAYS:
                break
        three_day_change = [
            {
                'date': day,
                'avgAqi': _round(average(s.avg_aqi for s in summaries if _date_key(s.summary_date) == day)),
            }
            for day in reversed(recent_dates)
        ]

        most_improved = []
        seen = set()
        improving = sorted((s for s in summaries if (s.trend_score or 0) < 0), key=lambda s: s.trend_score)
        for summary in improving:
            if summary.city_id in seen:
                continue
            seen.add(summary.city_id)
            most_improved.append({
                'cityId': summary.city_id,
                'cityName': city_by_id[summary.city_id].name if summary.city_id in city_by_id else 'Unknown',
                'trendScore': _round(summary.trend_score),
            })
            if len(most_improved) == MOST_IMPROVED_LIMIT:
                break

        return {
            'cities': ranked,
            'averagePollutants': average_pollutants,
            'categoryDistribution': category_distribution,
            'regionalCorrelation': regional_correlation,
            'rankings': {
                'worst': with_data[0] if with_data else None,
                'best': with_data[-1] if with_data else None,
                'mostImproved': most_improved,
            },
            'threeDayAggregateChange': three_day_change,
        }

    @staticmethod
    def _sorted(readings):
        return sorted(readings, key=lambda reading: reading.recorded_at)
