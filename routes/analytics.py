"""
Analytics API: city search, per-city analytics, multi-city overview and
the admin summary refresh.
"""
from flask import Blueprint, current_app, jsonify, request

from errors import CityNotFoundError, ValidationError
from models.city import City
from models.pollution_reading import PollutionReading
from utils.analytics import AnalyticsAggregator
from utils.auth_utils import admin_required, guest_or_user_required, restrict_guest_feature
from utils.data_access import SqlAnalyticsRepository, find_city_by_identifier
from utils.datetime_utils import isoformat
from utils.summary_builder import refresh_all_summaries

analytics_bp = Blueprint('analytics', __name__, url_prefix='/api/analytics')

DEFAULT_CITY_LIMIT = 100
MAX_CITY_LIMIT = 500


def build_aggregator():
    return AnalyticsAggregator(
        SqlAnalyticsRepository(),
        overview_limit=current_app.config.get('ANALYTICS_OVERVIEW_LIMIT', 20),
    )


def parse_city_ids(raw):
    """'1,2,3' -> [1, 2, 3]. None when the parameter is absent, [] when it is blank."""
    if raw is None:
        return None
    ids = []
    for part in raw.split(','):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit():
            raise ValidationError("cityIds must be a comma-separated list of numeric ids")
        ids.append(int(part))
    return ids


@analytics_bp.route('/cities', methods=['GET'])
@guest_or_user_required
def search_cities():
    query = City.query
    search = (request.args.get('search') or '').strip()
    if search:
        query = query.filter(City.name.ilike(f"%{search}%"))

    is_indian = request.args.get('isIndian')
    if is_indian is not None:
        query = query.filter(City.is_indian.is_(is_indian.lower() in ('1', 'true', 'yes')))

    try:
        limit = int(request.args.get('limit', DEFAULT_CITY_LIMIT))
    except ValueError:
        limit = DEFAULT_CITY_LIMIT
    limit = min(max(limit, 1), MAX_CITY_LIMIT)

    cities = query.order_by(City.name.asc()).limit(limit).all()
    return jsonify({"success": True, "data": [city.to_dict() for city in cities], "count": len(cities)})


@analytics_bp.route('/cities/<slug_or_id>', methods=['GET'])
@guest_or_user_required
def city_detail(slug_or_id):
    city = find_city_by_identifier(slug_or_id)
    if city is None:
        raise CityNotFoundError(slug_or_id)

    latest = PollutionReading.query.filter_by(city_id=city.id).order_by(
        PollutionReading.recorded_at.desc()
    ).first()
    data = city.to_dict()
    data.update({
        'population': city.population,
        'timezone': city.timezone,
        'latestReading': (
            {'aqi': latest.aqi, 'aqiCategory': latest.aqi_category, 'recordedAt': isoformat(latest.recorded_at)}
            if latest else None
        ),
    })
    return jsonify({"success": True, "data": data})


@analytics_bp.route('/cities/<slug_or_id>/analytics', methods=['GET'])
@guest_or_user_required
def city_analytics(slug_or_id):
    return jsonify({"success": True, "data": build_aggregator().city_analytics(slug_or_id)})


@analytics_bp.route('/overview', methods=['GET'])
@guest_or_user_required
def overview():
    city_ids = parse_city_ids(request.args.get('cityIds'))
    return jsonify({"success": True, "data": build_aggregator().overview(city_ids)})


@analytics_bp.route('/refresh', methods=['POST'])
@admin_required
@restrict_guest_feature
def refresh_summaries():
    """Rebuild daily summaries for every city from stored readings."""
    cities = City.query.all()
    total = refresh_all_summaries(cities)
    return jsonify({
        "success": True,
        "message": "Analytics refreshed",
        "cities": len(cities),
        "summaries": total,
    })
