"""
Pollution readings API
"""
from flask import Blueprint, current_app, g, jsonify, request

from errors import CityNotFoundError, ForbiddenError, NotFoundError, ValidationError
from models import db
from models.city import City
from models.pollution_reading import PollutionReading
from utils.auth_utils import admin_required, guest_or_user_required, token_required
from utils.data_access import find_city_by_identifier
from utils.datetime_utils import utcnow
from utils.readings import (
    enrich_reading,
    normalize_reading_payload,
    pick_writable_fields,
    validate_reading_payload,
)

pollution_bp = Blueprint('pollution', __name__, url_prefix='/api/pollution')

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
GUEST_PAGE_SIZE = 5


def _int_arg(name, default):
    try:
        return max(1, int(request.args.get(name, default)))
    except (TypeError, ValueError):
        return default


def _get_reading_or_404(reading_id):
    reading = db.session.get(PollutionReading, reading_id)
    if reading is None:
        raise NotFoundError("Pollution reading not found")
    return reading


def _ensure_city_exists(city_id):
    if db.session.get(City, city_id) is None:
        raise CityNotFoundError(city_id)


def _commit(action):
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error {action} pollution reading: {str(e)}", exc_info=True)
        raise


@pollution_bp.route('/cities', methods=['GET'])
def list_cities():
    cities = City.query.order_by(City.name.asc()).all()
    return jsonify({"success": True, "data": [city.to_dict() for city in cities]})


@pollution_bp.route('/cities/count', methods=['GET'])
def count_cities():
    return jsonify({"success": True, "count": City.query.count()})


@pollution_bp.route('/latest', methods=['GET'])
@guest_or_user_required
def latest_reading():
    """Latest reading overall, or for ?city=<id|slug|name>."""
    query = PollutionReading.query
    identifier = request.args.get('city')
    if identifier:
        city = find_city_by_identifier(identifier)
        if city is None:
            raise CityNotFoundError(identifier)
        query = query.filter_by(city_id=city.id)

    reading = query.order_by(PollutionReading.recorded_at.desc()).first()
    if reading is None:
        raise NotFoundError("No pollution readings found")
    return jsonify({"success": True, "data": reading.to_dict(guest=g.api_user.is_guest)})


@pollution_bp.route('', methods=['GET'])
@guest_or_user_required
def list_readings():
    """Paginated readings, newest first. Guests get at most 5 per page and reduced fields."""
    guest = g.api_user.is_guest
    page = _int_arg('page', 1)
    per_page = min(_int_arg('limit', DEFAULT_PAGE_SIZE), GUEST_PAGE_SIZE if guest else MAX_PAGE_SIZE)

    query = PollutionReading.query
    identifier = request.args.get('city')
    if identifier:
        city = find_city_by_identifier(identifier)
        if city is None:
            raise CityNotFoundError(identifier)
        query = query.filter_by(city_id=city.id)

    pagination = query.order_by(
        PollutionReading.recorded_at.desc(), PollutionReading.id.desc()
    ).paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        "success": True,
        "data": [reading.to_dict(guest=guest) for reading in pagination.items],
        "pagination": {
            "page": page,
            "limit": per_page,
            "total": pagination.total,
            "pages": pagination.pages,
        },
    })


@pollution_bp.route('/<int:reading_id>', methods=['GET'])
@token_required
def get_reading(reading_id):
    return jsonify({"success": True, "data": _get_reading_or_404(reading_id).to_dict()})


@pollution_bp.route('', methods=['POST'])
@token_required
def create_reading():
    payload = normalize_reading_payload(request.get_json(silent=True))
    errors = validate_reading_payload(payload)
    if errors:
        raise ValidationError("Invalid pollution reading", details=errors)
    _ensure_city_exists(payload['city_id'])

    fields = pick_writable_fields(enrich_reading(payload))
    fields.setdefault('recorded_at', utcnow())
    reading = PollutionReading(user_id=g.api_user.id, **fields)
    db.session.add(reading)
    _commit('creating')

    current_app.logger.info("Reading %s created for city %s by user %s", reading.id, reading.city_id, g.api_user.id)
    return jsonify({"success": True, "data": reading.to_dict()}), 201


@pollution_bp.route('/<int:reading_id>', methods=['PUT'])
@token_required
def update_reading(reading_id):
    """Owner or admin only. Category and dominant pollutant are recomputed."""
    reading = _get_reading_or_404(reading_id)
    user = g.api_user
    if not user.is_admin and reading.user_id != user.id:
        raise ForbiddenError("You can only update your own readings.")

    payload = normalize_reading_payload(request.get_json(silent=True))
    errors = validate_reading_payload(payload, partial=True)
    if errors:
        raise ValidationError("Invalid pollution reading", details=errors)
    if 'city_id' in payload:
        _ensure_city_exists(payload['city_id'])

    updates = pick_writable_fields(payload)
    merged = {field: getattr(reading, field) for field in ('aqi',) + tuple(reading.pollutants())}
    merged.update(updates)
    derived = enrich_reading(merged)
    updates['aqi_category'] = derived['aqi_category']
    updates['dominant_pollutant'] = derived['dominant_pollutant']

    for field, value in updates.items():
        setattr(reading, field, value)
    _commit('updating')
    return jsonify({"success": True, "data": reading.to_dict()})


@pollution_bp.route('/<int:reading_id>', methods=['DELETE'])
@admin_required
def delete_reading(reading_id):
    reading = _get_reading_or_404(reading_id)
    db.session.delete(reading)
    _commit('deleting')
    return jsonify({"success": True, "message": "Pollution reading deleted"})
