"""
Pollution reading payload handling: validation, derived fields and the
allow-list of columns a request may write.
"""
from datetime import datetime, timezone

from utils.health_advisor import POLLUTANT_KEYS, classify_aqi, dominant_pollutant

WRITABLE_FIELDS = (
    'city_id',
    'recorded_at',
    'aqi',
    'aqi_category',
    'dominant_pollutant',
    'pm25',
    'pm10',
    'co',
    'no2',
    'so2',
    'o3',
    'temperature',
    'humidity',
    'wind_speed',
    'data_source',
)

# JSON body keys -> column names
REQUEST_FIELD_NAMES = {
    'cityId': 'city_id',
    'recordedAt': 'recorded_at',
    'windSpeed': 'wind_speed',
    'dataSource': 'data_source',
}

OPTIONAL_FLOAT_FIELDS = ('temperature', 'humidity', 'wind_speed')


def normalize_reading_payload(data):
    """Map camelCase request keys to column names; unknown keys are kept for pick_writable_fields to drop."""
    normalized = {}
    for key, value in (data or {}).items():
        normalized[REQUEST_FIELD_NAMES.get(key, key)] = value
    return normalized


def _parse_datetime(value):
    """ISO 8601 string or datetime -> naive UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def validate_reading_payload(payload, partial=False):
    """
    Validate and coerce a normalized payload in place.
    Returns a list of error messages (empty when valid).
    """
    errors = []

    if 'city_id' in payload or not partial:
        try:
            payload['city_id'] = int(payload.get('city_id'))
        except (TypeError, ValueError):
            errors.append('City is required')

    if 'aqi' in payload or not partial:
        try:
            raw = payload.get('aqi')
            if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
                raise ValueError
            aqi = int(raw)
            if aqi < 0 or aqi > 500:
                raise ValueError
            payload['aqi'] = aqi
        except (TypeError, ValueError):
            errors.append('AQI must be between 0 and 500')

    for key in POLLUTANT_KEYS:
        if key not in payload and partial:
            continue
        try:
            value = float(payload.get(key))
            if value < 0:
                raise ValueError
            payload[key] = value
        except (TypeError, ValueError):
            errors.append(f'{key.upper()} must be a positive number')

    for key in OPTIONAL_FLOAT_FIELDS:
        if payload.get(key) is None:
            continue
        try:
            payload[key] = float(payload[key])
        except (TypeError, ValueError):
            errors.append(f'{key} must be a number')

    if payload.get('recorded_at') is not None:
        try:
            payload['recorded_at'] = _parse_datetime(payload['recorded_at'])
        except ValueError:
            errors.append('recordedAt must be an ISO 8601 timestamp')

    return errors


def enrich_reading(payload):
    """Return a copy with aqi_category and dominant_pollutant derived."""
    enriched = dict(payload)
    try:
        aqi = float(enriched.get('aqi'))
    except (TypeError, ValueError):
        aqi = 0
    enriched['aqi_category'] = classify_aqi(aqi)
    enriched['dominant_pollutant'] = dominant_pollutant({key: enriched.get(key) for key in POLLUTANT_KEYS})
    return enriched


def pick_writable_fields(payload):
    """Project a payload onto WRITABLE_FIELDS, dropping anything else."""
    return {field: payload[field] for field in WRITABLE_FIELDS if payload.get(field) is not None}
