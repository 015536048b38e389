from datetime import datetime

import pytest

from utils.readings import (
    enrich_reading,
    normalize_reading_payload,
    pick_writable_fields,
    validate_reading_payload,
)


def valid_payload(**overrides):
    payload = {
        "cityId": "3",
        "aqi": 180,
        "pm25": 90,
        "pm10": 120,
        "co": 1.5,
        "no2": 40,
        "so2": 10,
        "o3": 35,
    }
    payload.update(overrides)
    return normalize_reading_payload(payload)


def test_normalize_maps_request_keys():
    payload = normalize_reading_payload({"cityId": 1, "windSpeed": 3, "recordedAt": "x"})
    assert payload == {"city_id": 1, "wind_speed": 3, "recorded_at": "x"}


def test_valid_payload_is_coerced():
    payload = valid_payload(recordedAt="2024-05-01T10:30:00Z", temperature="21.5")
    assert validate_reading_payload(payload) == []
    assert payload["city_id"] == 3
    assert payload["recorded_at"] == datetime(2024, 5, 1, 10, 30)
    assert payload["temperature"] == 21.5


def test_offset_timestamp_converted_to_utc():
    payload = valid_payload(recordedAt="2024-05-01T16:00:00+05:30")
    assert validate_reading_payload(payload) == []
    assert payload["recorded_at"] == datetime(2024, 5, 1, 10, 30)


def test_invalid_payload_collects_errors():
    payload = valid_payload(cityId=None, aqi=900, pm25=-1, recordedAt="yesterday")
    errors = validate_reading_payload(payload)
    assert "City is required" in errors
    assert "AQI must be between 0 and 500" in errors
    assert "PM25 must be a positive number" in errors
    assert "recordedAt must be an ISO 8601 timestamp" in errors


def test_partial_validation_only_checks_present_fields():
    payload = normalize_reading_payload({"aqi": "75"})
    assert validate_reading_payload(payload, partial=True) == []
    assert payload == {"aqi": 75}


@pytest.mark.parametrize("aqi", [12.7, True, False, "12.7"])
def test_aqi_must_be_a_whole_number(aqi):
    payload = valid_payload(aqi=aqi)
    assert validate_reading_payload(payload) == ["AQI must be between 0 and 500"]


def test_integral_float_aqi_accepted():
    payload = valid_payload(aqi=80.0)
    assert validate_reading_payload(payload) == []
    assert payload["aqi"] == 80


def test_enrich_derives_category_and_dominant():
    enriched = enrich_reading({"aqi": 180, "pm25": 90, "pm10": 120, "co": 1})
    assert enriched["aqi_category"] == "unhealthy"
    assert enriched["dominant_pollutant"] == "pm10"


def test_pick_writable_fields_drops_unknown_keys():
    payload = valid_payload(id=99, user_id=7, isAdmin=True, created_at="2020-01-01")
    validate_reading_payload(payload)
    fields = pick_writable_fields(payload)
    assert "id" not in fields
    assert "user_id" not in fields
    assert "isAdmin" not in fields
    assert "created_at" not in fields
    assert fields["aqi"] == 180
