import math

import pytest

from utils.health_advisor import build_health_advice, classify_aqi, dominant_pollutant


@pytest.mark.parametrize("aqi, expected", [
    (0, "good"),
    (50, "good"),
    (51, "moderate"),
    (100, "moderate"),
    (101, "unhealthy_sensitive"),
    (150, "unhealthy_sensitive"),
    (151, "unhealthy"),
    (200, "unhealthy"),
    (201, "very_unhealthy"),
    (300, "very_unhealthy"),
    (301, "hazardous"),
    (500, "hazardous"),
])
def test_classify_boundaries(aqi, expected):
    assert classify_aqi(aqi) == expected


def test_classify_tolerates_bad_input():
    assert classify_aqi(-10) == "good"
    assert classify_aqi(None) == "good"
    assert classify_aqi("abc") == "good"
    assert classify_aqi(math.nan) == "good"
    assert classify_aqi(10000) == "hazardous"


def test_dominant_pollutant_highest_value():
    concentrations = {"pm25": 10, "pm10": 50, "co": 5, "no2": 5, "so2": 5, "o3": 5}
    assert dominant_pollutant(concentrations) == "pm10"


def test_dominant_pollutant_tie_keeps_field_order():
    assert dominant_pollutant({"o3": 30, "no2": 30}) == "no2"


def test_dominant_pollutant_ignores_non_numeric():
    assert dominant_pollutant({"pm25": "high", "co": None, "so2": 3}) == "so2"


def test_dominant_pollutant_defaults_to_pm25():
    assert dominant_pollutant({}) == "pm25"
    assert dominant_pollutant(None) == "pm25"
    assert dominant_pollutant({"pm10": "n/a"}) == "pm25"


def test_health_advice_payload():
    advice = build_health_advice(180, "o3")
    assert advice["category"] == "unhealthy"
    assert advice["title"] == "Unhealthy"
    assert advice["badgeClass"] == "health-unhealthy"
    assert "ozone" in advice["pollutantAdvice"].lower()


def test_health_advice_unknown_pollutant():
    advice = build_health_advice(20, "xyz")
    assert advice["category"] == "good"
    assert advice["pollutantAdvice"].startswith("Follow general")
