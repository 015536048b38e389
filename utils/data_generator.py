"""
Deterministic demo data: cities derived from baseline profiles, hourly
readings and the matching daily summaries.
"""
import math
import random
import re
from datetime import timedelta

from utils.datetime_utils import utcnow
from utils.health_advisor import POLLUTANT_KEYS, classify_aqi, dominant_pollutant
from utils.summary_builder import build_daily_summaries

DEFAULT_SEED = 123456789
NAME_VARIANTS = ['Central', 'North', 'South', 'East', 'West']

BASE_CITIES = [
    {'name': 'Delhi', 'latitude': 28.6139, 'longitude': 77.209, 'country': 'India', 'iso_code': 'IN', 'region': 'Delhi', 'population': 32226000, 'timezone': 'Asia/Kolkata', 'is_indian': True,
     'baseline': {'aqi': 285, 'pm25': 125, 'pm10': 180, 'no2': 68, 'so2': 22, 'co': 2.8, 'o3': 85}},
    {'name': 'Mumbai', 'latitude': 19.076, 'longitude': 72.8777, 'country': 'India', 'iso_code': 'IN', 'region': 'Maharashtra', 'population': 24983000, 'timezone': 'Asia/Kolkata', 'is_indian': True,
     'baseline': {'aqi': 155, 'pm25': 65, 'pm10': 95, 'no2': 45, 'so2': 15, 'co': 1.8, 'o3': 55}},
    {'name': 'Bengaluru', 'latitude': 12.9716, 'longitude': 77.5946, 'country': 'India', 'iso_code': 'IN', 'region': 'Karnataka', 'population': 13707000, 'timezone': 'Asia/Kolkata', 'is_indian': True,
     'baseline': {'aqi': 95, 'pm25': 40, 'pm10': 65, 'no2': 38, 'so2': 12, 'co': 1.2, 'o3': 48}},
    {'name': 'Kolkata', 'latitude': 22.5726, 'longitude': 88.3639, 'country': 'India', 'iso_code': 'IN', 'region': 'West Bengal', 'population': 14974000, 'timezone': 'Asia/Kolkata', 'is_indian': True,
     'baseline': {'aqi': 175, 'pm25': 85, 'pm10': 120, 'no2': 52, 'so2': 18, 'co': 2.2, 'o3': 62}},
    {'name': 'Chennai', 'latitude': 13.0827, 'longitude': 80.2707, 'country': 'India', 'iso_code': 'IN', 'region': 'Tamil Nadu', 'population': 11325000, 'timezone': 'Asia/Kolkata', 'is_indian': True,
     'baseline': {'aqi': 115, 'pm25': 50, 'pm10': 78, 'no2': 42, 'so2': 14, 'co': 1.5, 'o3': 52}},
    {'name': 'Lucknow', 'latitude': 26.8467, 'longitude': 80.9462, 'country': 'India', 'iso_code': 'IN', 'region': 'Uttar Pradesh', 'population': 3382000, 'timezone': 'Asia/Kolkata', 'is_indian': True,
     'baseline': {'aqi': 195, 'pm25': 95, 'pm10': 135, 'no2': 55, 'so2': 19, 'co': 2.4, 'o3': 65}},
    {'name': 'Kanpur', 'latitude': 26.4499, 'longitude': 80.3319, 'country': 'India', 'iso_code': 'IN', 'region': 'Uttar Pradesh', 'population': 3033000, 'timezone': 'Asia/Kolkata', 'is_indian': True,
     'baseline': {'aqi': 225, 'pm25': 110, 'pm10': 158, 'no2': 58, 'so2': 20, 'co': 2.6, 'o3': 70}},
    {'name': 'Thiruvananthapuram', 'latitude': 8.5241, 'longitude': 76.9366, 'country': 'India', 'iso_code': 'IN', 'region': 'Kerala', 'population': 956000, 'timezone': 'Asia/Kolkata', 'is_indian': True,
     'baseline': {'aqi': 88, 'pm25': 36, 'pm10': 60, 'no2': 35, 'so2': 12, 'co': 1.1, 'o3': 46}},
    {'name': 'New York City', 'latitude': 40.7128, 'longitude': -74.006, 'country': 'United States', 'iso_code': 'US', 'region': 'New York', 'population': 19223191, 'timezone': 'America/New_York', 'is_indian': False,
     'baseline': {'aqi': 82, 'pm25': 25, 'pm10': 40, 'no2': 35, 'so2': 7, 'co': 0.6, 'o3': 30}},
    {'name': 'London', 'latitude': 51.5074, 'longitude': -0.1278, 'country': 'United Kingdom', 'iso_code': 'GB', 'region': 'England', 'population': 9421200, 'timezone': 'Europe/London', 'is_indian': False,
     'baseline': {'aqi': 70, 'pm25': 20, 'pm10': 35, 'no2': 28, 'so2': 6, 'co': 0.5, 'o3': 26}},
    {'name': 'Tokyo', 'latitude': 35.6762, 'longitude': 139.6503, 'country': 'Japan', 'iso_code': 'JP', 'region': 'Kanto', 'population': 37468000, 'timezone': 'Asia/Tokyo', 'is_indian': False,
     'baseline': {'aqi': 65, 'pm25': 18, 'pm10': 32, 'no2': 25, 'so2': 5, 'co': 0.4, 'o3': 24}},
    {'name': 'Dubai', 'latitude': 25.2048, 'longitude': 55.2708, 'country': 'United Arab Emirates', 'iso_code': 'AE', 'region': 'Dubai', 'population': 3331400, 'timezone': 'Asia/Dubai', 'is_indian': False,
     'baseline': {'aqi': 120, 'pm25': 48, 'pm10': 78, 'no2': 38, 'so2': 12, 'co': 1.2, 'o3': 45}},
    {'name': 'Los Angeles', 'latitude': 34.0522, 'longitude': -118.2437, 'country': 'United States', 'iso_code': 'US', 'region': 'California', 'population': 12750807, 'timezone': 'America/Los_Angeles', 'is_indian': False,
     'baseline': {'aqi': 105, 'pm25': 38, 'pm10': 60, 'no2': 32, 'so2': 8, 'co': 0.9, 'o3': 40}},
]


def slugify(value):
    return re.sub(r'[^a-z0-9]+', '-', str(value).strip().lower()).strip('-')


def _clamp(value, low, high):
    return min(max(value, low), high)


def generate_city_records(target_count, rng):
    """Base cities first, then North/South/... variants with jittered position and baseline."""
    records = []
    slugs = set()
    i = 0
    while len(records) < target_count:
        base = BASE_CITIES[i % len(BASE_CITIES)]
        variation = i // len(BASE_CITIES)
        i += 1
        name = base['name'] if variation == 0 else f"{base['name']} {NAME_VARIANTS[(variation - 1) % len(NAME_VARIANTS)]}"
        if variation > len(NAME_VARIANTS):
            name = f"{name} {variation}"
        slug = slugify(name)
        if slug in slugs:
            continue
        slugs.add(slug)

        noise = 0.85 + rng.random() * 0.3
        record = {key: value for key, value in base.items() if key != 'baseline'}
        record.update({
            'name': name,
            'slug': slug,
            'latitude': round(base['latitude'] + (rng.random() - 0.5) * 0.6, 4),
            'longitude': round(base['longitude'] + (rng.random() - 0.5) * 0.6, 4),
            'population': round(base['population'] * (0.9 + rng.random() * 0.2)),
            'baseline': {
                key: round(value * noise * (0.95 + rng.random() * 0.1), 2)
                for key, value in base['baseline'].items()
            },
        })
        records.append(record)
    return records


def build_pollution_samples(baseline, hours, rng, now=None):
    """Hourly readings from `hours` ago up to the current hour, oldest first."""
    now = (now or utcnow()).replace(minute=0, second=0, microsecond=0)
    readings = []
    for i in range(hours, -1, -1):
        seasonal = math.sin((i / 24) * math.pi) * 10
        aqi = round(_clamp(baseline['aqi'] + seasonal + (rng.random() - 0.5) * 35, 25, 420))
        pollutants = {
            key: round(_clamp(baseline[key] * (0.7 + rng.random() * 0.6), 1, baseline[key] * 1.8), 2)
            for key in POLLUTANT_KEYS
        }
        reading = {
            'recorded_at': now - timedelta(hours=i),
            'aqi': aqi,
            'aqi_category': classify_aqi(aqi),
            'dominant_pollutant': dominant_pollutant(pollutants),
            'temperature': round(18 + rng.random() * 15, 2),
            'humidity': round(40 + rng.random() * 50, 2),
            'wind_speed': round(2 + rng.random() * 12, 2),
            'data_source': 'synthetic-model',
        }
        reading.update(pollutants)
        readings.append(reading)
    return readings


def generate_seed_data(target_cities=160, hours=120, days=7, seed=DEFAULT_SEED, now=None):
    """
    Returns {'cities', 'readings', 'summaries'} as lists of dicts.
    City ids are assigned 1..n; readings and summaries reference them.
    """
    rng = random.Random(seed)
    cities, readings, summaries = [], [], []
    for index, record in enumerate(generate_city_records(target_cities, rng), start=1):
        baseline = record.pop('baseline')
        record['id'] = index
        cities.append(record)

        city_readings = build_pollution_samples(baseline, hours, rng, now=now)
        for reading in city_readings:
            reading['city_id'] = index
        readings.extend(city_readings)
        summaries.extend(build_daily_summaries(index, city_readings, days))

    return {'cities': cities, 'readings': readings, 'summaries': summaries}
