"""
AQI classification, dominant pollutant detection and health advice.
Pure functions; shared by readings, summaries and analytics.
"""
import math
from numbers import Number

POLLUTANT_KEYS = ('pm25', 'pm10', 'co', 'no2', 'so2', 'o3')
DEFAULT_POLLUTANT = 'pm25'

# Ordered by inclusive upper bound
AQI_CATEGORIES = [
    {'max': 50, 'id': 'good', 'title': 'Good',
     'message': 'Air quality is satisfactory. Enjoy your day outdoors!'},
    {'max': 100, 'id': 'moderate', 'title': 'Moderate',
     'message': 'Air quality is acceptable. Sensitive groups should limit vigorous outdoor activity.'},
    {'max': 150, 'id': 'unhealthy_sensitive', 'title': 'Unhealthy for Sensitive Groups',
     'message': 'Members of sensitive groups may experience health effects. Consider reducing prolonged exertion.'},
    {'max': 200, 'id': 'unhealthy', 'title': 'Unhealthy',
     'message': 'Everyone may begin to feel health effects; sensitive groups should avoid strenuous outdoor activity.'},
    {'max': 300, 'id': 'very_unhealthy', 'title': 'Very Unhealthy',
     'message': 'Health alert: everyone may experience more serious health effects. Stay indoors if possible.'},
    {'max': math.inf, 'id': 'hazardous', 'title': 'Hazardous',
     'message': 'Emergency conditions. Remain indoors with filtered air and avoid outdoor exposure.'},
]

POLLUTANT_IMPACT = {
    'pm25': 'Fine particles penetrate deep into lungs and bloodstream. Limit outdoor air exposure.',
    'pm10': 'Coarse particles irritate lungs and eyes. Masks can help reduce irritation.',
    'co': 'Carbon Monoxide lowers oxygen delivery. Avoid high traffic areas and ensure good ventilation.',
    'no2': 'Nitrogen dioxide irritates airways. Consider indoor air purifiers.',
    'so2': 'Sulfur dioxide can trigger asthma symptoms. Keep rescue medication nearby.',
    'o3': 'Ground-level ozone inflames airways. Exercise indoors when possible.',
}
GENERIC_POLLUTANT_ADVICE = 'Follow general air quality guidelines and monitor sensitive symptoms.'


def _is_number(value):
    return isinstance(value, Number) and not isinstance(value, bool) and not math.isnan(value)


def category_for(aqi):
    """Full category entry for an AQI value. Non-numeric input counts as 0."""
    value = aqi if _is_number(aqi) else 0
    for category in AQI_CATEGORIES:
        if value <= category['max']:
            return category
    return AQI_CATEGORIES[-1]


def classify_aqi(aqi):
    """Category id for an AQI value, e.g. classify_aqi(51) == 'moderate'."""
    return category_for(aqi)['id']


def dominant_pollutant(concentrations):
    """
    Pollutant key with the highest numeric concentration.
    Missing or non-numeric entries are ignored; ties keep field order.
    Defaults to pm25 when nothing is numeric.
    """
    best_key, best_value = None, None
    for key in POLLUTANT_KEYS:
        value = (concentrations or {}).get(key)
        if not _is_number(value):
            continue
        if best_value is None or value > best_value:
            best_key, best_value = key, value
    return best_key or DEFAULT_POLLUTANT


def build_health_advice(aqi, pollutant):
    category = category_for(aqi)
    return {
        'category': category['id'],
        'title': category['title'],
        'description': category['message'],
        'pollutantAdvice': POLLUTANT_IMPACT.get(pollutant, GENERIC_POLLUTANT_ADVICE),
        'badgeClass': 'health-' + category['id'].replace('_', '-'),
    }
