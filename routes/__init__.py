"""
Routes package for the pollution monitoring application
"""
from routes.auth import auth_bp
from routes.pollution import pollution_bp
from routes.analytics import analytics_bp
from routes.dashboard import dashboard_bp

__all__ = [
    'auth_bp',
    'pollution_bp',
    'analytics_bp',
    'dashboard_bp',
]
