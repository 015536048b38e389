"""
Authentication utility functions: password hashing, signed API tokens and
the decorators guarding JSON endpoints.
"""
import hmac
import base64
import time
from functools import wraps

from flask import current_app, g, jsonify, request, session
from flask_login import current_user
from werkzeug.security import generate_password_hash, check_password_hash

GUEST_HEADER = 'User-Type'
GUEST_SESSION_KEY = 'guest'


class GuestUser:
    """Request principal for guest access. Never persisted."""
    is_guest = True
    is_admin = False
    id = None
    name = 'Guest User'
    email = None

    def to_dict(self):
        return {'id': None, 'name': self.name, 'email': None, 'isGuest': True}


def hash_password(password):
    """Generate password hash"""
    return generate_password_hash(password)

def verify_password(password_hash, password):
    """Verify password against hash"""
    return check_password_hash(password_hash, password)


def _sign(payload):
    key = current_app.config.get("SECRET_KEY", "").encode("utf-8")
    return hmac.new(key, payload.encode("utf-8"), "sha256").hexdigest()


def generate_access_token(user):
    """
    Generate a bearer token for the JSON API.
    Payload is id|email|is_admin|expiry, HMAC-SHA256 signed with SECRET_KEY.
    """
    lifetime = current_app.config.get("ACCESS_TOKEN_LIFETIME_SECONDS", 24 * 60 * 60)
    expiry = int(time.time()) + lifetime
    payload = f"{user.id}|{user.email.strip().lower()}|{int(bool(user.is_admin))}|{expiry}"
    raw = f"{payload}|{_sign(payload)}"
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("utf-8").rstrip("=")

def verify_access_token(token):
    """
    Verify a bearer token and return the active User, else None.
    Checks signature, expiry and that the email still matches.
    """
    from models import db
    from models.user import User

    if not token or not isinstance(token, str):
        return None

    try:
        raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4)).decode("utf-8")
        parts = raw.rsplit("|", 1)
        if len(parts) != 2:
            return None

        payload, sig = parts
        if not hmac.compare_digest(sig, _sign(payload)):
            return None

        head, _is_admin, expiry_str = payload.rsplit("|", 2)
        user_id_str, email = head.split("|", 1)
        if int(expiry_str) < int(time.time()):
            return None
    except (ValueError, UnicodeDecodeError):
        return None

    user = db.session.get(User, int(user_id_str))
    if not user or not user.is_active or user.email.strip().lower() != email:
        return None
    return user


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip()
    return None


def resolve_request_user(allow_guest=False):
    """
    Identify the caller: bearer token, then dashboard session, then guest
    (User-Type: guest header or guest session flag) when allowed.
    """
    token = _bearer_token()
    if token:
        return verify_access_token(token)
    if current_user.is_authenticated:
        return current_user._get_current_object()
    if allow_guest and (request.headers.get(GUEST_HEADER) == 'guest' or session.get(GUEST_SESSION_KEY)):
        return GuestUser()
    return None


def _deny(message, status):
    return jsonify({"success": False, "message": message}), status


def token_required(f):
    """Decorator: registered user via bearer token or dashboard session."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = resolve_request_user()
        if user is None:
            return _deny('Access denied. No valid token provided.', 401)
        g.api_user = user
        return f(*args, **kwargs)
    return decorated_function

def guest_or_user_required(f):
    """Decorator: registered user or guest access."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = resolve_request_user(allow_guest=True)
        if user is None:
            return _deny('Access denied. Invalid user type.', 401)
        g.api_user = user
        return f(*args, **kwargs)
    return decorated_function

def admin_required(f):
    """Decorator: registered admin user."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = resolve_request_user()
        if user is None:
            return _deny('Access denied. No valid token provided.', 401)
        if not user.is_admin:
            return _deny('Access denied. Admin privileges required.', 403)
        g.api_user = user
        return f(*args, **kwargs)
    return decorated_function

def restrict_guest_feature(f):
    """Decorator: reject guests. Use below one of the decorators above."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = g.get('api_user')
        if user is not None and user.is_guest:
            return jsonify({
                "success": False,
                "message": "This feature is not available for guest users. Please register or login to access this feature.",
                "code": "GUEST_RESTRICTION",
            }), 403
        return f(*args, **kwargs)
    return decorated_function
