"""
Input validation and normalization helpers
"""
import re

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
NAME_RE = re.compile(r"^[^\W\d_]+(?:[ .'\-][^\W\d_]*)*$")
CONTROL_CHARS_RE = re.compile(r'[\x00-\x1f\x7f]')

COMMON_PASSWORDS = {
    'password', 'password1', 'password123', '123456', '123456789', 'qwerty',
    'abc123', 'letmein', 'welcome', 'admin', 'iloveyou', 'monkey', 'dragon',
    'football', 'sunshine',
}


def normalize_email(email):
    """Trimmed, lowercased email; '' for non-strings."""
    if not isinstance(email, str):
        return ''
    return email.strip().lower()


def sanitize_name(name):
    """Collapse whitespace and strip control characters."""
    if not isinstance(name, str):
        return ''
    return CONTROL_CHARS_RE.sub('', re.sub(r'\s+', ' ', name)).strip()


def validate_email(email):
    return bool(email) and len(email) <= 120 and EMAIL_RE.match(email) is not None


def validate_name(name):
    """Returns (is_valid, error_message)."""
    if not name:
        return False, 'Name is required'
    if len(name) < 2 or len(name) > 50:
        return False, 'Name must be between 2 and 50 characters'
    if not NAME_RE.match(name):
        return False, 'Name may only include letters, spaces, apostrophes, periods, and hyphens'
    return True, None


def _personal_tokens(email=None, name=None):
    tokens = set()
    if email:
        local_part = normalize_email(email).split('@')[0]
        if len(local_part) >= 3:
            tokens.add(local_part)
    if name:
        for token in re.split(r'[^\w]+', sanitize_name(name).lower()):
            if len(token) >= 3:
                tokens.add(token)
    return tokens


def validate_password(password, email=None, name=None):
    """
    Check password strength.
    Returns (is_valid, error_message).
    """
    if not isinstance(password, str) or not password:
        return False, 'Password is required'
    if len(password) < 8:
        return False, 'Password must be at least 8 characters long'
    if not re.search(r'[A-Z]', password):
        return False, 'Password must include at least one uppercase letter'
    if not re.search(r'[a-z]', password):
        return False, 'Password must include at least one lowercase letter'
    if not re.search(r'\d', password):
        return False, 'Password must include at least one number'
    if not re.search(r'[^A-Za-z0-9]', password):
        return False, 'Password must include at least one special character'

    lowered = password.lower()
    if lowered in COMMON_PASSWORDS:
        return False, 'Password is too common. Choose a more unique password.'

    for token in _personal_tokens(email, name):
        if token in lowered:
            return False, 'Password cannot contain parts of your name or email'

    return True, None
