"""
Short-lived token proving an email was just verified through the standalone
email OTP flow (/api/auth/verify-email-otp).
"""
import base64
import hmac
import time

from utils.auth_utils import _sign

EMAIL_VERIFICATION_TOKEN_LIFETIME_SECONDS = 15 * 60  # 15 minutes


def create_email_verification_token(email, now=None):
    """Signed email|expiry token, issued after a successful OTP verify."""
    expiry = int(now if now is not None else time.time()) + EMAIL_VERIFICATION_TOKEN_LIFETIME_SECONDS
    payload = f"{email.strip().lower()}|{expiry}"
    raw = f"{payload}|{_sign(payload)}"
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("utf-8").rstrip("=")


def read_email_verification_token(token, now=None):
    """Return the verified email if the token is authentic and unexpired, else None."""
    if not token or not isinstance(token, str):
        return None
    try:
        raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4)).decode("utf-8")
        payload, sig = raw.rsplit("|", 1)
        if not hmac.compare_digest(sig, _sign(payload)):
            return None
        email, expiry_str = payload.rsplit("|", 1)
        if int(expiry_str) < int(now if now is not None else time.time()):
            return None
    except (ValueError, UnicodeDecodeError):
        return None
    return email
