"""
OTP generation and hashing for login verification.
OTPs are hashed before storage; never store plain OTP.
"""
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta

# OTP length and expiry
OTP_LENGTH = 6
OTP_EXPIRY_MINUTES = 5
MAX_OTP_ATTEMPTS = 5


def generate_otp(randbelow=secrets.randbelow) -> str:
    """Generate a secure 6-digit numeric OTP, uniform over 000000-999999."""
    return str(randbelow(10 ** OTP_LENGTH)).zfill(OTP_LENGTH)


def hash_otp(otp: str) -> str:
    """Hash OTP for storage."""
    return hashlib.sha256(otp.encode('utf-8')).hexdigest()


def verify_otp(plain_otp: str, otp_hash: str) -> bool:
    """Verify a plain OTP against stored hash."""
    return hmac.compare_digest(hash_otp(plain_otp), otp_hash)


def otp_expires_at(now: datetime) -> datetime:
    """Return expiry datetime for an OTP issued at `now` (5 minutes later)."""
    return now + timedelta(minutes=OTP_EXPIRY_MINUTES)


def is_well_formed_otp(otp) -> bool:
    """Six ASCII digits after trimming."""
    if not isinstance(otp, str):
        return False
    otp = otp.strip()
    return len(otp) == OTP_LENGTH and otp.isdigit() and otp.isascii()
