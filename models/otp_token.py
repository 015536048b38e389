"""
OTP storage (PostgreSQL-compatible).
Used by SqlOtpStore when OTP_STORE=database.
"""
from models import db
from datetime import datetime


class OtpToken(db.Model):
    """
    Stores hashed OTP per (email, purpose).
    Login codes and email verification codes never share a row.
    """
    __tablename__ = 'otp_tokens'

    email = db.Column(db.String(120), primary_key=True)
    purpose = db.Column(db.String(20), primary_key=True, default='login')
    code_hash = db.Column(db.String(255), nullable=False)
    issued_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    consumed_at = db.Column(db.DateTime, nullable=True)
    attempt_count = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return f'<OtpToken {self.purpose}:{self.email}>'


class OtpSendLog(db.Model):
    """One row per OTP email sent; used for resend cooldown and hourly cap."""
    __tablename__ = 'otp_send_log'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), nullable=False, index=True)
    purpose = db.Column(db.String(20), nullable=False, default='login')
    sent_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f'<OtpSendLog {self.purpose}:{self.email} at {self.sent_at}>'
