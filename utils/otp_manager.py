"""
OTP lifecycle: issue, deliver, verify.

A record moves ISSUED -> CONSUMED on a correct code, or ends up EXPIRED or
LOCKED (too many wrong attempts); both are detected lazily on the next
verify. A new issue() for the same email always supersedes the old record.

Each manager serves one purpose (login or email verification). Records and
send logs are namespaced by purpose, so a code issued for one purpose can
never be verified, superseded or throttled by the other.

Two stores are provided with the same interface:
- OtpStore keeps records in a dict owned by the store instance.
- SqlOtpStore keeps them in the otp_tokens and otp_send_log tables (hashed codes).

Concurrent issue/verify calls for the same email are not serialized.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from errors import DeliveryFailed, RateLimited
from utils.datetime_utils import isoformat, utcnow
from utils.otp_helper import (
    MAX_OTP_ATTEMPTS,
    OTP_EXPIRY_MINUTES,
    generate_otp,
    hash_otp,
    otp_expires_at,
    verify_otp,
)

logger = logging.getLogger(__name__)

# Purposes
LOGIN = 'login'
EMAIL_VERIFICATION = 'email_verification'

# Send throttling
OTP_RESEND_COOLDOWN_SECONDS = 30
OTP_MAX_SENDS_PER_HOUR = 5
SEND_LOG_WINDOW = timedelta(hours=1)

# Verification outcomes
NOT_FOUND = 'NOT_FOUND'
EXPIRED = 'EXPIRED'
ATTEMPTS_EXCEEDED = 'ATTEMPTS_EXCEEDED'
MISMATCH = 'MISMATCH'

OUTCOME_MESSAGES = {
    NOT_FOUND: 'No active OTP found. Please request a new code.',
    EXPIRED: 'This OTP has expired. Please request a new code.',
    ATTEMPTS_EXCEEDED: 'Too many incorrect attempts. Please request a new OTP.',
    MISMATCH: 'Invalid OTP. Please try again.',
}
OTP_RATE_LIMIT_MSG = "Too many requests. Please try again later."
OTP_RESEND_COOLDOWN_MSG = "Please wait before requesting another code."


@dataclass
class OtpRecord:
    email: str
    code_hash: str
    issued_at: datetime
    expires_at: datetime
    attempt_count: int = 0
    consumed_at: Optional[datetime] = None


@dataclass
class IssueResult:
    expires_at: datetime
    code: Optional[str] = None
    fallback: bool = False

    def to_dict(self):
        payload = {'expiresAt': isoformat(self.expires_at), 'fallback': self.fallback}
        if self.code is not None:
            payload['code'] = self.code
        return payload


@dataclass
class VerifyResult:
    success: bool
    reason: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def failure(cls, reason):
        return cls(success=False, reason=reason, message=OUTCOME_MESSAGES[reason])


class OtpStore:
    """In-process OTP records and send log keyed by email, for one purpose."""

    def __init__(self):
        self._records: Dict[str, OtpRecord] = {}
        self._sends: Dict[str, List[datetime]] = {}

    def get(self, email):
        return self._records.get(email)

    def put(self, record):
        self._records[record.email] = record

    def save(self, record):
        self._records[record.email] = record

    def discard(self, email):
        self._records.pop(email, None)

    def purge_expired(self, now):
        expired = [email for email, record in self._records.items() if record.expires_at < now]
        for email in expired:
            del self._records[email]

        cutoff = now - SEND_LOG_WINDOW
        for email in list(self._sends):
            recent = [sent_at for sent_at in self._sends[email] if sent_at > cutoff]
            if recent:
                self._sends[email] = recent
            else:
                del self._sends[email]
        return len(expired)

    def record_send(self, email, sent_at):
        self._sends.setdefault(email, []).append(sent_at)

    def sends_since(self, email, since):
        """Send times for email after `since`, oldest first."""
        return sorted(sent_at for sent_at in self._sends.get(email, []) if sent_at > since)

    def __len__(self):
        return len(self._records)


class SqlOtpStore:
    """OTP records in the otp_tokens table for one purpose. Needs an app context."""

    def __init__(self, purpose=LOGIN):
        self.purpose = purpose

    def _session(self):
        from models import db
        return db.session

    def _model(self):
        from models.otp_token import OtpToken
        return OtpToken

    def _send_log(self):
        from models.otp_token import OtpSendLog
        return OtpSendLog

    def _row(self, email):
        return self._session().get(self._model(), (email, self.purpose))

    def get(self, email):
        row = self._row(email)
        if row is None:
            return None
        return OtpRecord(
            email=row.email,
            code_hash=row.code_hash,
            issued_at=row.issued_at,
            expires_at=row.expires_at,
            attempt_count=row.attempt_count or 0,
            consumed_at=row.consumed_at,
        )

    def put(self, record):
        session = self._session()
        row = self._row(record.email)
        if row is None:
            row = self._model()(email=record.email, purpose=self.purpose)
            session.add(row)
        row.code_hash = record.code_hash
        row.issued_at = record.issued_at
        row.expires_at = record.expires_at
        row.attempt_count = record.attempt_count
        row.consumed_at = record.consumed_at
        self._commit()

    save = put

    def discard(self, email):
        self._model().query.filter_by(email=email, purpose=self.purpose).delete()
        self._commit()

    def purge_expired(self, now):
        model = self._model()
        count = model.query.filter(model.purpose == self.purpose, model.expires_at < now).delete()
        log = self._send_log()
        log.query.filter(log.purpose == self.purpose, log.sent_at <= now - SEND_LOG_WINDOW).delete()
        self._commit()
        return count

    def record_send(self, email, sent_at):
        self._session().add(self._send_log()(email=email, purpose=self.purpose, sent_at=sent_at))
        self._commit()

    def sends_since(self, email, since):
        log = self._send_log()
        rows = log.query.filter(
            log.email == email,
            log.purpose == self.purpose,
            log.sent_at > since,
        ).order_by(log.sent_at.asc()).all()
        return [row.sent_at for row in rows]

    def _commit(self):
        session = self._session()
        try:
            session.commit()
        except Exception:
            session.rollback()
            raise


class OtpManager:
    """
    Issues and verifies OTPs for one purpose.

    mailer must provide send(to_address, subject, text_body, html_body) and
    raise on failure. clock returns naive UTC datetimes; randbelow is the
    secure integer source. issue() raises RateLimited inside the resend
    cooldown or past the hourly send cap.
    """

    def __init__(
        self,
        store,
        mailer,
        *,
        purpose: str = LOGIN,
        fallback_enabled: bool = False,
        expose_codes: bool = False,
        clock: Callable[[], datetime] = utcnow,
        randbelow: Callable[[int], int] = secrets.randbelow,
        max_attempts: int = MAX_OTP_ATTEMPTS,
        resend_cooldown_seconds: int = OTP_RESEND_COOLDOWN_SECONDS,
        max_sends_per_hour: int = OTP_MAX_SENDS_PER_HOUR,
    ):
        self.store = store
        self.mailer = mailer
        self.purpose = purpose
        self.fallback_enabled = fallback_enabled
        self.expose_codes = expose_codes
        self.clock = clock
        self.randbelow = randbelow
        self.max_attempts = max_attempts
        self.resend_cooldown_seconds = resend_cooldown_seconds
        self.max_sends_per_hour = max_sends_per_hour

    def issue(self, email):
        """Supersede any prior code, deliver a fresh one and store it."""
        now = self.clock()
        self._check_send_limits(email, now)
        self.store.discard(email)
        self.store.purge_expired(now)

        code = generate_otp(self.randbelow)
        fallback = False
        try:
            self._deliver(email, code)
        except Exception as e:
            if not self.fallback_enabled:
                logger.error("%s OTP delivery to %s failed: %s", self.purpose, email, e)
                raise DeliveryFailed("Unable to send OTP email. Please try again later.") from e
            logger.warning("%s OTP delivery to %s failed, continuing in fallback mode: %s", self.purpose, email, e)
            fallback = True

        record = OtpRecord(
            email=email,
            code_hash=hash_otp(code),
            issued_at=now,
            expires_at=otp_expires_at(now),
        )
        self.store.put(record)
        self.store.record_send(email, now)

        exposed = code if (fallback or self.expose_codes) else None
        return IssueResult(expires_at=record.expires_at, code=exposed, fallback=fallback)

    def verify(self, email, submitted_code):
        """Check a submitted code. Returns exactly one outcome."""
        submitted = (submitted_code or '').strip()
        record = self.store.get(email)
        if record is None or record.consumed_at is not None:
            return VerifyResult.failure(NOT_FOUND)

        now = self.clock()
        if now > record.expires_at:
            self.store.discard(email)
            return VerifyResult.failure(EXPIRED)

        if record.attempt_count >= self.max_attempts:
            return VerifyResult.failure(ATTEMPTS_EXCEEDED)

        if not verify_otp(submitted, record.code_hash):
            record.attempt_count += 1
            self.store.save(record)
            return VerifyResult.failure(MISMATCH)

        record.consumed_at = now
        self.store.save(record)
        self.store.discard(email)
        return VerifyResult(success=True)

    def _check_send_limits(self, email, now):
        sends = self.store.sends_since(email, now - SEND_LOG_WINDOW)
        if self.max_sends_per_hour and len(sends) >= self.max_sends_per_hour:
            raise RateLimited(OTP_RATE_LIMIT_MSG)
        if self.resend_cooldown_seconds and sends:
            elapsed = (now - sends[-1]).total_seconds()
            if elapsed < self.resend_cooldown_seconds:
                raise RateLimited(
                    OTP_RESEND_COOLDOWN_MSG,
                    details={'retryAfterSeconds': max(1, int(self.resend_cooldown_seconds - elapsed))},
                )

    def _deliver(self, email, code):
        from utils.mail import build_email_verification_message, build_login_otp_message
        build = build_email_verification_message if self.purpose == EMAIL_VERIFICATION else build_login_otp_message
        subject, text_body, html_body = build(code, OTP_EXPIRY_MINUTES)
        self.mailer.send(email, subject, text_body, html_body)
