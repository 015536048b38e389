"""
Authentication API: register, password + OTP login, current user and the
standalone email OTP endpoints.
"""
from flask import Blueprint, current_app, g, jsonify, request

from errors import AuthenticationError, ConflictError, ForbiddenError, ValidationError
from models import db
from models.user import User
from utils.auth_utils import generate_access_token, hash_password, token_required, verify_password
from utils.email_suggest import suggest_email_correction
from utils.otp_helper import is_well_formed_otp
from utils.validators import normalize_email, sanitize_name, validate_email, validate_name, validate_password
from utils.verification_token import create_email_verification_token, read_email_verification_token

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

INVALID_CREDENTIALS_MSG = "Invalid email or password."
OTP_SENT_MSG = "OTP sent to your email. Please verify to complete login."
OTP_FALLBACK_MSG = "Email delivery is unavailable. Logged in without OTP verification."
OTP_INVALID_FORMAT_MSG = "OTP must be a 6-digit code."


def get_otp_manager():
    return current_app.extensions['otp_manager']


def get_email_otp_manager():
    return current_app.extensions['email_otp_manager']


def _json_body():
    return request.get_json(silent=True) or {}


def _require_email(value):
    email = normalize_email(value)
    if not validate_email(email):
        raise ValidationError("Please provide a valid email address.")
    return email


def _check_otp_format(otp):
    if not is_well_formed_otp(otp):
        return jsonify({"success": False, "message": OTP_INVALID_FORMAT_MSG, "code": "INVALID_FORMAT"}), 400
    return None


def _login_payload(user, message):
    return {
        "success": True,
        "message": message,
        "token": generate_access_token(user),
        "user": user.to_dict(),
    }


@auth_bp.route('/register', methods=['POST'])
def register():
    data = _json_body()
    name = sanitize_name(data.get('name'))
    email = _require_email(data.get('email'))
    password = data.get('password') or ''

    ok, error = validate_name(name)
    if not ok:
        raise ValidationError(error)
    ok, error = validate_password(password, email=email, name=name)
    if not ok:
        raise ValidationError(error)

    verification_token = (data.get('verificationToken') or '').strip()
    if verification_token and read_email_verification_token(verification_token) != email:
        raise ValidationError("Email verification is invalid or has expired.")

    if User.query.filter_by(email=email).first():
        raise ConflictError("Email address already registered.")

    user = User(name=name, email=email, password_hash=hash_password(password))
    db.session.add(user)
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Registration failed for {email}: {str(e)}", exc_info=True)
        raise

    current_app.logger.info("Registered user %s", email)
    return jsonify(_login_payload(user, "Registration successful.")), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """Password check, then a login OTP. In fallback mode the user is logged in directly."""
    data = _json_body()
    email = _require_email(data.get('email'))
    password = data.get('password') or ''
    if not password:
        raise ValidationError("Password is required.")

    user = User.query.filter_by(email=email).first()
    if user is None:
        suggestion = suggest_email_correction(email)
        payload = {"success": False, "message": INVALID_CREDENTIALS_MSG, "code": AuthenticationError.error_code}
        if suggestion:
            payload["suggestion"] = suggestion
            payload["message"] = f"{INVALID_CREDENTIALS_MSG} Did you mean {suggestion}?"
        return jsonify(payload), 401
    if not verify_password(user.password_hash, password):
        raise AuthenticationError(INVALID_CREDENTIALS_MSG)
    if not user.is_active:
        raise ForbiddenError("Your account is inactive. Please contact support.")

    result = get_otp_manager().issue(email)
    if result.fallback:
        payload = _login_payload(user, OTP_FALLBACK_MSG)
        payload["otpBypassed"] = True
        return jsonify(payload)

    payload = {
        "success": True,
        "otpRequired": True,
        "message": OTP_SENT_MSG,
        "expiresAt": result.to_dict()["expiresAt"],
    }
    if result.code is not None:
        payload["testOtp"] = result.code
    return jsonify(payload)


@auth_bp.route('/verify-otp', methods=['POST'])
def verify_login_otp():
    data = _json_body()
    email = _require_email(data.get('email'))
    otp = (data.get('otp') or '').strip()
    bad_format = _check_otp_format(otp)
    if bad_format:
        return bad_format

    result = get_otp_manager().verify(email, otp)
    if not result.success:
        return jsonify({"success": False, "message": result.message, "code": result.reason}), 400

    user = User.query.filter_by(email=email).first()
    if user is None or not user.is_active:
        raise AuthenticationError("Account not available. Please log in again.")
    return jsonify(_login_payload(user, "Login successful."))


@auth_bp.route('/me', methods=['GET'])
@token_required
def me():
    return jsonify({"success": True, "user": g.api_user.to_dict()})


@auth_bp.route('/send-otp', methods=['POST'])
def send_email_otp():
    """Standalone email OTP, e.g. to verify an address before registering."""
    email = _require_email(_json_body().get('email'))
    result = get_email_otp_manager().issue(email)

    payload = {"success": True, "message": "Verification code sent. Check your email."}
    payload.update(result.to_dict())
    if result.fallback:
        payload["message"] = "Email delivery is unavailable. Use the code shown."
    return jsonify(payload)


@auth_bp.route('/verify-email-otp', methods=['POST'])
def verify_email_otp():
    data = _json_body()
    email = _require_email(data.get('email'))
    otp = (data.get('otp') or '').strip()
    bad_format = _check_otp_format(otp)
    if bad_format:
        return bad_format

    result = get_email_otp_manager().verify(email, otp)
    if not result.success:
        return jsonify({"success": False, "message": result.message, "code": result.reason}), 400
    return jsonify({
        "success": True,
        "message": "Email verified successfully.",
        "verificationToken": create_email_verification_token(email),
    })
