"""
Server-rendered dashboard: login with OTP, guest access and the analytics pages
"""
from functools import wraps

from flask import Blueprint, current_app, flash, redirect, render_template, request, session, url_for
from flask_login import current_user, login_user, logout_user

from errors import CityNotFoundError, DeliveryFailed, RateLimited
from models.user import User
from routes.analytics import build_aggregator
from utils.auth_utils import GUEST_SESSION_KEY, verify_password
from utils.otp_helper import OTP_EXPIRY_MINUTES, is_well_formed_otp
from utils.validators import normalize_email, validate_email

dashboard_bp = Blueprint('dashboard', __name__)

PENDING_OTP_EMAIL_KEY = 'pending_otp_email'


def dashboard_access_required(f):
    """Logged-in user or guest session"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_user.is_authenticated or session.get(GUEST_SESSION_KEY):
            return f(*args, **kwargs)
        flash('Please log in or continue as guest to view the dashboard.', 'info')
        return redirect(url_for('dashboard.login', next=request.path))
    return decorated_function


def _otp_manager():
    return current_app.extensions['otp_manager']


def _complete_login(user):
    session.pop(PENDING_OTP_EMAIL_KEY, None)
    session.pop(GUEST_SESSION_KEY, None)
    login_user(user, remember=True)
    flash(f'Welcome back, {user.name}!', 'success')
    return redirect(url_for('dashboard.dashboard'))


@dashboard_bp.route('/')
def index():
    return redirect(url_for('dashboard.dashboard'))


@dashboard_bp.route('/login', methods=['GET', 'POST'])
def login():
    """Email + password, then an emailed OTP"""
    if current_user.is_authenticated:
        return redirect(url_for('dashboard.dashboard'))

    if request.method == 'POST':
        email = normalize_email(request.form.get('email'))
        password = request.form.get('password', '')

        if not validate_email(email) or not password:
            flash('Please enter both email and password.', 'error')
            return render_template('login.html', email=email)

        user = User.query.filter_by(email=email).first()
        if user is None or not verify_password(user.password_hash, password):
            flash('Invalid email or password.', 'error')
            return render_template('login.html', email=email)
        if not user.is_active:
            flash('Your account is inactive. Please contact support.', 'error')
            return render_template('login.html', email=email)

        try:
            result = _otp_manager().issue(email)
        except (DeliveryFailed, RateLimited) as e:
            flash(e.message, 'error')
            return render_template('login.html', email=email)

        if result.fallback:
            flash('Email delivery is unavailable, signed in without OTP.', 'warning')
            return _complete_login(user)

        session[PENDING_OTP_EMAIL_KEY] = email
        flash(f'We sent a 6-digit code to {email}. It expires in {OTP_EXPIRY_MINUTES} minutes.', 'info')
        return redirect(url_for('dashboard.verify_otp'))

    return render_template('login.html')


@dashboard_bp.route('/verify-otp', methods=['GET', 'POST'])
def verify_otp():
    email = session.get(PENDING_OTP_EMAIL_KEY)
    if not email:
        flash('Please log in first.', 'info')
        return redirect(url_for('dashboard.login'))

    if request.method == 'POST':
        otp = request.form.get('otp', '').strip()
        if not is_well_formed_otp(otp):
            flash('OTP must be a 6-digit code.', 'error')
            return render_template('verify_otp.html', email=email)

        result = _otp_manager().verify(email, otp)
        if not result.success:
            flash(result.message, 'error')
            return render_template('verify_otp.html', email=email)

        user = User.query.filter_by(email=email).first()
        if user is None or not user.is_active:
            session.pop(PENDING_OTP_EMAIL_KEY, None)
            flash('Account not available.', 'error')
            return redirect(url_for('dashboard.login'))
        return _complete_login(user)

    return render_template('verify_otp.html', email=email)


@dashboard_bp.route('/guest')
def guest():
    if current_user.is_authenticated:
        logout_user()
    session[GUEST_SESSION_KEY] = True
    flash('You are browsing as a guest. Some features are limited.', 'info')
    return redirect(url_for('dashboard.dashboard'))


@dashboard_bp.route('/logout')
def logout():
    logout_user()
    session.pop(GUEST_SESSION_KEY, None)
    session.pop(PENDING_OTP_EMAIL_KEY, None)
    flash('You have been logged out successfully.', 'info')
    return redirect(url_for('dashboard.login'))


@dashboard_bp.route('/dashboard')
@dashboard_access_required
def dashboard():
    overview = build_aggregator().overview()
    return render_template('dashboard.html', overview=overview, is_guest=not current_user.is_authenticated)


@dashboard_bp.route('/dashboard/cities/<slug>')
@dashboard_access_required
def city(slug):
    try:
        analytics = build_aggregator().city_analytics(slug)
    except CityNotFoundError:
        flash('City not found.', 'error')
        return redirect(url_for('dashboard.dashboard'))
    return render_template('city.html', analytics=analytics, is_guest=not current_user.is_authenticated)
