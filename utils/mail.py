"""
Email utility functions
"""
from flask_mail import Mail, Message
from flask import current_app

mail = Mail()

def send_email(subject, recipients, body, html=None):
    """
    Send an email

    Args:
        subject: Email subject
        recipients: List of recipient email addresses
        body: Plain text body
        html: HTML body (optional)
    """
    msg = Message(
        subject=subject,
        recipients=recipients,
        body=body,
        html=html
    )
    mail.send(msg)


def ensure_mail_configured():
    """Raise RuntimeError when SMTP is not configured for this app."""
    if not current_app.config.get('MAIL_SERVER'):
        raise RuntimeError("MAIL_SERVER not configured. Please set MAIL_SERVER environment variable.")

    if not current_app.config.get('MAIL_USERNAME'):
        raise RuntimeError("MAIL_USERNAME not configured. Please set MAIL_USERNAME environment variable.")


class FlaskMailSender:
    """Mail sender for OtpManager backed by the Flask-Mail extension."""

    def send(self, to_address, subject, text_body, html_body):
        ensure_mail_configured()
        try:
            send_email(subject, [to_address], text_body, html=html_body)
        except Exception as e:
            current_app.logger.error(f"SMTP error sending email to {to_address}: {str(e)}", exc_info=True)
            raise


def build_login_otp_message(otp: str, expiry_minutes: int):
    """Return (subject, text body, html body) for a login OTP email."""
    subject = "Your Airlytics Login OTP"
    body = (
        f"Your OTP for Airlytics login is: {otp}\n"
        f"This OTP is valid for {expiry_minutes} minutes. "
        "If you did not request this code, please ignore this email."
    )
    return subject, body, _otp_email_html(otp, expiry_minutes, "Airlytics login")


def build_email_verification_message(otp: str, expiry_minutes: int):
    """Return (subject, text body, html body) for an email verification code."""
    subject = "Verify your Airlytics email"
    body = (
        f"Your Airlytics email verification code is: {otp}\n"
        f"This code is valid for {expiry_minutes} minutes. "
        "If you did not request this code, please ignore this email."
    )
    return subject, body, _otp_email_html(otp, expiry_minutes, "verifying your Airlytics email")


def _otp_email_html(otp: str, expiry_minutes: int, purpose: str) -> str:
    """Clean HTML template for OTP email."""
    return f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="utf-8"><title>Airlytics Security Verification</title></head>
    <body style="font-family: system-ui, sans-serif; max-width: 480px; margin: 0 auto; padding: 24px; color: #0f172a;">
        <h2>Airlytics Security Verification</h2>
        <p>Your code for {purpose} is:</p>
        <p style="font-size: 32px; font-weight: bold; letter-spacing: 8px; color: #2563eb;">{otp}</p>
        <p style="color: #666;">This OTP is valid for {expiry_minutes} minutes. Do not share it with anyone.</p>
        <hr style="border: none; border-top: 1px solid #eee; margin: 24px 0;">
        <p style="font-size: 12px; color: #64748b;">If you did not request this code, you can safely ignore this email.</p>
    </body>
    </html>
    """
