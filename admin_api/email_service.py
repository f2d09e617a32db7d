# admin_api/email_service.py
import logging
import secrets
import string
from smtplib import SMTPException

from django.conf import settings
from django.core.cache import cache
from django.core.mail import send_mail

logger = logging.getLogger('localworker')

OTP_LENGTH = 6


def _cache_key(email):
    return f"admin_password_reset:{email.lower()}"


def generate_otp():
    """6-digit numeric code"""
    return ''.join(secrets.choice(string.digits) for _ in range(OTP_LENGTH))


def send_password_reset_email(email, otp):
    minutes = settings.ADMIN_OTP_TTL_SECONDS // 60
    message = f"""
Hello,

You have requested to reset your LocalWorker administrator password.

Your verification code is: {otp}

This code is valid for {minutes} minutes.

If you did not request this reset, please ignore this email.

Best regards,
LocalWorker Team
"""
    try:
        send_mail(
            subject='Password Reset - LocalWorker Admin',
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[email],
            fail_silently=False,
        )
    except (SMTPException, OSError) as e:
        logger.error(f"Error sending password reset email to {email}: {str(e)}")
        return False
    return True


def store_otp(email, otp):
    cache.set(_cache_key(email), {
        'otp': otp,
        'attempts': 0
    }, timeout=settings.ADMIN_OTP_TTL_SECONDS)


def verify_otp(email, otp):
    """
    Returns (valid, message). A code is burnt after
    ADMIN_OTP_MAX_ATTEMPTS wrong guesses.
    """
    key = _cache_key(email)
    data = cache.get(key)

    if not data:
        return False, "Code expired or invalid"

    if data['attempts'] >= settings.ADMIN_OTP_MAX_ATTEMPTS:
        cache.delete(key)
        return False, "Too many attempts. Request a new code"

    if not secrets.compare_digest(data['otp'], otp):
        data['attempts'] += 1
        cache.set(key, data, timeout=settings.ADMIN_OTP_TTL_SECONDS)
        return False, "Incorrect code"

    return True, "Code verified"


def clear_otp(email):
    cache.delete(_cache_key(email))
