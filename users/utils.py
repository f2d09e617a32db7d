# users/utils.py
import re
import phonenumbers
from phonenumbers import NumberParseException
from django.conf import settings


def _preclean(raw: str) -> str:
    """
    Strip spaces/punctuation and turn a 00 prefix into +
    """
    if not raw:
        return raw
    s = raw.strip()
    s = re.sub(r'[^\d+]', '', s)
    if s.startswith("00"):
        s = "+" + s[2:]
    return s


def normalize_phone(phone_str, default_region='IN'):
    """
    Validate a mobile number and return its 10-digit national form.
    "+91 98765-43210" -> "9876543210"
    """
    if not phone_str:
        raise ValueError("invalid_phone_format")

    try:
        phone_clean = _preclean(phone_str)
        region = getattr(settings, "DEFAULT_REGION", default_region)

        phone_obj = phonenumbers.parse(
            phone_clean,
            None if phone_clean.startswith("+") else region
        )

        if not (phonenumbers.is_possible_number(phone_obj) and
                phonenumbers.is_valid_number(phone_obj)):
            raise ValueError("invalid_phone_format")

        national = str(phone_obj.national_number)
        if len(national) != 10:
            raise ValueError("invalid_phone_format")
        return national

    except NumberParseException:
        raise ValueError("invalid_phone_format")


def get_client_ip(request):
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')
