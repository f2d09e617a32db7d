# core/utils.py
from math import radians, cos, sin, asin, sqrt

from django.conf import settings
from rest_framework import status
from rest_framework.response import Response

EARTH_RADIUS_KM = 6371


def haversine_distance(lat1, lng1, lat2, lng2):
    """Great-circle distance between two points in km."""
    lat1, lng1, lat2, lng2 = map(radians, [float(lat1), float(lng1), float(lat2), float(lng2)])
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    a = sin(dlat/2)**2 + cos(lat1) * cos(lat2) * sin(dlng/2)**2
    c = 2 * asin(sqrt(a))
    return c * EARTH_RADIUS_KM


def _positive_int(value, default):
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def get_page_params(query_params):
    """Read page/limit from the query string, limit capped at MAX_PAGE_SIZE"""
    page = _positive_int(query_params.get('page'), 1)
    limit = _positive_int(query_params.get('limit'), settings.DEFAULT_PAGE_SIZE)
    return page, min(limit, settings.MAX_PAGE_SIZE)


def pagination_meta(total, page, limit):
    total_pages = (total + limit - 1) // limit if limit else 0
    return {
        'total': total,
        'page': page,
        'limit': limit,
        'total_pages': total_pages,
        'has_next': page < total_pages,
        'has_prev': page > 1,
    }


def paginate(items, query_params):
    """
    Slice a queryset or list for the requested page.
    Returns (page_items, meta).
    """
    page, limit = get_page_params(query_params)
    total = len(items) if isinstance(items, list) else items.count()
    start = (page - 1) * limit
    return items[start:start + limit], pagination_meta(total, page, limit)


def parse_coordinates(latitude, longitude):
    """
    Parse a lat/lng pair from request input.
    Raises ValueError when missing, not numeric or out of range.
    """
    if latitude in (None, '') or longitude in (None, ''):
        raise ValueError("latitude and longitude are required")
    try:
        latitude = float(latitude)
        longitude = float(longitude)
    except (TypeError, ValueError):
        raise ValueError("latitude and longitude must be numbers")
    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        raise ValueError("coordinates out of range")
    return latitude, longitude


def error_response(code, message, http_status=status.HTTP_400_BAD_REQUEST):
    return Response({
        'success': False,
        'code': code,
        'message': message,
    }, status=http_status)


def service_error_response(result, status_map=None):
    """Render a service {"error": (code, message)} result"""
    code, message = result["error"]
    http_status = (status_map or {}).get(code, status.HTTP_400_BAD_REQUEST)
    return error_response(code, message, http_status)
