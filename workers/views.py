# workers/views.py
import logging
import math

from django.conf import settings
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied, NotFound
from rest_framework.response import Response

from bookings.models import Booking
from core.utils import error_response, paginate, parse_coordinates
from notifications.utils import notify_worker_location
from reviews.serializers import ReviewSerializer
from users.validators import validate_document_file, clean_file_name
from . import matching
from .models import Worker, CATEGORIES
from .serializers import (
    WorkerRegisterSerializer, WorkerProfileUpdateSerializer,
    WorkerListSerializer, WorkerDetailSerializer, PublicWorkerDetailSerializer,
    AvailabilitySerializer, DocumentUploadSerializer, WorkerLocationSerializer,
    LocationToggleSerializer, RecommendationRequestSerializer, URGENCY_LIMITS,
)

logger = logging.getLogger('localworker')

NEARBY_SORTS = ['distance', 'rating', 'price-low', 'price-high', 'smart']
SEARCH_SORTS = NEARBY_SORTS + ['match_score']


def _get_own_worker(request):
    """The caller's worker profile; 403 for non-workers, 404 before registration"""
    if not request.user.is_worker:
        raise PermissionDenied("This service is only available to workers")
    worker = Worker.objects.filter(user=request.user).first()
    if worker is None:
        raise NotFound("Worker profile not found. Please register as a worker first.")
    return worker


def _float_param(query_params, name, default=None):
    value = query_params.get(name)
    if value in (None, ''):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number")
    if not math.isfinite(number):
        raise ValueError(f"{name} must be a finite number")
    return number


def _list_param(query_params, name):
    values = []
    for raw in query_params.getlist(name):
        values.extend(item.strip() for item in raw.split(',') if item.strip())
    return values


def _bookable_workers():
    return Worker.objects.filter(
        approval_status='approved',
        is_active=True,
        user__is_active=True,
        latitude__isnull=False,
        longitude__isnull=False,
    ).select_related('user')


def _within_radius(queryset, latitude, longitude, radius, categories=None):
    """
    Attach calculated_distance and keep workers inside the radius.
    Category matching runs here since JSON containment is not portable.
    """
    results = []
    for worker in queryset:
        if categories and not set(categories) & set(worker.categories):
            continue
        distance = worker.distance_to(latitude, longitude)
        if distance is not None and distance <= radius:
            worker.calculated_distance = distance
            results.append(worker)
    return results


def _sort_workers(workers, sort_by):
    if sort_by == 'rating':
        workers.sort(key=lambda w: (-w.rating, w.calculated_distance))
    elif sort_by == 'price-low':
        workers.sort(key=lambda w: (w.price_per_hour, w.calculated_distance))
    elif sort_by == 'price-high':
        workers.sort(key=lambda w: (-w.price_per_hour, w.calculated_distance))
    elif sort_by == 'smart':
        for worker in workers:
            worker.score = matching.smart_score(
                worker.calculated_distance, worker.rating, worker.price_per_hour
            )
        workers.sort(key=lambda w: -w.score)
    elif sort_by == 'match_score':
        for worker in workers:
            worker.score = matching.match_score(
                worker.calculated_distance, worker.rating, worker.experience, worker.price_per_hour
            )
        workers.sort(key=lambda w: -w.score)
    else:
        workers.sort(key=lambda w: w.calculated_distance)
    return workers


def _read_geo_filters(query_params, sorts):
    """Shared parsing for nearby/search. Raises ValueError on bad input."""
    latitude, longitude = parse_coordinates(
        query_params.get('latitude'), query_params.get('longitude')
    )
    radius = _float_param(query_params, 'radius', settings.NEARBY_DEFAULT_RADIUS_KM)
    if radius <= 0:
        raise ValueError("radius must be greater than zero")
    sort_by = query_params.get('sort_by') or 'distance'
    if sort_by not in sorts:
        raise ValueError(f"sort_by must be one of: {', '.join(sorts)}")
    return {
        'latitude': latitude,
        'longitude': longitude,
        'radius': radius,
        'sort_by': sort_by,
        'min_rating': _float_param(query_params, 'min_rating'),
        'max_price': _float_param(query_params, 'max_price'),
    }


def _apply_db_filters(queryset, filters):
    if filters['min_rating'] is not None:
        queryset = queryset.filter(rating__gte=filters['min_rating'])
    if filters['max_price'] is not None:
        queryset = queryset.filter(price_per_hour__lte=filters['max_price'])
    return queryset


def _listing_response(request, workers, filters):
    page_items, meta = paginate(workers, request.query_params)
    return Response({
        'success': True,
        'meta': meta,
        'search': {
            'latitude': filters['latitude'],
            'longitude': filters['longitude'],
            'radius': filters['radius'],
            'sort_by': filters['sort_by'],
        },
        'data': WorkerListSerializer(page_items, many=True, context={'request': request}).data
    })


# ==================== Registration & profile ====================

@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def register_worker(request):
    """
    Create the worker profile for a worker-role account
    POST /api/workers/register/
    """
    if not request.user.is_worker:
        raise PermissionDenied("Only worker accounts can register a worker profile")

    if Worker.objects.filter(user=request.user).exists():
        return error_response("already_registered", "Worker profile already exists")

    serializer = WorkerRegisterSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    worker = serializer.save(user=request.user)
    if worker.has_location:
        worker.update_location(worker.latitude, worker.longitude)
    logger.info(f"Worker profile {worker.id} registered by {request.user.email}, awaiting approval")

    return Response({
        'success': True,
        'message': 'Worker profile created. It will be visible once approved by an admin.',
        'data': WorkerDetailSerializer(worker, context={'request': request}).data
    }, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([permissions.IsAuthenticated])
def worker_profile(request):
    worker = _get_own_worker(request)

    if request.method == 'PUT':
        serializer = WorkerProfileUpdateSerializer(worker, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response({
                "code": "invalid_input",
                "detail": serializer.errors
            }, status=status.HTTP_400_BAD_REQUEST)
        worker = serializer.save()

    return Response({
        'success': True,
        'data': WorkerDetailSerializer(worker, context={'request': request}).data
    })


@api_view(['PUT'])
@permission_classes([permissions.IsAuthenticated])
def update_availability(request):
    worker = _get_own_worker(request)

    serializer = AvailabilitySerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    worker.availability = serializer.validated_data['availability']
    worker.save(update_fields=['availability', 'updated_at'])

    return Response({
        'success': True,
        'message': 'Availability updated successfully',
        'data': {'availability': worker.availability}
    })


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def upload_document(request):
    """
    POST /api/workers/profile/document/  (multipart: document_type, document)
    """
    worker = _get_own_worker(request)

    serializer = DocumentUploadSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    document_type = serializer.validated_data['document_type']
    uploaded = serializer.validated_data['document']

    try:
        validate_document_file(uploaded)
    except DjangoValidationError as e:
        return error_response("invalid_document", ' '.join(e.messages))

    with transaction.atomic():
        old_file = getattr(worker, document_type)
        if old_file:
            old_file.delete(save=False)
        getattr(worker, document_type).save(clean_file_name(uploaded.name), uploaded, save=False)
        worker.save(update_fields=[document_type, 'updated_at'])

    logger.info(f"Worker {worker.id} uploaded {document_type}")
    return Response({
        'success': True,
        'message': 'Document uploaded successfully',
        'data': WorkerDetailSerializer(worker, context={'request': request}).data['documents']
    })


# ==================== Location ====================

@api_view(['PUT'])
@permission_classes([permissions.IsAuthenticated])
def update_location(request):
    """
    Worker pushes the current position; customers of active bookings are notified
    PUT /api/workers/location/
    """
    worker = _get_own_worker(request)

    if not worker.location_sharing_enabled:
        return error_response(
            "location_sharing_disabled", "Enable location sharing before updating your location"
        )

    serializer = WorkerLocationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    worker.update_location(
        round(data['latitude'], 6), round(data['longitude'], 6), data.get('accuracy')
    )
    worker.refresh_from_db(fields=['latitude', 'longitude'])

    active_bookings = worker.bookings.filter(
        status__in=Booking.TRACKABLE_STATUSES
    ).select_related('user')
    for booking in active_bookings:
        notify_worker_location(booking, worker)

    return Response({
        'success': True,
        'message': 'Location updated successfully',
        'data': {
            'latitude': worker.latitude,
            'longitude': worker.longitude,
            'accuracy': worker.location_accuracy,
            'location_updated_at': worker.location_updated_at,
            'location_status': worker.location_status,
        }
    })


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def toggle_location_sharing(request):
    worker = _get_own_worker(request)

    serializer = LocationToggleSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    enabled = worker.toggle_location_sharing(serializer.validated_data['enabled'])
    return Response({
        'success': True,
        'message': f"Location sharing {'enabled' if enabled else 'disabled'}",
        'data': {
            'location_sharing_enabled': enabled,
            'location_status': worker.location_status,
        }
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def location_status(request):
    worker = _get_own_worker(request)
    return Response({
        'success': True,
        'data': {
            'location_sharing_enabled': worker.location_sharing_enabled,
            'location_status': worker.location_status,
            'latitude': worker.latitude,
            'longitude': worker.longitude,
            'accuracy': worker.location_accuracy,
            'location_updated_at': worker.location_updated_at,
            'is_location_fresh': worker.is_location_fresh(),
        }
    })


# ==================== Discovery ====================

@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def nearby_workers(request):
    """
    GET /api/workers/nearby/?latitude=&longitude=&radius=&category=&min_rating=&max_price=&sort_by=
    """
    try:
        filters = _read_geo_filters(request.query_params, NEARBY_SORTS)
    except ValueError as e:
        return error_response("invalid_input", str(e))

    queryset = _apply_db_filters(_bookable_workers().filter(availability='available'), filters)
    workers = _within_radius(
        queryset, filters['latitude'], filters['longitude'], filters['radius'],
        categories=_list_param(request.query_params, 'category'),
    )
    return _listing_response(request, _sort_workers(workers, filters['sort_by']), filters)


def _matches_keyword(worker, keyword):
    haystack = [
        worker.user.name, worker.city, worker.address, worker.bio,
        *worker.skills, *worker.categories,
    ]
    return any(keyword in (value or '').lower() for value in haystack)


def _has_any_skill(worker, skills):
    worker_skills = [s.lower() for s in worker.skills]
    return any(
        any(skill in ws for ws in worker_skills)
        for skill in skills
    )


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def search_workers(request):
    """
    Nearby filters plus min_experience, skills, keyword, availability
    and sort_by=match_score
    """
    try:
        filters = _read_geo_filters(request.query_params, SEARCH_SORTS)
        min_experience = _float_param(request.query_params, 'min_experience')
    except ValueError as e:
        return error_response("invalid_input", str(e))

    queryset = _apply_db_filters(_bookable_workers(), filters)
    if min_experience is not None:
        queryset = queryset.filter(experience__gte=min_experience)

    availability = request.query_params.get('availability', 'all')
    if availability != 'all':
        queryset = queryset.filter(availability=availability)

    workers = _within_radius(
        queryset, filters['latitude'], filters['longitude'], filters['radius'],
        categories=_list_param(request.query_params, 'category'),
    )

    skills = [s.lower() for s in _list_param(request.query_params, 'skills')]
    if skills:
        workers = [w for w in workers if _has_any_skill(w, skills)]

    keyword = (request.query_params.get('keyword') or '').strip().lower()
    if keyword:
        workers = [w for w in workers if _matches_keyword(w, keyword)]

    return _listing_response(request, _sort_workers(workers, filters['sort_by']), filters)


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def recommend_workers(request):
    """
    Ranked recommendations for a job request
    POST /api/workers/recommend/
    """
    serializer = RecommendationRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    category = data.get('category')

    candidates = _within_radius(
        _bookable_workers().filter(availability='available').exclude(user=request.user),
        data['latitude'], data['longitude'], data['radius'],
        categories=[category] if category else None,
    )
    ranked = matching.recommend(
        candidates,
        data['latitude'],
        data['longitude'],
        skills=data.get('skills'),
        category=category,
        max_budget=data.get('max_budget'),
        limit=data.get('limit') or URGENCY_LIMITS[data['urgency']],
    )

    results = []
    for item in ranked:
        worker_data = WorkerListSerializer(item['worker'], context={'request': request}).data
        worker_data.update({
            'distance': item['distance'],
            'rank': item['rank'],
            'composite_score': item['composite_score'],
            'scores': item['scores'],
            'reason': item['reason'],
        })
        results.append(worker_data)

    return Response({
        'success': True,
        'data': {
            'urgency': data['urgency'],
            'total_candidates': len(candidates),
            'recommendations': results,
        }
    })


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def categories_stats(request):
    """Worker count, average rating and price per category (approved only)"""
    stats = {category: {'workers': 0, 'rating_sum': 0.0, 'price_sum': 0.0} for category in CATEGORIES}

    approved = Worker.objects.filter(approval_status='approved', is_active=True).values(
        'categories', 'rating', 'price_per_hour'
    )
    for row in approved:
        for category in row['categories']:
            if category not in stats:
                continue
            stats[category]['workers'] += 1
            stats[category]['rating_sum'] += float(row['rating'])
            stats[category]['price_sum'] += float(row['price_per_hour'])

    data = []
    for category, values in stats.items():
        count = values['workers']
        data.append({
            'category': category,
            'worker_count': count,
            'average_rating': round(values['rating_sum'] / count, 2) if count else 0,
            'average_price': round(values['price_sum'] / count, 2) if count else 0,
        })
    data.sort(key=lambda row: -row['worker_count'])

    return Response({
        'success': True,
        'data': data
    })


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def worker_detail(request, worker_id):
    """
    Public profile with the latest reviews
    GET /api/workers/<id>/?latitude=&longitude=
    """
    worker = get_object_or_404(Worker.objects.select_related('user'), pk=worker_id)

    is_owner = request.user.is_authenticated and worker.user_id == request.user.id
    is_admin = request.user.is_authenticated and request.user.is_staff
    if worker.approval_status != 'approved' and not (is_owner or is_admin):
        raise NotFound("Worker not found")

    latitude = request.query_params.get('latitude')
    longitude = request.query_params.get('longitude')
    if latitude and longitude:
        try:
            latitude, longitude = parse_coordinates(latitude, longitude)
        except ValueError as e:
            return error_response("invalid_input", str(e))
        worker.calculated_distance = worker.distance_to(latitude, longitude)

    serializer_class = WorkerDetailSerializer if (is_owner or is_admin) else PublicWorkerDetailSerializer
    data = serializer_class(worker, context={'request': request}).data

    recent_reviews = worker.reviews.select_related('user', 'booking').order_by('-created_at')[:5]
    data['recent_reviews'] = ReviewSerializer(recent_reviews, many=True, context={'request': request}).data

    return Response({
        'success': True,
        'data': data
    })

