# bookings/views.py
import logging
import math

from django.conf import settings
from django.shortcuts import get_object_or_404
from rest_framework import status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from core.utils import error_response, service_error_response, paginate, haversine_distance
from workers.models import Worker
from . import services
from .models import Booking
from .serializers import (
    BookingCreateSerializer, BookingStatusSerializer, BookingCancelSerializer,
    BookingListSerializer, BookingDetailSerializer,
)

logger = logging.getLogger('localworker')

SERVICE_ERROR_STATUS = {
    'not_found': status.HTTP_404_NOT_FOUND,
    'worker_not_found': status.HTTP_404_NOT_FOUND,
    'forbidden': status.HTTP_403_FORBIDDEN,
    'invalid_transition': status.HTTP_409_CONFLICT,
}


def _get_visible_booking(request, booking_id):
    """Customer, assigned worker or admin; anyone else gets 403"""
    booking = get_object_or_404(
        Booking.objects.select_related('user', 'worker__user'), pk=booking_id
    )
    user = request.user
    if not (user.is_staff or booking.is_participant(user)):
        raise PermissionDenied("Not authorized to view this booking")
    return booking


def _filter_status(queryset, query_params):
    status_filter = query_params.get('status')
    if status_filter:
        queryset = queryset.filter(status=Booking.normalize_status(status_filter))
    return queryset


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def create_booking(request):
    """
    Book a worker
    POST /api/bookings/
    """
    serializer = BookingCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    result = services.create_booking(request.user, serializer.validated_data)
    if "error" in result:
        return service_error_response(result, SERVICE_ERROR_STATUS)

    return Response({
        'success': True,
        'message': 'Booking created successfully',
        'data': BookingDetailSerializer(result["ok"], context={'request': request}).data
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def my_bookings(request):
    queryset = _filter_status(
        Booking.objects.filter(user=request.user).select_related('user', 'worker__user'),
        request.query_params
    )
    page_items, meta = paginate(queryset, request.query_params)
    return Response({
        'success': True,
        'meta': meta,
        'data': BookingListSerializer(page_items, many=True, context={'request': request}).data
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def worker_bookings(request):
    worker = Worker.objects.filter(user=request.user).first()
    if worker is None:
        return error_response(
            "worker_profile_not_found", "Worker profile not found", status.HTTP_404_NOT_FOUND
        )

    queryset = _filter_status(
        Booking.objects.filter(worker=worker).select_related('user', 'worker__user'),
        request.query_params
    )
    page_items, meta = paginate(queryset, request.query_params)
    return Response({
        'success': True,
        'meta': meta,
        'data': BookingListSerializer(page_items, many=True, context={'request': request}).data
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def booking_detail(request, booking_id):
    booking = _get_visible_booking(request, booking_id)
    return Response({
        'success': True,
        'data': BookingDetailSerializer(booking, context={'request': request}).data
    })


@api_view(['PUT'])
@permission_classes([permissions.IsAuthenticated])
def update_booking_status(request, booking_id):
    """
    Worker moves a booking forward
    PUT /api/bookings/<id>/status/  {"status": "confirmed"}
    """
    if not request.user.is_worker:
        raise PermissionDenied("Only workers can update booking status")

    serializer = BookingStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    result = services.update_status(
        booking_id,
        request.user,
        serializer.validated_data['status'],
        reason=serializer.validated_data['rejection_reason'],
    )
    if "error" in result:
        return service_error_response(result, SERVICE_ERROR_STATUS)

    return Response({
        'success': True,
        'message': 'Booking status updated successfully',
        'data': BookingDetailSerializer(result["ok"], context={'request': request}).data
    })


@api_view(['PUT'])
@permission_classes([permissions.IsAuthenticated])
def cancel_booking(request, booking_id):
    serializer = BookingCancelSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    result = services.cancel_booking(
        booking_id, request.user, serializer.validated_data['cancellation_reason']
    )
    if "error" in result:
        return service_error_response(result, SERVICE_ERROR_STATUS)

    return Response({
        'success': True,
        'message': 'Booking cancelled successfully',
        'data': BookingDetailSerializer(result["ok"], context={'request': request}).data
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def worker_location(request, booking_id):
    """
    Live position of the assigned worker, polled by the customer
    GET /api/bookings/<id>/worker-location/
    """
    booking = _get_visible_booking(request, booking_id)

    if not booking.is_trackable:
        return error_response(
            "tracking_unavailable",
            f"Tracking is not available for a {booking.status} booking"
        )

    worker = booking.worker
    sharing = worker.location_sharing_enabled and worker.has_location

    data = {
        'booking_id': booking.id,
        'status': booking.status,
        'worker_id': worker.id,
        'worker_name': worker.user.name,
        'location_sharing_enabled': worker.location_sharing_enabled,
        'latitude': worker.latitude if sharing else None,
        'longitude': worker.longitude if sharing else None,
        'accuracy': worker.location_accuracy if sharing else None,
        'location_updated_at': worker.location_updated_at if sharing else None,
        'is_fresh': sharing and worker.is_location_fresh(),
        'distance': None,
        'eta_minutes': None,
    }

    if sharing and booking.has_location:
        distance = haversine_distance(
            worker.latitude, worker.longitude, booking.latitude, booking.longitude
        )
        data['distance'] = round(distance, 2)
        data['eta_minutes'] = math.ceil(distance / settings.TRACKING_AVERAGE_SPEED_KMH * 60)

    return Response({
        'success': True,
        'data': data
    })
