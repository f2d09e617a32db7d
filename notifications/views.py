# notifications/views.py
import logging

from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from core.utils import paginate
from .models import Notification, DeviceToken
from .serializers import (
    NotificationSerializer, DeviceRegisterSerializer,
    DeviceUnregisterSerializer, DeviceTokenSerializer,
)

logger = logging.getLogger('firebase_notifications')

TRUE_VALUES = ('true', '1', 'yes')


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def notification_list(request):
    """
    Caller's notifications, newest first
    GET /api/notifications/?unread_only=true&type=new_booking
    """
    queryset = Notification.objects.filter(recipient=request.user)

    if request.query_params.get('unread_only', '').lower() in TRUE_VALUES:
        queryset = queryset.filter(is_read=False)

    notification_type = request.query_params.get('type')
    if notification_type:
        queryset = queryset.filter(notification_type=notification_type)

    page_items, meta = paginate(queryset, request.query_params)
    return Response({
        'success': True,
        'meta': meta,
        'unread_count': Notification.objects.filter(recipient=request.user, is_read=False).count(),
        'data': NotificationSerializer(page_items, many=True).data
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def unread_count(request):
    return Response({
        'success': True,
        'data': {
            'unread_count': Notification.objects.filter(recipient=request.user, is_read=False).count()
        }
    })


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def mark_as_read(request, notification_id):
    notification = get_object_or_404(Notification, id=notification_id, recipient=request.user)
    notification.mark_as_read()
    return Response({
        'success': True,
        'message': 'Notification marked as read',
        'data': NotificationSerializer(notification).data
    })


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def mark_all_as_read(request):
    updated = Notification.objects.filter(
        recipient=request.user, is_read=False
    ).update(is_read=True, read_at=timezone.now())

    return Response({
        'success': True,
        'message': f'{updated} notifications marked as read',
        'data': {'updated_count': updated}
    })


# ==================== Devices ====================

@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def register_device(request):
    """
    POST /api/notifications/devices/register/
    Body: {"token": "...", "platform": "android|ios|web", "device_name": "..."}
    """
    serializer = DeviceRegisterSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    device = DeviceToken.register(
        request.user, data['token'],
        platform=data['platform'], device_name=data['device_name'],
    )
    logger.info(f"Device token registered for user {request.user.id} ({device.platform})")

    return Response({
        'success': True,
        'message': 'Device registered successfully',
        'data': DeviceTokenSerializer(device).data
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def unregister_device(request):
    serializer = DeviceUnregisterSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    updated = DeviceToken.objects.filter(
        user=request.user, token=serializer.validated_data['token']
    ).update(is_active=False)

    return Response({
        'success': True,
        'message': 'Device unregistered' if updated else 'Device not found',
        'data': {'deactivated': bool(updated)}
    })
