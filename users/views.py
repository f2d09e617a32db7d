# users/views.py
import logging

from django.db.models import Count, Sum
from rest_framework import status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from bookings.models import Booking
from bookings.serializers import BookingListSerializer
from core.utils import error_response, paginate
from notifications.models import DeviceToken
from reviews.models import Review
from .models import User
from .serializers import (
    RegisterSerializer, LoginSerializer, UserSerializer,
    UpdateDetailsSerializer, ProfileUpdateSerializer, UpdatePasswordSerializer,
    LocationUpdateSerializer, LocationHistorySerializer, WalletTransactionSerializer,
)
from .utils import get_client_ip

logger = logging.getLogger('localworker')


def _tokens_for(user):
    refresh = RefreshToken.for_user(user)
    return {
        "access": str(refresh.access_token),
        "refresh": str(refresh),
    }


def _register_device(user, data):
    device_token = data.get('device_token')
    if device_token:
        DeviceToken.register(
            user,
            device_token,
            platform=data.get('platform', 'web'),
            device_name=data.get('device_name', ''),
        )


# ==================== Authentication ====================

class RegisterView(APIView):
    """
    Register a customer or worker
    POST /api/auth/register
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({
                "code": "invalid_input",
                "detail": serializer.errors
            }, status=status.HTTP_400_BAD_REQUEST)

        user = serializer.save()
        logger.info(f"New {user.role} registered: {user.email}")

        return Response({
            "success": True,
            "message": "Registration successful",
            **_tokens_for(user),
            "user": UserSerializer(user, context={'request': request}).data,
        }, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    Email + password login for every role
    POST /api/auth/login
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({
                "code": "invalid_input",
                "detail": serializer.errors
            }, status=status.HTTP_400_BAD_REQUEST)

        email = serializer.validated_data['email']
        password = serializer.validated_data['password']

        user = User.objects.filter(email=email).first()
        if user is None or not user.check_password(password):
            logger.info(f"Failed login for {email} from {get_client_ip(request)}")
            return error_response(
                "invalid_credentials", "Invalid credentials", status.HTTP_401_UNAUTHORIZED
            )

        if not user.is_active:
            return error_response(
                "account_disabled",
                "Your account has been deactivated. Please contact support.",
                status.HTTP_403_FORBIDDEN
            )

        _register_device(user, request.data)

        return Response({
            "success": True,
            "message": "Login successful",
            **_tokens_for(user),
            "user": UserSerializer(user, context={'request': request}).data,
        }, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def logout(request):
    """Drop the device token so this device stops receiving pushes"""
    device_token = request.data.get('device_token')
    if device_token:
        DeviceToken.objects.filter(user=request.user, token=device_token).update(is_active=False)

    return Response({
        'success': True,
        'message': 'Logged out successfully'
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def me(request):
    return Response({
        'success': True,
        'data': UserSerializer(request.user, context={'request': request}).data
    })


@api_view(['PUT'])
@permission_classes([permissions.IsAuthenticated])
def update_details(request):
    serializer = UpdateDetailsSerializer(request.user, data=request.data, partial=True)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    user = serializer.save()
    return Response({
        'success': True,
        'message': 'Details updated successfully',
        'data': UserSerializer(user, context={'request': request}).data
    })


@api_view(['PUT'])
@permission_classes([permissions.IsAuthenticated])
def update_password(request):
    serializer = UpdatePasswordSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    user = request.user
    user.set_password(serializer.validated_data['new_password'])
    user.save(update_fields=['password'])
    logger.info(f"Password changed for {user.email}")

    return Response({
        'success': True,
        'message': 'Password updated successfully',
        **_tokens_for(user),
    })


# ==================== Profile ====================

@api_view(['GET', 'PUT'])
@permission_classes([permissions.IsAuthenticated])
def profile(request):
    user = request.user

    if request.method == 'PUT':
        serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response({
                "code": "invalid_input",
                "detail": serializer.errors
            }, status=status.HTTP_400_BAD_REQUEST)
        user = serializer.save()

    return Response({
        'success': True,
        'data': UserSerializer(user, context={'request': request}).data
    })


@api_view(['PUT'])
@permission_classes([permissions.IsAuthenticated])
def update_location(request):
    """
    Save the caller's current position
    PUT /api/users/location
    """
    serializer = LocationUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    user = request.user
    user.update_location(
        round(data['latitude'], 6),
        round(data['longitude'], 6),
        address=data.get('address', ''),
        accuracy=data.get('accuracy'),
        city=data.get('city'),
        state=data.get('state'),
        pincode=data.get('pincode'),
    )

    return Response({
        'success': True,
        'message': 'Location updated successfully',
        'data': {
            'latitude': user.latitude,
            'longitude': user.longitude,
            'address': user.address,
            'captured_at': user.location_captured_at,
        }
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def location_history(request):
    history = request.user.location_history.all()
    page_items, meta = paginate(history, request.query_params)
    return Response({
        'success': True,
        'meta': meta,
        'data': LocationHistorySerializer(page_items, many=True).data
    })


# ==================== Customer dashboard ====================

@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def dashboard_stats(request):
    user = request.user
    bookings = Booking.objects.filter(user=user)

    by_status = {
        row['status']: row['count']
        for row in bookings.values('status').annotate(count=Count('id'))
    }
    total_spent = bookings.filter(status='completed').aggregate(
        total=Sum('total_price')
    )['total'] or 0

    return Response({
        'success': True,
        'data': {
            'total_bookings': bookings.count(),
            'pending_bookings': by_status.get('pending', 0),
            'active_bookings': sum(by_status.get(s, 0) for s in Booking.ACTIVE_STATUSES),
            'completed_bookings': by_status.get('completed', 0),
            'cancelled_bookings': by_status.get('cancelled', 0),
            'bookings_by_status': by_status,
            'total_spent': total_spent,
            'wallet_balance': user.wallet,
            'reviews_given': Review.objects.filter(user=user).count(),
        }
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def recent_bookings(request):
    bookings = (
        Booking.objects.filter(user=request.user)
        .select_related('worker__user')
        .order_by('-created_at')[:5]
    )
    return Response({
        'success': True,
        'data': BookingListSerializer(bookings, many=True, context={'request': request}).data
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def wallet(request):
    transactions = request.user.wallet_transactions.select_related('booking')
    page_items, meta = paginate(transactions, request.query_params)
    return Response({
        'success': True,
        'data': {
            'balance': request.user.wallet,
            'transactions': WalletTransactionSerializer(page_items, many=True).data,
        },
        'meta': meta,
    })
