# admin_api/views.py
import logging
from datetime import timedelta

from django.db.models import Avg, Count, Q, Sum
from django.db.models.functions import TruncDate, TruncMonth, TruncYear
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from bookings import services as booking_services
from bookings.models import Booking
from bookings.serializers import AdminBookingStatusSerializer, BookingDetailSerializer
from core.utils import error_response, service_error_response, paginate
from notifications.utils import notify_worker_approved, notify_worker_rejected
from reviews.models import Review
from users.models import User
from users.serializers import UserSerializer
from workers.models import Worker
from .filters import BookingFilter, ReviewFilter, UserFilter, WorkerFilter
from .email_service import (
    generate_otp,
    send_password_reset_email,
    store_otp,
    verify_otp,
    clear_otp
)
from .serializers import (
    AdminLoginSerializer,
    AdminPasswordResetRequestSerializer,
    AdminPasswordResetConfirmSerializer,
    AdminUserListSerializer,
    AdminWorkerSerializer,
    WorkerApproveSerializer,
    WorkerRejectSerializer,
    AdminReviewSerializer,
)

logger = logging.getLogger('localworker')

REVENUE_PERIODS = {
    'daily': (TruncDate, timedelta(days=30), '%Y-%m-%d'),
    'monthly': (TruncMonth, timedelta(days=365), '%Y-%m'),
    'yearly': (TruncYear, None, '%Y'),
}


def _invalid(serializer):
    return Response({
        "code": "invalid_input",
        "detail": serializer.errors
    }, status=status.HTTP_400_BAD_REQUEST)


def _list_response(request, queryset, serializer_class):
    page_items, meta = paginate(queryset, request.query_params)
    return Response({
        'success': True,
        'meta': meta,
        'data': serializer_class(page_items, many=True, context={'request': request}).data
    })


def _month_starts(now, count):
    """First day of each of the last `count` months, oldest first"""
    current = timezone.localtime(now).replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    starts = [current]
    for _ in range(count - 1):
        current = (current - timedelta(days=1)).replace(day=1)
        starts.append(current)
    return list(reversed(starts))


# ==================== Admin Authentication ====================

class AdminLoginView(APIView):
    """
    POST /api/auth/admin/login/
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = AdminLoginSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid(serializer)

        email = serializer.validated_data['email']
        user = User.objects.filter(email=email).first()

        if user is None or not user.is_admin or not user.check_password(serializer.validated_data['password']):
            logger.info(f"Failed admin login for {email}")
            return error_response("invalid_credentials", "Invalid credentials", status.HTTP_401_UNAUTHORIZED)

        if not user.is_active:
            return error_response("account_disabled", "Account is disabled", status.HTTP_403_FORBIDDEN)

        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])

        refresh = RefreshToken.for_user(user)
        logger.info(f"Admin {user.email} logged in")

        return Response({
            'success': True,
            'message': 'Login successful',
            'access': str(refresh.access_token),
            'refresh': str(refresh),
            'user': UserSerializer(user, context={'request': request}).data,
        })


@api_view(['GET'])
@permission_classes([permissions.IsAdminUser])
def admin_me(request):
    return Response({
        'success': True,
        'data': UserSerializer(request.user, context={'request': request}).data
    })


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def admin_forgot_password(request):
    """
    Email a one-time code. The answer is the same whether or not
    the address belongs to an admin.
    POST /api/auth/admin/forgotpassword/
    """
    serializer = AdminPasswordResetRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    email = serializer.validated_data['email']
    if User.objects.filter(email=email, role='admin', is_active=True).exists():
        otp = generate_otp()
        store_otp(email, otp)
        if send_password_reset_email(email, otp):
            logger.info(f"Password reset code sent to admin {email}")

    return Response({
        'success': True,
        'message': 'If an admin account exists for this email, a verification code has been sent'
    })


@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def admin_reset_password(request):
    """
    POST /api/auth/admin/resetpassword/
    """
    serializer = AdminPasswordResetConfirmSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    email = serializer.validated_data['email']
    valid, message = verify_otp(email, serializer.validated_data['otp'])
    if not valid:
        return error_response("invalid_otp", message)

    user = User.objects.filter(email=email, role='admin').first()
    if user is None:
        clear_otp(email)
        return error_response("invalid_otp", "Code expired or invalid")

    user.set_password(serializer.validated_data['new_password'])
    user.save(update_fields=['password'])
    clear_otp(email)
    logger.info(f"Admin {email} reset their password")

    return Response({
        'success': True,
        'message': 'Password reset successfully'
    })


# ==================== Statistics ====================

@api_view(['GET'])
@permission_classes([permissions.IsAdminUser])
def dashboard_stats(request):
    now = timezone.now()
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)

    customers = User.objects.filter(role__in=['user', 'worker'])
    new_this_week = customers.filter(created_at__gte=week_ago).count()
    new_last_week = customers.filter(created_at__gte=two_weeks_ago, created_at__lt=week_ago).count()
    if new_last_week:
        growth = round((new_this_week - new_last_week) / new_last_week * 100, 1)
    else:
        growth = 100.0 if new_this_week else 0.0

    bookings_by_status = {
        row['status']: row['count']
        for row in Booking.objects.values('status').annotate(count=Count('id'))
    }
    completed = Booking.objects.completed()
    revenue = completed.aggregate(fees=Sum('platform_fee'), gross=Sum('total_price'))

    month_starts = _month_starts(now, 6)
    monthly = {
        row['month'].strftime('%Y-%m'): row
        for row in completed.filter(completed_at__gte=month_starts[0])
        .annotate(month=TruncMonth('completed_at'))
        .values('month')
        .annotate(revenue=Sum('platform_fee'), bookings=Count('id'))
    }
    monthly_revenue = []
    for start in month_starts:
        key = start.strftime('%Y-%m')
        row = monthly.get(key, {})
        monthly_revenue.append({
            'month': key,
            'revenue': row.get('revenue') or 0,
            'bookings': row.get('bookings', 0),
        })

    return Response({
        'success': True,
        'data': {
            'total_users': User.objects.filter(role='user').count(),
            'total_workers': Worker.objects.count(),
            'total_bookings': Booking.objects.count(),
            'total_reviews': Review.objects.count(),
            'pending_approvals': Worker.objects.filter(approval_status='pending').count(),
            'active_bookings': Booking.objects.active().count(),
            'bookings_by_status': bookings_by_status,
            'total_revenue': revenue['fees'] or 0,
            'gross_booking_value': revenue['gross'] or 0,
            'user_growth': {
                'this_week': new_this_week,
                'last_week': new_last_week,
                'growth_percentage': growth,
            },
            'monthly_revenue': monthly_revenue,
        }
    })


@api_view(['GET'])
@permission_classes([permissions.IsAdminUser])
def system_stats(request):
    users = User.objects.aggregate(
        active=Count('id', filter=Q(is_active=True)),
        inactive=Count('id', filter=Q(is_active=False)),
        customers=Count('id', filter=Q(role='user')),
        workers=Count('id', filter=Q(role='worker')),
        admins=Count('id', filter=Q(role='admin')),
    )
    by_approval = {
        row['approval_status']: row['count']
        for row in Worker.objects.values('approval_status').annotate(count=Count('id'))
    }
    by_availability = {
        row['availability']: row['count']
        for row in Worker.objects.filter(approval_status='approved')
        .values('availability').annotate(count=Count('id'))
    }
    average_rating = Review.objects.aggregate(avg=Avg('rating'))['avg']

    return Response({
        'success': True,
        'data': {
            'users': users,
            'workers_by_approval': by_approval,
            'workers_by_availability': by_availability,
            'average_rating': round(average_rating, 2) if average_rating else 0,
            'total_reviews': Review.objects.count(),
        }
    })


@api_view(['GET'])
@permission_classes([permissions.IsAdminUser])
def revenue_analytics(request):
    """
    Platform revenue of completed bookings
    GET /api/admin/revenue/analytics/?period=daily|monthly|yearly
    """
    period = request.query_params.get('period', 'monthly')
    if period not in REVENUE_PERIODS:
        return error_response(
            "invalid_input", f"period must be one of: {', '.join(REVENUE_PERIODS)}"
        )

    trunc, window, label_format = REVENUE_PERIODS[period]
    completed = Booking.objects.completed()
    if window is not None:
        completed = completed.filter(completed_at__gte=timezone.now() - window)

    rows = (
        completed.annotate(bucket=trunc('completed_at'))
        .values('bucket')
        .annotate(
            revenue=Sum('platform_fee'),
            gross=Sum('total_price'),
            worker_payouts=Sum('worker_earning'),
            bookings=Count('id'),
        )
        .order_by('bucket')
    )
    series = [
        {
            'period': row['bucket'].strftime(label_format),
            'revenue': row['revenue'],
            'gross_booking_value': row['gross'],
            'worker_payouts': row['worker_payouts'],
            'bookings': row['bookings'],
        }
        for row in rows
    ]

    return Response({
        'success': True,
        'data': {
            'period': period,
            'total_revenue': sum(row['revenue'] for row in series),
            'total_bookings': sum(row['bookings'] for row in series),
            'series': series,
        }
    })


# ==================== Users ====================

@api_view(['GET'])
@permission_classes([permissions.IsAdminUser])
def user_list(request):
    """
    GET /api/admin/users/?role=&status=active|inactive&search=
    """
    queryset = User.objects.annotate(total_bookings=Count('bookings')).order_by('-created_at')
    filterset = UserFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return _invalid(filterset)

    return _list_response(request, filterset.qs.select_related('worker_profile'), AdminUserListSerializer)


@api_view(['PATCH'])
@permission_classes([permissions.IsAdminUser])
def toggle_user_status(request, user_id):
    user = get_object_or_404(User, pk=user_id)
    if user.is_admin:
        return error_response("protected_account", "Admin accounts cannot be deactivated")

    user.is_active = not user.is_active
    user.save(update_fields=['is_active', 'updated_at'])
    logger.info(
        f"Admin {request.user.email} {'activated' if user.is_active else 'deactivated'} user {user.id}"
    )

    return Response({
        'success': True,
        'message': f"User {'activated' if user.is_active else 'deactivated'} successfully",
        'data': {'id': user.id, 'is_active': user.is_active}
    })


@api_view(['DELETE'])
@permission_classes([permissions.IsAdminUser])
def delete_user(request, user_id):
    user = get_object_or_404(User, pk=user_id)
    if user.is_admin:
        return error_response("protected_account", "Admin accounts cannot be deleted")

    active = Booking.objects.active().filter(Q(user=user) | Q(worker__user=user))
    if active.exists():
        return error_response(
            "active_bookings",
            f"User has {active.count()} active bookings. Resolve them before deleting."
        )

    email = user.email
    user.delete()
    logger.info(f"Admin {request.user.email} deleted user {email}")

    return Response({
        'success': True,
        'message': 'User deleted successfully'
    })


# ==================== Workers ====================

@api_view(['GET'])
@permission_classes([permissions.IsAdminUser])
def worker_list(request):
    queryset = Worker.objects.select_related('user', 'approved_by', 'rejected_by').order_by('-created_at')
    filterset = WorkerFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return _invalid(filterset)

    return _list_response(request, filterset.qs, AdminWorkerSerializer)


@api_view(['PATCH'])
@permission_classes([permissions.IsAdminUser])
def approve_worker(request, worker_id):
    worker = get_object_or_404(Worker.objects.select_related('user'), pk=worker_id)

    serializer = WorkerApproveSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    worker.approval_status = 'approved'
    worker.approval_message = serializer.validated_data['message']
    worker.approved_at = timezone.now()
    worker.approved_by = request.user
    worker.rejection_reason = ''
    worker.rejected_at = None
    worker.rejected_by = None
    worker.verified = True
    worker.save()

    logger.info(f"Admin {request.user.email} approved worker {worker.id}")
    notify_worker_approved(worker)

    return Response({
        'success': True,
        'message': 'Worker approved successfully',
        'data': AdminWorkerSerializer(worker, context={'request': request}).data
    })


@api_view(['PATCH'])
@permission_classes([permissions.IsAdminUser])
def reject_worker(request, worker_id):
    worker = get_object_or_404(Worker.objects.select_related('user'), pk=worker_id)

    serializer = WorkerRejectSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    worker.approval_status = 'rejected'
    worker.rejection_reason = serializer.validated_data['reason']
    worker.rejected_at = timezone.now()
    worker.rejected_by = request.user
    worker.verified = False
    worker.save()

    logger.info(f"Admin {request.user.email} rejected worker {worker.id}")
    notify_worker_rejected(worker)

    return Response({
        'success': True,
        'message': 'Worker rejected',
        'data': AdminWorkerSerializer(worker, context={'request': request}).data
    })


# ==================== Bookings ====================

@api_view(['GET'])
@permission_classes([permissions.IsAdminUser])
def booking_list(request):
    queryset = Booking.objects.select_related('user', 'worker__user').order_by('-created_at')
    filterset = BookingFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return _invalid(filterset)

    return _list_response(request, filterset.qs, BookingDetailSerializer)


@api_view(['PATCH'])
@permission_classes([permissions.IsAdminUser])
def override_booking_status(request, booking_id):
    serializer = AdminBookingStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    result = booking_services.admin_override_status(
        booking_id,
        request.user,
        serializer.validated_data['status'],
        notes=serializer.validated_data['admin_notes'],
    )
    if "error" in result:
        return service_error_response(result, {'not_found': status.HTTP_404_NOT_FOUND})

    return Response({
        'success': True,
        'message': 'Booking status updated',
        'data': BookingDetailSerializer(result["ok"], context={'request': request}).data
    })


# ==================== Reviews ====================

@api_view(['GET'])
@permission_classes([permissions.IsAdminUser])
def review_list(request):
    queryset = Review.objects.select_related('user', 'worker__user', 'booking').order_by('-created_at')
    filterset = ReviewFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return _invalid(filterset)

    return _list_response(request, filterset.qs, AdminReviewSerializer)


@api_view(['DELETE'])
@permission_classes([permissions.IsAdminUser])
def delete_review(request, review_id):
    review = get_object_or_404(Review.objects.select_related('worker'), pk=review_id)
    review.delete()
    logger.info(f"Admin {request.user.email} deleted review {review_id}")

    return Response({
        'success': True,
        'message': 'Review deleted successfully'
    })
