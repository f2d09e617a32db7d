# workers/dashboard_views.py
from datetime import timedelta

from django.db.models import Count, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone
from rest_framework import permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from bookings.models import Booking
from bookings.serializers import BookingListSerializer
from core.utils import error_response, paginate
from reviews.serializers import ReviewSerializer
from reviews.utils import rating_distribution
from .views import _get_own_worker

EARNING_PERIODS = ['day', 'week', 'month', 'year']


def _completed(worker):
    return Booking.objects.filter(worker=worker).completed()


def _period_start(period, now):
    today = timezone.localtime(now).replace(hour=0, minute=0, second=0, microsecond=0)
    if period == 'day':
        return today
    if period == 'week':
        return today - timedelta(days=7)
    if period == 'year':
        return today.replace(month=1, day=1)
    return today.replace(day=1)


def _list_response(request, queryset):
    page_items, meta = paginate(queryset, request.query_params)
    return Response({
        'success': True,
        'meta': meta,
        'data': BookingListSerializer(page_items, many=True, context={'request': request}).data
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def dashboard_stats(request):
    worker = _get_own_worker(request)
    now = timezone.now()
    bookings = Booking.objects.filter(worker=worker)

    by_status = {
        row['status']: row['count']
        for row in bookings.values('status').annotate(count=Count('id'))
    }
    month_earnings = _completed(worker).filter(
        completed_at__gte=_period_start('month', now)
    ).aggregate(total=Sum('worker_earning'))['total'] or 0

    return Response({
        'success': True,
        'data': {
            'total_jobs': worker.total_jobs,
            'completed_jobs': worker.completed_jobs,
            'active_jobs': sum(by_status.get(s, 0) for s in Booking.ACTIVE_STATUSES),
            'pending_requests': by_status.get('pending', 0),
            'todays_jobs': bookings.filter(
                scheduled_date=timezone.localdate()
            ).exclude(status__in=['cancelled', 'rejected']).count(),
            'total_earnings': worker.total_earnings,
            'month_earnings': month_earnings,
            'rating': worker.rating,
            'total_reviews': worker.total_reviews,
            'completion_rate': worker.completion_rate,
            'availability': worker.availability,
            'approval_status': worker.approval_status,
            'bookings_by_status': by_status,
        }
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def pending_requests(request):
    worker = _get_own_worker(request)
    queryset = Booking.objects.filter(worker=worker, status='pending').select_related(
        'user', 'worker__user'
    ).order_by('scheduled_date', 'scheduled_time')
    return _list_response(request, queryset)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def todays_schedule(request):
    worker = _get_own_worker(request)
    bookings = Booking.objects.filter(
        worker=worker, scheduled_date=timezone.localdate()
    ).exclude(status__in=['cancelled', 'rejected']).select_related(
        'user', 'worker__user'
    ).order_by('scheduled_time')

    return Response({
        'success': True,
        'data': BookingListSerializer(bookings, many=True, context={'request': request}).data
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def active_jobs(request):
    worker = _get_own_worker(request)
    bookings = Booking.objects.filter(
        worker=worker, status__in=Booking.ACTIVE_STATUSES
    ).select_related('user', 'worker__user').order_by('scheduled_date', 'scheduled_time')

    return Response({
        'success': True,
        'data': BookingListSerializer(bookings, many=True, context={'request': request}).data
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def job_history(request):
    worker = _get_own_worker(request)
    queryset = Booking.objects.filter(
        worker=worker, status__in=Booking.CLOSED_STATUSES
    ).select_related('user', 'worker__user').order_by('-updated_at')

    status_filter = request.query_params.get('status')
    if status_filter in Booking.CLOSED_STATUSES:
        queryset = queryset.filter(status=status_filter)
    return _list_response(request, queryset)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def worker_reviews(request):
    worker = _get_own_worker(request)
    reviews = worker.reviews.select_related('user', 'booking').order_by('-created_at')
    page_items, meta = paginate(reviews, request.query_params)

    return Response({
        'success': True,
        'meta': meta,
        'data': {
            'reviews': ReviewSerializer(page_items, many=True, context={'request': request}).data,
            'average_rating': worker.rating,
            'total_reviews': worker.total_reviews,
            'distribution': rating_distribution(worker.reviews.all()),
        }
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def earnings(request):
    """
    Completed work grouped by day
    GET /api/workers/dashboard/earnings/?period=day|week|month|year
    """
    worker = _get_own_worker(request)
    period = request.query_params.get('period', 'month')
    if period not in EARNING_PERIODS:
        return error_response(
            "invalid_input", f"period must be one of: {', '.join(EARNING_PERIODS)}"
        )

    rows = (
        _completed(worker)
        .filter(completed_at__gte=_period_start(period, timezone.now()))
        .annotate(day=TruncDate('completed_at'))
        .values('day')
        .annotate(
            earnings=Sum('worker_earning'),
            platform_fee=Sum('platform_fee'),
            jobs=Count('id'),
        )
        .order_by('day')
    )
    daily = [
        {
            'date': row['day'].isoformat(),
            'earnings': row['earnings'],
            'platform_fee': row['platform_fee'],
            'jobs': row['jobs'],
        }
        for row in rows
    ]

    return Response({
        'success': True,
        'data': {
            'period': period,
            'total_earnings': sum(row['earnings'] for row in daily),
            'total_platform_fee': sum(row['platform_fee'] for row in daily),
            'total_jobs': sum(row['jobs'] for row in daily),
            'daily': daily,
        }
    })
