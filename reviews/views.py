# reviews/views.py
import logging

from django.db import IntegrityError, transaction
from django.shortcuts import get_object_or_404
from rest_framework import status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from bookings.models import Booking
from core.utils import error_response, paginate
from notifications.utils import notify_review_received
from workers.models import Worker
from .models import Review
from .serializers import (
    ReviewCreateSerializer, ReviewUpdateSerializer,
    ReviewResponseSerializer, ReviewSerializer,
)
from .utils import rating_distribution, review_stats

logger = logging.getLogger('localworker')

SORT_ORDERINGS = {
    'recent': ['-created_at'],
    'rating-high': ['-rating', '-created_at'],
    'rating-low': ['rating', '-created_at'],
    'helpful': ['-helpful_count', '-created_at'],
}


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated])
def create_review(request):
    """
    Review a completed booking
    POST /api/reviews/
    """
    serializer = ReviewCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    data = dict(serializer.validated_data)
    booking = get_object_or_404(
        Booking.objects.select_related('worker__user'), pk=data.pop('booking_id')
    )

    if booking.user_id != request.user.id:
        raise PermissionDenied("You can only review your own bookings")

    if booking.status != 'completed':
        return error_response("booking_not_completed", "You can only review completed bookings")

    if Review.objects.filter(booking=booking).exists():
        return error_response("already_reviewed", "You have already reviewed this booking")

    try:
        with transaction.atomic():
            review = Review.objects.create(
                booking=booking,
                user=request.user,
                worker=booking.worker,
                **data
            )
    except IntegrityError:
        # concurrent duplicate
        return error_response("already_reviewed", "You have already reviewed this booking")

    logger.info(f"Review {review.id} ({review.rating}/5) for worker {booking.worker_id}")
    notify_review_received(review)

    return Response({
        'success': True,
        'message': 'Review submitted successfully',
        'data': ReviewSerializer(review, context={'request': request}).data
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def worker_reviews(request, worker_id):
    """
    GET /api/reviews/worker/<id>/?sort=recent|rating-high|rating-low|helpful
    """
    worker = get_object_or_404(Worker, pk=worker_id)
    ordering = SORT_ORDERINGS.get(request.query_params.get('sort'), SORT_ORDERINGS['recent'])

    reviews = worker.reviews.select_related('user', 'booking').order_by(*ordering)
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
@permission_classes([permissions.AllowAny])
def worker_review_stats(request, worker_id):
    worker = get_object_or_404(Worker, pk=worker_id)
    return Response({
        'success': True,
        'data': review_stats(worker.reviews.all())
    })


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated])
def user_reviews(request):
    reviews = Review.objects.filter(user=request.user).select_related('user', 'booking', 'worker__user')
    page_items, meta = paginate(reviews, request.query_params)
    return Response({
        'success': True,
        'meta': meta,
        'data': ReviewSerializer(page_items, many=True, context={'request': request}).data
    })


@api_view(['PUT', 'DELETE'])
@permission_classes([permissions.IsAuthenticated])
def review_detail(request, review_id):
    review = get_object_or_404(Review.objects.select_related('worker', 'user'), pk=review_id)

    if request.method == 'DELETE':
        if review.user_id != request.user.id and not request.user.is_staff:
            raise PermissionDenied("Not authorized to delete this review")
        review.delete()
        logger.info(f"Review {review_id} deleted by user {request.user.id}")
        return Response({
            'success': True,
            'message': 'Review deleted successfully'
        })

    if review.user_id != request.user.id:
        raise PermissionDenied("Not authorized to update this review")

    serializer = ReviewUpdateSerializer(review, data=request.data, partial=True)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)
    review = serializer.save()

    return Response({
        'success': True,
        'message': 'Review updated successfully',
        'data': ReviewSerializer(review, context={'request': request}).data
    })


@api_view(['PUT'])
@permission_classes([permissions.IsAuthenticated])
def respond_to_review(request, review_id):
    review = get_object_or_404(Review.objects.select_related('worker'), pk=review_id)
    if review.worker.user_id != request.user.id:
        raise PermissionDenied("Only the reviewed worker can respond")

    serializer = ReviewResponseSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({
            "code": "invalid_input",
            "detail": serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    review.respond(serializer.validated_data['response'])
    return Response({
        'success': True,
        'message': 'Response added successfully',
        'data': ReviewSerializer(review, context={'request': request}).data
    })


@api_view(['PUT'])
@permission_classes([permissions.IsAuthenticated])
def toggle_helpful(request, review_id):
    review = get_object_or_404(Review, pk=review_id)
    added = review.toggle_helpful(request.user)
    return Response({
        'success': True,
        'message': 'Marked as helpful' if added else 'Helpful vote removed',
        'data': {
            'helpful_count': review.helpful_count,
            'is_helpful': added,
        }
    })

