"""
Notification helpers: persist the in-app record and push it to the
recipient's devices through Firebase.
"""

import logging
from typing import Optional, Dict, Any

from .models import Notification
from .firebase_service import firebase_service

logger = logging.getLogger('firebase_notifications')

# types pushed to devices without an in-app record
PUSH_ONLY_TYPES = {'worker_location_update'}

STATUS_LABELS = {
    'pending': 'pending',
    'confirmed': 'confirmed',
    'rejected': 'rejected',
    'on-the-way': 'on the way',
    'in-progress': 'in progress',
    'completed': 'completed',
    'cancelled': 'cancelled',
}


def create_and_send_notification(
    recipient,
    notification_type: str,
    title: str,
    message: str,
    booking=None,
    data: Optional[Dict[str, Any]] = None,
    send_push: bool = True
):
    """
    Create a notification and push it to the recipient's devices.
    Returns the Notification (None for push-only types or on failure).
    """
    data = dict(data or {})
    notification = None

    if notification_type not in PUSH_ONLY_TYPES:
        notification = Notification.objects.create(
            recipient=recipient,
            notification_type=notification_type,
            title=title,
            message=message,
            booking=booking,
            data=data,
        )
        logger.info(f"Notification created: {notification_type} for user {recipient.id}")

    if send_push:
        push_data = {
            'notification_type': notification_type,
            **data,
        }
        if notification:
            push_data['notification_id'] = notification.id
        if booking:
            push_data['booking_id'] = booking.id

        result = firebase_service.send_to_user(recipient, title, message, push_data)
        if not result.get('success'):
            logger.error(
                f"Push failed for {notification_type} to user {recipient.id}: {result.get('error')}"
            )

    return notification


# ========================================
# Booking events
# ========================================

def notify_new_booking(booking):
    return create_and_send_notification(
        recipient=booking.worker.user,
        notification_type='new_booking',
        title='New Booking Request',
        message=(
            f'{booking.user.name} requested {booking.service_type} on '
            f'{booking.scheduled_date} at {booking.scheduled_time}.'
        ),
        booking=booking,
    )


def notify_booking_status_changed(booking, previous_status):
    label = STATUS_LABELS.get(booking.status, booking.status)
    return create_and_send_notification(
        recipient=booking.user,
        notification_type='booking_status_changed',
        title='Booking Updated',
        message=f'Your {booking.service_type} booking is now {label}.',
        booking=booking,
        data={'status': booking.status, 'previous_status': previous_status},
    )


def notify_booking_cancelled(booking, recipient=None):
    recipient = recipient or booking.worker.user
    message = f'The {booking.service_type} booking on {booking.scheduled_date} was cancelled.'
    if booking.cancellation_reason:
        message += f' Reason: {booking.cancellation_reason}'
    return create_and_send_notification(
        recipient=recipient,
        notification_type='booking_cancelled',
        title='Booking Cancelled',
        message=message,
        booking=booking,
    )


def notify_worker_location(booking, worker):
    """Push-only: customers of active bookings follow the worker"""
    return create_and_send_notification(
        recipient=booking.user,
        notification_type='worker_location_update',
        title='Worker Location Updated',
        message=f'{worker.user.name} is on the move.',
        booking=booking,
        data={
            'latitude': worker.latitude,
            'longitude': worker.longitude,
            'location_updated_at': worker.location_updated_at.isoformat(),
            'status': booking.status,
        },
    )


def notify_wallet_refund(booking, amount):
    return create_and_send_notification(
        recipient=booking.user,
        notification_type='wallet_refund',
        title='Refund Issued',
        message=f'{amount} has been refunded to your wallet for booking #{booking.id}.',
        booking=booking,
        data={'amount': str(amount)},
    )


# ========================================
# Moderation and reviews
# ========================================

def notify_worker_approved(worker):
    message = 'Your worker profile has been approved. You can now receive bookings.'
    if worker.approval_message:
        message += f' {worker.approval_message}'
    return create_and_send_notification(
        recipient=worker.user,
        notification_type='worker_approved',
        title='Profile Approved',
        message=message,
    )


def notify_worker_rejected(worker):
    return create_and_send_notification(
        recipient=worker.user,
        notification_type='worker_rejected',
        title='Profile Rejected',
        message=f'Your worker profile was rejected. Reason: {worker.rejection_reason}',
        data={'reason': worker.rejection_reason},
    )


def notify_review_received(review):
    return create_and_send_notification(
        recipient=review.worker.user,
        notification_type='review_received',
        title='New Review',
        message=f'{review.user.name} rated you {review.rating}/5.',
        booking=review.booking,
        data={'review_id': review.id, 'rating': review.rating},
    )
