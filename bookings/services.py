# bookings/services.py
"""
Booking state changes. Every function returns {"ok": booking} or
{"error": (code, message)}; notifications go out after the transaction.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from notifications.utils import (
    notify_new_booking, notify_booking_status_changed,
    notify_booking_cancelled, notify_wallet_refund,
)
from users.services import debit_wallet, credit_wallet
from workers.models import Worker
from .models import Booking

logger = logging.getLogger('localworker')


def _refund(booking, description):
    """Return a paid booking's amount to the customer's wallet"""
    if booking.payment_status != 'paid' or booking.payment_method != 'wallet' or not booking.total_price:
        # cash and free bookings are only marked
        if booking.payment_status == 'paid':
            booking.payment_status = 'refunded'
        return None

    result = credit_wallet(booking.user, booking.total_price, description, booking=booking)
    if "error" in result:
        return result
    booking.payment_status = 'refunded'
    logger.info(f"Refunded {booking.total_price} for booking {booking.id}")
    return result


# ==============================
# Create
# ==============================

def create_booking(user, data):
    """
    data: validated BookingCreateSerializer output (worker_id, service_type, ...)
    """
    worker = Worker.objects.select_related('user').filter(pk=data['worker_id']).first()
    if worker is None:
        return {"error": ("worker_not_found", "Worker not found")}

    if worker.user_id == user.id:
        return {"error": ("self_booking", "You cannot book yourself")}

    if worker.approval_status != 'approved' or not worker.is_active or not worker.user.is_active:
        return {"error": ("worker_unavailable", "This worker is not accepting bookings")}

    if worker.availability != 'available':
        return {"error": ("worker_unavailable", "Worker is not available at the moment")}

    fields = {key: value for key, value in data.items() if key != 'worker_id'}
    payment_method = fields.get('payment_method', 'cash')

    with transaction.atomic():
        entry = None
        if payment_method == 'wallet' and fields['total_price'] > 0:
            result = debit_wallet(user, fields['total_price'], f"Booking: {fields['service_type']}")
            if "error" in result:
                return result
            entry = result["ok"]["transaction"]

        booking = Booking.objects.create(
            user=user,
            worker=worker,
            payment_status='paid' if payment_method == 'wallet' else 'pending',
            **fields
        )
        if entry:
            entry.booking = booking
            entry.save(update_fields=['booking'])

        Worker.objects.filter(pk=worker.pk).update(total_jobs=F('total_jobs') + 1)

    logger.info(f"Booking {booking.id} created by user {user.id} for worker {worker.id}")
    notify_new_booking(booking)
    return {"ok": booking}


# ==============================
# Worker progression
# ==============================

def _start_work(booking, worker, now):
    booking.start_time = now
    worker.availability = 'busy'
    worker.save(update_fields=['availability', 'updated_at'])


def _complete_work(booking, worker, now):
    booking.end_time = now
    if booking.start_time:
        hours = Decimal((now - booking.start_time).total_seconds()) / Decimal(3600)
        booking.actual_duration = hours.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    if booking.payment_method == 'cash' and booking.payment_status == 'pending':
        booking.payment_status = 'paid'

    worker.completed_jobs = F('completed_jobs') + 1
    worker.total_earnings = F('total_earnings') + booking.worker_earning
    worker.availability = 'available'
    worker.save(update_fields=['completed_jobs', 'total_earnings', 'availability', 'updated_at'])
    worker.refresh_from_db(fields=['completed_jobs', 'total_earnings'])


def update_status(booking_id, worker_user, new_status, reason=''):
    """Assigned worker moves the booking along its transition graph"""
    new_status = Booking.normalize_status(new_status)
    refunded = None

    with transaction.atomic():
        booking = (
            Booking.objects.select_for_update()
            .select_related('worker__user', 'user')
            .filter(pk=booking_id).first()
        )
        if booking is None:
            return {"error": ("not_found", "Booking not found")}

        if booking.worker.user_id != worker_user.id:
            return {"error": ("forbidden", "Not authorized to update this booking")}

        if not booking.can_transition_to(new_status):
            return {"error": (
                "invalid_transition",
                f"Cannot change booking from {booking.status} to {new_status}"
            )}

        previous_status = booking.status
        worker = booking.worker
        now = timezone.now()

        if new_status == 'rejected':
            booking.rejection_reason = reason or ''
            refunded = _refund(booking, f"Refund: booking #{booking.id} rejected")
            if refunded and "error" in refunded:
                return refunded
        elif new_status == 'in-progress':
            _start_work(booking, worker, now)
        elif new_status == 'completed':
            _complete_work(booking, worker, now)

        booking.status = new_status
        booking.save()

    logger.info(f"Booking {booking.id}: {previous_status} -> {new_status} by worker {worker.id}")
    notify_booking_status_changed(booking, previous_status)
    if refunded:
        notify_wallet_refund(booking, booking.total_price)
    return {"ok": booking}


# ==============================
# Customer cancel
# ==============================

def cancel_booking(booking_id, user, reason=''):
    refunded = None

    with transaction.atomic():
        booking = (
            Booking.objects.select_for_update()
            .select_related('worker__user', 'user')
            .filter(pk=booking_id).first()
        )
        if booking is None:
            return {"error": ("not_found", "Booking not found")}

        if booking.user_id != user.id:
            return {"error": ("forbidden", "Not authorized to cancel this booking")}

        if not booking.is_cancellable:
            return {"error": ("not_cancellable", f"Cannot cancel a {booking.status} booking")}

        worker = booking.worker
        if booking.status == 'on-the-way' and worker.availability == 'busy':
            worker.availability = 'available'
            worker.save(update_fields=['availability', 'updated_at'])

        booking.status = 'cancelled'
        booking.cancellation_reason = reason or ''
        refunded = _refund(booking, f"Refund: booking #{booking.id} cancelled")
        if refunded and "error" in refunded:
            return refunded
        booking.save()

    logger.info(f"Booking {booking.id} cancelled by user {user.id}")
    notify_booking_cancelled(booking)
    if refunded:
        notify_wallet_refund(booking, booking.total_price)
    return {"ok": booking}


# ==============================
# Admin override
# ==============================

def admin_override_status(booking_id, admin_user, new_status, notes=''):
    """Any status, no transition check"""
    new_status = Booking.normalize_status(new_status)
    refunded = None

    with transaction.atomic():
        booking = (
            Booking.objects.select_for_update()
            .select_related('worker__user', 'user')
            .filter(pk=booking_id).first()
        )
        if booking is None:
            return {"error": ("not_found", "Booking not found")}

        previous_status = booking.status
        booking.status = new_status
        if notes:
            booking.admin_notes = notes

        if new_status in ('cancelled', 'rejected') and previous_status != new_status:
            if new_status == 'cancelled' and not booking.cancellation_reason:
                booking.cancellation_reason = notes or 'Cancelled by admin'
            if new_status == 'rejected' and not booking.rejection_reason:
                booking.rejection_reason = notes or 'Rejected by admin'
            refunded = _refund(booking, f"Refund: booking #{booking.id} {new_status} by admin")
            if refunded and "error" in refunded:
                return refunded

        booking.save()

    logger.info(
        f"Admin {admin_user.id} set booking {booking.id}: {previous_status} -> {new_status}"
    )
    if previous_status != new_status:
        notify_booking_status_changed(booking, previous_status)
    if refunded:
        notify_wallet_refund(booking, booking.total_price)
    return {"ok": booking}
