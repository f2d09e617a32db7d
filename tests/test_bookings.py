from decimal import Decimal

import pytest

from bookings import services
from bookings.models import Booking
from notifications.models import Notification
from users.models import WalletTransaction

BASE = "/api/bookings"


def _set_status(client, booking, new_status, **extra):
    return client.put(f"{BASE}/{booking.id}/status/", {"status": new_status, **extra}, format="json")


# ==================== Create ====================

def test_create_booking(customer_client, worker, booking_payload):
    r = customer_client.post(f"{BASE}/", booking_payload, format="json")

    assert r.status_code == 201
    data = r.json()["data"]
    assert data["status"] == "pending"
    assert data["payment_status"] == "pending"
    assert data["platform_fee"] == "50.00"
    assert data["worker_earning"] == "450.00"

    worker.refresh_from_db()
    assert worker.total_jobs == 1
    assert Notification.objects.filter(recipient=worker.user, notification_type="new_booking").exists()


def test_create_booking_paid_from_wallet(customer_client, customer, booking_payload):
    r = customer_client.post(f"{BASE}/", {**booking_payload, "payment_method": "wallet"}, format="json")

    assert r.status_code == 201
    booking = Booking.objects.get(pk=r.json()["data"]["id"])
    assert booking.payment_status == "paid"
    customer.refresh_from_db()
    assert customer.wallet == Decimal("49500.00")
    assert WalletTransaction.objects.get(user=customer).booking == booking


def test_create_booking_insufficient_wallet(customer_client, customer, booking_payload):
    customer.wallet = Decimal("100.00")
    customer.save()

    r = customer_client.post(f"{BASE}/", {**booking_payload, "payment_method": "wallet"}, format="json")
    assert r.status_code == 400
    assert r.json()["code"] == "insufficient_balance"
    assert not Booking.objects.exists()


def test_free_wallet_booking_skips_the_ledger(customer_client, customer, booking_payload):
    r = customer_client.post(
        f"{BASE}/", {**booking_payload, "payment_method": "wallet", "total_price": "0.00"}, format="json",
    )

    assert r.status_code == 201
    assert r.json()["data"]["payment_status"] == "paid"
    assert not WalletTransaction.objects.exists()

    r = customer_client.put(f"{BASE}/{r.json()['data']['id']}/cancel/", {}, format="json")
    assert r.status_code == 200
    customer.refresh_from_db()
    assert customer.wallet == Decimal("50000.00")


def test_create_booking_unknown_worker(customer_client, booking_payload):
    r = customer_client.post(f"{BASE}/", {**booking_payload, "worker_id": 9999}, format="json")
    assert r.status_code == 404


def test_cannot_book_unapproved_worker(customer_client, worker, booking_payload):
    worker.approval_status = "pending"
    worker.save()
    r = customer_client.post(f"{BASE}/", booking_payload, format="json")
    assert r.status_code == 400
    assert r.json()["code"] == "worker_unavailable"


def test_worker_cannot_book_self(worker_client, booking_payload):
    r = worker_client.post(f"{BASE}/", booking_payload, format="json")
    assert r.json()["code"] == "self_booking"


def test_create_booking_in_the_past(customer_client, booking_payload):
    r = customer_client.post(f"{BASE}/", {**booking_payload, "scheduled_date": "2020-01-01"}, format="json")
    assert r.status_code == 400
    assert "scheduled_date" in r.json()["detail"]


def test_create_booking_half_coordinates(customer_client, booking_payload):
    payload = dict(booking_payload)
    del payload["longitude"]
    r = customer_client.post(f"{BASE}/", payload, format="json")
    assert r.status_code == 400


def test_fees_recomputed_when_price_changes(make_booking):
    booking = make_booking(total_price=Decimal("333.33"))
    assert booking.platform_fee == Decimal("33.33")
    assert booking.worker_earning == Decimal("300.00")

    booking.total_price = Decimal("1000.00")
    booking.save(update_fields=["total_price"])
    booking.refresh_from_db()
    assert booking.platform_fee == Decimal("100.00")


# ==================== Listing & visibility ====================

def test_my_bookings_and_worker_bookings(customer_client, worker_client, make_booking, other_customer):
    make_booking()
    make_booking(status="confirmed")
    make_booking(user=other_customer)

    assert customer_client.get(f"{BASE}/my-bookings/").json()["meta"]["total"] == 2
    assert customer_client.get(f"{BASE}/my-bookings/", {"status": "accepted"}).json()["meta"]["total"] == 1
    assert worker_client.get(f"{BASE}/worker-bookings/").json()["meta"]["total"] == 3


def test_worker_bookings_without_profile(customer_client):
    assert customer_client.get(f"{BASE}/worker-bookings/").status_code == 404


def test_booking_detail_visibility(customer_client, worker_client, other_client, admin_client, make_booking):
    booking = make_booking()
    assert customer_client.get(f"{BASE}/{booking.id}/").status_code == 200
    assert worker_client.get(f"{BASE}/{booking.id}/").status_code == 200
    assert admin_client.get(f"{BASE}/{booking.id}/").status_code == 200
    assert other_client.get(f"{BASE}/{booking.id}/").status_code == 403


# ==================== Status progression ====================

def test_full_progression(worker_client, worker, make_booking):
    booking = make_booking()

    for new_status in ["accepted", "on-the-way", "in-progress"]:
        assert _set_status(worker_client, booking, new_status).status_code == 200

    worker.refresh_from_db()
    assert worker.availability == "busy"

    r = _set_status(worker_client, booking, "completed")
    assert r.status_code == 200

    booking.refresh_from_db()
    worker.refresh_from_db()
    assert booking.status == "completed"
    assert booking.start_time and booking.end_time
    assert booking.payment_status == "paid"
    assert worker.completed_jobs == 1
    assert worker.total_earnings == Decimal("450.00")
    assert worker.availability == "available"

    changes = Notification.objects.filter(recipient=booking.user, notification_type="booking_status_changed")
    assert changes.count() == 4


@pytest.mark.parametrize("current, target", [
    ("pending", "completed"),
    ("pending", "in-progress"),
    ("confirmed", "pending"),
    ("completed", "cancelled"),
    ("rejected", "confirmed"),
])
def test_illegal_transition_conflict(worker_client, make_booking, current, target):
    booking = make_booking(status=current)
    r = _set_status(worker_client, booking, target)

    assert r.status_code == 409
    assert r.json()["code"] == "invalid_transition"
    booking.refresh_from_db()
    assert booking.status == current


def test_only_assigned_worker_updates_status(make_booking, make_worker):
    from rest_framework.test import APIClient

    booking = make_booking()
    stranger = make_worker()
    client = APIClient()
    client.force_authenticate(user=stranger.user)

    assert _set_status(client, booking, "confirmed").status_code == 403


def test_customer_cannot_update_status(customer_client, make_booking):
    booking = make_booking()
    assert _set_status(customer_client, booking, "confirmed").status_code == 403


def test_reject_refunds_wallet_booking(worker_client, customer, make_booking):
    booking = make_booking(payment_method="wallet", payment_status="paid")

    r = _set_status(worker_client, booking, "rejected", rejection_reason="Fully booked")
    assert r.status_code == 200

    booking.refresh_from_db()
    customer.refresh_from_db()
    assert booking.rejection_reason == "Fully booked"
    assert booking.payment_status == "refunded"
    assert customer.wallet == Decimal("50500.00")
    assert Notification.objects.filter(recipient=customer, notification_type="wallet_refund").exists()


# ==================== Cancel ====================

def test_cancel_pending_booking(customer_client, worker, make_booking):
    booking = make_booking()
    r = customer_client.put(f"{BASE}/{booking.id}/cancel/", {"cancellation_reason": "Changed plans"}, format="json")

    assert r.status_code == 200
    booking.refresh_from_db()
    assert booking.status == "cancelled"
    assert booking.cancellation_reason == "Changed plans"
    assert Notification.objects.filter(recipient=worker.user, notification_type="booking_cancelled").exists()


def test_cancel_wallet_booking_refunds(customer_client, customer, make_booking):
    booking = make_booking(status="confirmed", payment_method="wallet", payment_status="paid")
    customer_client.put(f"{BASE}/{booking.id}/cancel/", {}, format="json")

    customer.refresh_from_db()
    booking.refresh_from_db()
    assert booking.payment_status == "refunded"
    assert customer.wallet == Decimal("50500.00")
    assert WalletTransaction.objects.filter(user=customer, type="credit", booking=booking).exists()


@pytest.mark.parametrize("current", ["in-progress", "completed", "cancelled", "rejected"])
def test_cannot_cancel_late_booking(customer_client, make_booking, current):
    booking = make_booking(status=current)
    r = customer_client.put(f"{BASE}/{booking.id}/cancel/", {}, format="json")

    assert r.status_code == 400
    assert r.json()["code"] == "not_cancellable"


def test_only_owner_cancels(other_client, make_booking):
    booking = make_booking()
    assert other_client.put(f"{BASE}/{booking.id}/cancel/", {}, format="json").status_code == 403


def test_cancel_twice_is_refunded_once(customer, make_booking):
    booking = make_booking(payment_method="wallet", payment_status="paid")
    assert "ok" in services.cancel_booking(booking.id, customer)
    assert services.cancel_booking(booking.id, customer)["error"][0] == "not_cancellable"

    customer.refresh_from_db()
    assert customer.wallet == Decimal("50500.00")


# ==================== Tracking ====================

def test_worker_location_for_active_booking(customer_client, make_booking):
    booking = make_booking(status="on-the-way")
    data = customer_client.get(f"{BASE}/{booking.id}/worker-location/").json()["data"]

    assert data["status"] == "on-the-way"
    assert data["latitude"] is not None
    assert data["is_fresh"] is True
    # ~1.4 km at 30 km/h
    assert 1 < data["distance"] < 2
    assert data["eta_minutes"] == 3


def test_worker_location_hidden_when_sharing_disabled(customer_client, worker, make_booking):
    worker.toggle_location_sharing(False)
    booking = make_booking(status="confirmed")
    data = customer_client.get(f"{BASE}/{booking.id}/worker-location/").json()["data"]

    assert data["location_sharing_enabled"] is False
    assert data["latitude"] is None
    assert data["eta_minutes"] is None


@pytest.mark.parametrize("current", ["pending", "completed", "cancelled"])
def test_worker_location_not_trackable(customer_client, make_booking, current):
    booking = make_booking(status=current)
    r = customer_client.get(f"{BASE}/{booking.id}/worker-location/")
    assert r.status_code == 400
    assert r.json()["code"] == "tracking_unavailable"


def test_worker_location_forbidden_for_strangers(other_client, make_booking):
    booking = make_booking(status="on-the-way")
    assert other_client.get(f"{BASE}/{booking.id}/worker-location/").status_code == 403
