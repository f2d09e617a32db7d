from decimal import Decimal

import pytest
from django.core import mail
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

from admin_api.email_service import store_otp, verify_otp
from bookings.models import Booking
from notifications.models import Notification
from reviews.models import Review
from users.models import User
from workers.models import Worker

from .conftest import PASSWORD

AUTH = "/api/auth/admin"
BASE = "/api/admin"


# ==================== Authentication ====================

def test_admin_login(api_client, admin_user):
    r = api_client.post(f"{AUTH}/login/", {"email": admin_user.email, "password": PASSWORD}, format="json")
    assert r.status_code == 200
    assert r.json()["user"]["role"] == "admin"

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.json()['access']}")
    assert api_client.get(f"{AUTH}/me/").json()["data"]["email"] == admin_user.email


def test_admin_login_rejects_customers(api_client, customer):
    r = api_client.post(f"{AUTH}/login/", {"email": customer.email, "password": PASSWORD}, format="json")
    assert r.status_code == 401


def test_admin_login_disabled(api_client, admin_user):
    admin_user.is_active = False
    admin_user.save()
    r = api_client.post(f"{AUTH}/login/", {"email": admin_user.email, "password": PASSWORD}, format="json")
    assert r.status_code == 403


def test_admin_routes_reject_customers(customer_client):
    assert customer_client.get(f"{BASE}/dashboard/stats/").status_code == 403
    assert customer_client.get(f"{AUTH}/me/").status_code == 403


def test_forgot_password_sends_code(api_client, admin_user):
    r = api_client.post(f"{AUTH}/forgotpassword/", {"email": admin_user.email}, format="json")
    assert r.status_code == 200
    assert len(mail.outbox) == 1
    assert admin_user.email in mail.outbox[0].to


def test_forgot_password_unknown_email_same_answer(api_client, customer):
    r = api_client.post(f"{AUTH}/forgotpassword/", {"email": customer.email}, format="json")
    assert r.status_code == 200
    assert len(mail.outbox) == 0


def test_reset_password_with_code(api_client, admin_user):
    store_otp(admin_user.email, "123456")
    r = api_client.post(f"{AUTH}/resetpassword/", {
        "email": admin_user.email,
        "otp": "123456",
        "new_password": "Brand@New1",
        "new_password_confirm": "Brand@New1",
    }, format="json")

    assert r.status_code == 200
    admin_user.refresh_from_db()
    assert admin_user.check_password("Brand@New1")
    # the code is single use
    assert verify_otp(admin_user.email, "123456")[0] is False


def test_reset_password_wrong_code(api_client, admin_user):
    store_otp(admin_user.email, "123456")
    r = api_client.post(f"{AUTH}/resetpassword/", {
        "email": admin_user.email,
        "otp": "654321",
        "new_password": "Brand@New1",
        "new_password_confirm": "Brand@New1",
    }, format="json")
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_otp"


def test_otp_burnt_after_max_attempts(admin_user, settings):
    store_otp(admin_user.email, "123456")
    for _ in range(settings.ADMIN_OTP_MAX_ATTEMPTS):
        assert verify_otp(admin_user.email, "000000")[0] is False
    valid, message = verify_otp(admin_user.email, "123456")
    assert valid is False
    assert "Too many attempts" in message


def test_reset_password_mismatch(api_client, admin_user):
    r = api_client.post(f"{AUTH}/resetpassword/", {
        "email": admin_user.email,
        "otp": "123456",
        "new_password": "Brand@New1",
        "new_password_confirm": "Other@New1",
    }, format="json")
    assert r.status_code == 400
    assert "new_password_confirm" in r.json()["detail"]


# ==================== Statistics ====================

def test_dashboard_stats(admin_client, customer, worker, make_booking):
    make_booking(status="completed", end_time=timezone.now(), total_price=Decimal("1000.00"))
    make_booking(status="pending")

    data = admin_client.get(f"{BASE}/dashboard/stats/").json()["data"]
    assert data["total_users"] == 1
    assert data["total_workers"] == 1
    assert data["total_bookings"] == 2
    assert data["active_bookings"] == 1
    assert data["bookings_by_status"] == {"completed": 1, "pending": 1}
    assert Decimal(str(data["total_revenue"])) == Decimal("100.00")
    assert data["user_growth"]["this_week"] == 2
    assert len(data["monthly_revenue"]) == 6
    assert Decimal(str(data["monthly_revenue"][-1]["revenue"])) == Decimal("100.00")


def test_system_stats(admin_client, customer, worker, make_worker):
    make_worker(approval_status="pending")
    customer.is_active = False
    customer.save()

    data = admin_client.get(f"{BASE}/system/stats/").json()["data"]
    assert data["users"]["inactive"] == 1
    assert data["workers_by_approval"] == {"approved": 1, "pending": 1}


@pytest.mark.parametrize("period", ["daily", "monthly", "yearly"])
def test_revenue_analytics(admin_client, make_booking, period):
    make_booking(status="completed", end_time=timezone.now(), total_price=Decimal("500.00"))
    make_booking(status="completed", end_time=timezone.now(), total_price=Decimal("300.00"))
    make_booking(status="cancelled", total_price=Decimal("900.00"))

    data = admin_client.get(f"{BASE}/revenue/analytics/", {"period": period}).json()["data"]
    assert data["total_bookings"] == 2
    assert Decimal(str(data["total_revenue"])) == Decimal("80.00")
    assert len(data["series"]) == 1


def test_revenue_analytics_invalid_period(admin_client):
    assert admin_client.get(f"{BASE}/revenue/analytics/", {"period": "hourly"}).status_code == 400


# ==================== Users ====================

def test_user_list_filters(admin_client, customer, worker_user, make_booking):
    make_booking()

    body = admin_client.get(f"{BASE}/users/", {"role": "user"}).json()
    assert body["meta"]["total"] == 1
    assert body["data"][0]["total_bookings"] == 1

    body = admin_client.get(f"{BASE}/users/", {"search": "ravi"}).json()
    assert [u["id"] for u in body["data"]] == [worker_user.id]


def test_toggle_user_status(admin_client, customer):
    r = admin_client.patch(f"{BASE}/users/{customer.id}/toggle-status/")
    assert r.json()["data"]["is_active"] is False

    body = admin_client.get(f"{BASE}/users/", {"status": "inactive"}).json()
    assert body["meta"]["total"] == 1


def test_list_rejects_unknown_filter_value(admin_client):
    r = admin_client.get(f"{BASE}/users/", {"role": "superuser"})
    assert r.status_code == 400
    assert "role" in r.json()["detail"]


def test_admin_accounts_are_protected(admin_client, admin_user):
    assert admin_client.patch(f"{BASE}/users/{admin_user.id}/toggle-status/").status_code == 400
    assert admin_client.delete(f"{BASE}/users/{admin_user.id}/").status_code == 400


def test_delete_user_blocked_by_active_booking(admin_client, customer, worker_user, make_booking):
    booking = make_booking(status="confirmed")

    assert admin_client.delete(f"{BASE}/users/{customer.id}/").json()["code"] == "active_bookings"
    assert admin_client.delete(f"{BASE}/users/{worker_user.id}/").json()["code"] == "active_bookings"

    booking.status = "completed"
    booking.save()
    assert admin_client.delete(f"{BASE}/users/{customer.id}/").status_code == 200
    assert not User.objects.filter(pk=customer.pk).exists()


# ==================== Workers ====================

def test_approve_worker(admin_client, admin_user, make_worker):
    pending = make_worker(approval_status="pending")
    r = admin_client.patch(f"{BASE}/workers/{pending.id}/approve/", {"message": "Welcome"}, format="json")

    assert r.status_code == 200
    pending.refresh_from_db()
    assert pending.approval_status == "approved"
    assert pending.approved_by == admin_user
    assert pending.verified
    assert Notification.objects.filter(recipient=pending.user, notification_type="worker_approved").exists()


def test_reject_worker_requires_reason(admin_client, make_worker):
    pending = make_worker(approval_status="pending")
    assert admin_client.patch(f"{BASE}/workers/{pending.id}/reject/", {}, format="json").status_code == 400

    r = admin_client.patch(f"{BASE}/workers/{pending.id}/reject/", {"reason": "Blurry ID"}, format="json")
    assert r.status_code == 200
    pending.refresh_from_db()
    assert pending.approval_status == "rejected"
    assert pending.rejection_reason == "Blurry ID"
    assert pending.rejected_at is not None


def test_worker_list_filter(admin_client, worker, make_worker):
    make_worker(approval_status="pending")
    body = admin_client.get(f"{BASE}/workers/", {"approval_status": "pending"}).json()
    assert body["meta"]["total"] == 1


# ==================== Bookings & reviews ====================

def test_booking_status_override_bypasses_graph(admin_client, make_booking):
    booking = make_booking(status="completed")
    r = admin_client.patch(f"{BASE}/bookings/{booking.id}/status/", {
        "status": "in-progress", "admin_notes": "Customer reported unfinished work",
    }, format="json")

    assert r.status_code == 200
    booking.refresh_from_db()
    assert booking.status == "in-progress"
    assert booking.admin_notes == "Customer reported unfinished work"


def test_booking_override_cancel_refunds(admin_client, customer, make_booking):
    booking = make_booking(status="in-progress", payment_method="wallet", payment_status="paid")
    admin_client.patch(f"{BASE}/bookings/{booking.id}/status/", {"status": "cancelled"}, format="json")

    booking.refresh_from_db()
    customer.refresh_from_db()
    assert booking.payment_status == "refunded"
    assert customer.wallet == Decimal("50500.00")


def test_booking_override_reject_refunds(admin_client, customer, make_booking):
    booking = make_booking(status="pending", payment_method="wallet", payment_status="paid")
    admin_client.patch(
        f"{BASE}/bookings/{booking.id}/status/", {"status": "rejected", "admin_notes": "Duplicate request"},
        format="json",
    )

    booking.refresh_from_db()
    customer.refresh_from_db()
    assert booking.payment_status == "refunded"
    assert booking.rejection_reason == "Duplicate request"
    assert customer.wallet == Decimal("50500.00")


def test_booking_override_missing(admin_client):
    r = admin_client.patch(f"{BASE}/bookings/999/status/", {"status": "cancelled"}, format="json")
    assert r.status_code == 404


def test_booking_list_search(admin_client, make_booking):
    make_booking(service_type="Electrician")
    make_booking()
    assert admin_client.get(f"{BASE}/bookings/", {"search": "electric"}).json()["meta"]["total"] == 1
    assert admin_client.get(f"{BASE}/bookings/", {"status": "pending"}).json()["meta"]["total"] == 2


def test_booking_list_status_filter(admin_client, make_booking):
    make_booking(status="confirmed")

    assert admin_client.get(f"{BASE}/bookings/", {"status": "accepted"}).json()["meta"]["total"] == 1

    r = admin_client.get(f"{BASE}/bookings/", {"status": "bogus"})
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_input"
    assert "status" in r.json()["detail"]


@pytest.mark.parametrize("rating", ["0", "6", "abc"])
def test_review_list_rejects_rating_out_of_range(admin_client, rating):
    r = admin_client.get(f"{BASE}/reviews/", {"rating": rating})
    assert r.status_code == 400
    assert "rating" in r.json()["detail"]


def test_delete_review(admin_client, customer, worker, make_booking):
    review = Review.objects.create(
        booking=make_booking(status="completed"), user=customer, worker=worker, rating=1,
    )
    assert admin_client.get(f"{BASE}/reviews/", {"rating": 1}).json()["meta"]["total"] == 1

    assert admin_client.delete(f"{BASE}/reviews/{review.id}/").status_code == 200
    worker.refresh_from_db()
    assert worker.total_reviews == 0


# ==================== Management commands ====================

@pytest.mark.django_db
def test_create_admin_command():
    call_command("create_admin", email="Root@Example.com", password="Root@1234", name="Root")
    admin = User.objects.get(email="root@example.com")
    assert admin.is_admin and admin.is_staff


@pytest.mark.django_db
def test_create_admin_command_requires_credentials(monkeypatch):
    monkeypatch.delenv("ADMIN_EMAIL", raising=False)
    with pytest.raises(CommandError):
        call_command("create_admin", email=None, password=None)


@pytest.mark.django_db
def test_seed_sample_workers():
    call_command("seed_sample_workers")
    assert Worker.objects.filter(approval_status="approved").count() == 5
    assert not Booking.objects.exists()