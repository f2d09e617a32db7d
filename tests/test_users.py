from decimal import Decimal

import pytest
from django.test import override_settings

from users.models import LocationHistory, WalletTransaction
from users.services import debit_wallet, credit_wallet

BASE = "/api/users"


def test_new_account_gets_default_wallet(customer, settings):
    assert customer.wallet == Decimal(settings.DEFAULT_WALLET_BALANCE)


def test_profile_get_and_update(customer_client):
    r = customer_client.put(f"{BASE}/profile/", {
        "name": "Renamed",
        "city": "Mysore",
        "pincode": "570001",
    }, format="json")

    assert r.status_code == 200
    data = r.json()["data"]
    assert data["name"] == "Renamed"
    assert data["city"] == "Mysore"

    assert customer_client.get(f"{BASE}/profile/").json()["data"]["pincode"] == "570001"


def test_update_location_records_history(customer_client, customer):
    r = customer_client.put(f"{BASE}/location/", {
        "latitude": 12.9716,
        "longitude": 77.5946,
        "accuracy": 15,
        "address": "Cubbon Park",
        "city": "Bangalore",
    }, format="json")

    assert r.status_code == 200
    customer.refresh_from_db()
    assert customer.has_location
    assert customer.city == "Bangalore"
    assert LocationHistory.objects.filter(user=customer).count() == 1

    history = customer_client.get(f"{BASE}/location/history/").json()
    assert history["meta"]["total"] == 1
    assert history["data"][0]["address"] == "Cubbon Park"


def test_update_location_out_of_range(customer_client):
    r = customer_client.put(f"{BASE}/location/", {"latitude": 95, "longitude": 10}, format="json")
    assert r.status_code == 400


@override_settings(LOCATION_HISTORY_LIMIT=3)
def test_location_history_is_trimmed(customer):
    for i in range(5):
        customer.update_location(Decimal("12.9") + Decimal(i) / 100, Decimal("77.5"))
    assert LocationHistory.objects.filter(user=customer).count() == 3


def test_dashboard_stats(customer_client, make_booking):
    make_booking(status="pending")
    make_booking(status="completed", total_price=Decimal("800.00"))
    make_booking(status="cancelled")

    data = customer_client.get(f"{BASE}/dashboard/stats/").json()["data"]
    assert data["total_bookings"] == 3
    assert data["pending_bookings"] == 1
    assert data["completed_bookings"] == 1
    assert data["cancelled_bookings"] == 1
    assert Decimal(str(data["total_spent"])) == Decimal("800.00")


def test_recent_bookings_limited_to_five(customer_client, make_booking):
    for _ in range(7):
        make_booking()
    r = customer_client.get(f"{BASE}/bookings/recent/")
    assert len(r.json()["data"]) == 5


def test_wallet_debit_and_credit(customer):
    result = debit_wallet(customer, Decimal("100"), "test debit")
    assert result["ok"]["balance"] == customer.wallet - Decimal("100")

    credit_wallet(customer, Decimal("40"), "test credit")
    customer.refresh_from_db()
    assert customer.wallet == Decimal("49940.00")
    assert WalletTransaction.objects.filter(user=customer).count() == 2


def test_wallet_debit_insufficient_balance(customer):
    result = debit_wallet(customer, customer.wallet + 1)
    assert result["error"][0] == "insufficient_balance"
    assert not WalletTransaction.objects.filter(user=customer).exists()


def test_wallet_rejects_non_positive_amount(customer):
    assert debit_wallet(customer, 0)["error"][0] == "invalid_amount"


def test_wallet_endpoint(customer_client, customer):
    debit_wallet(customer, Decimal("250"), "Booking: Plumber")
    body = customer_client.get(f"{BASE}/wallet/").json()

    assert body["meta"]["total"] == 1
    assert body["data"]["transactions"][0]["type"] == "debit"


@pytest.mark.django_db
def test_profile_requires_auth(api_client):
    assert api_client.get(f"{BASE}/profile/").status_code == 401


def _png(size):
    from io import BytesIO
    from PIL import Image
    from django.core.files.uploadedfile import SimpleUploadedFile

    buffer = BytesIO()
    Image.new("RGBA", size, (200, 30, 30, 128)).save(buffer, format="PNG")
    return SimpleUploadedFile("avatar.png", buffer.getvalue(), content_type="image/png")


def test_upload_profile_photo(customer_client, customer):
    r = customer_client.post("/api/auth/upload-photo/", {"photo": _png((300, 200))}, format="multipart")

    assert r.status_code == 200
    customer.refresh_from_db()
    assert customer.profile_image.name.endswith(".jpg")

    from PIL import Image
    with Image.open(customer.profile_image.path) as stored:
        assert stored.size == (800, 800)
        assert stored.format == "JPEG"


def test_upload_profile_photo_too_small(customer_client):
    r = customer_client.post("/api/auth/upload-photo/", {"photo": _png((50, 50))}, format="multipart")
    assert r.status_code == 400
    assert r.json()["code"] == "IMAGE_PROCESSING_ERROR"


def test_upload_profile_photo_missing(customer_client):
    r = customer_client.post("/api/auth/upload-photo/", {}, format="multipart")
    assert r.json()["code"] == "NO_IMAGE_PROVIDED"
