from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from bookings.models import Booking
from users.models import User
from workers.models import Worker

PASSWORD = "Test@1234"

# MG Road, Bangalore
WORKER_LAT = Decimal("12.975300")
WORKER_LNG = Decimal("77.606600")
CUSTOMER_LAT = 12.971600
CUSTOMER_LNG = 77.594600


@pytest.fixture(autouse=True)
def _isolated_settings(settings, tmp_path):
    settings.FIREBASE_NOTIFICATIONS = {**settings.FIREBASE_NOTIFICATIONS, 'ENABLED': False}
    settings.MEDIA_ROOT = tmp_path / "media"
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"


@pytest.fixture(autouse=True)
def _clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def customer(db):
    return User.objects.create_user(
        "customer@example.com", PASSWORD, name="Pytest Customer", phone="9876543210"
    )


@pytest.fixture
def other_customer(db):
    return User.objects.create_user(
        "other@example.com", PASSWORD, name="Other Customer", phone="9876543212"
    )


@pytest.fixture
def worker_user(db):
    return User.objects.create_worker(
        "worker@example.com", PASSWORD, name="Ravi Kumar", phone="9876543211"
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_admin("admin@example.com", PASSWORD, name="Admin")


@pytest.fixture
def worker(worker_user):
    """Approved plumber with a fresh location near MG Road"""
    return Worker.objects.create(
        user=worker_user,
        categories=["Plumber"],
        skills=["pipe fitting", "leak repair"],
        experience=5,
        price_per_hour=Decimal("300.00"),
        city="Bangalore",
        latitude=WORKER_LAT,
        longitude=WORKER_LNG,
        location_updated_at=timezone.now(),
        approval_status="approved",
        verified=True,
    )


@pytest.fixture
def make_worker(db):
    counter = {"n": 0}

    def _make(**fields):
        counter["n"] += 1
        n = counter["n"]
        user = User.objects.create_worker(
            f"worker{n}@example.com", PASSWORD, name=fields.pop("name", f"Worker {n}")
        )
        defaults = {
            "categories": ["Electrician"],
            "skills": ["wiring"],
            "experience": 3,
            "price_per_hour": Decimal("250.00"),
            "latitude": WORKER_LAT,
            "longitude": WORKER_LNG,
            "location_updated_at": timezone.now(),
            "approval_status": "approved",
        }
        defaults.update(fields)
        return Worker.objects.create(user=user, **defaults)

    return _make


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def customer_client(customer):
    return _client_for(customer)


@pytest.fixture
def other_client(other_customer):
    return _client_for(other_customer)


@pytest.fixture
def worker_client(worker_user):
    return _client_for(worker_user)


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def booking_payload(worker):
    return {
        "worker_id": worker.id,
        "service_type": "Plumber",
        "description": "Kitchen sink is leaking",
        "scheduled_date": (timezone.localdate() + timedelta(days=1)).isoformat(),
        "scheduled_time": "10:30",
        "address": "12 Brigade Road",
        "city": "Bangalore",
        "latitude": CUSTOMER_LAT,
        "longitude": CUSTOMER_LNG,
        "total_price": "500.00",
    }


@pytest.fixture
def make_booking(customer, worker):
    """Booking created directly in the database with any status"""

    def _make(status="pending", user=None, **fields):
        defaults = {
            "service_type": "Plumber",
            "scheduled_date": timezone.localdate() + timedelta(days=1),
            "scheduled_time": "10:30",
            "address": "12 Brigade Road",
            "latitude": Decimal("12.971600"),
            "longitude": Decimal("77.594600"),
            "total_price": Decimal("500.00"),
        }
        defaults.update(fields)
        return Booking.objects.create(
            user=user or customer, worker=defaults.pop("worker", worker), status=status, **defaults
        )

    return _make
