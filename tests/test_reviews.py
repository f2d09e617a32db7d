from decimal import Decimal

import pytest

from notifications.models import Notification
from reviews.models import Review

BASE = "/api/reviews"


@pytest.fixture
def completed_booking(make_booking):
    return make_booking(status="completed")


@pytest.fixture
def review(customer, worker, completed_booking):
    return Review.objects.create(
        booking=completed_booking, user=customer, worker=worker, rating=4, comment="Good job", quality=5,
    )


def test_create_review_updates_worker_rating(customer_client, worker, completed_booking):
    r = customer_client.post(f"{BASE}/", {
        "booking_id": completed_booking.id,
        "rating": 5,
        "comment": "Fixed the leak in minutes",
        "punctuality": 5,
    }, format="json")

    assert r.status_code == 201
    assert r.json()["data"]["service_type"] == "Plumber"
    worker.refresh_from_db()
    assert worker.rating == Decimal("5.00")
    assert worker.total_reviews == 1
    assert Notification.objects.filter(recipient=worker.user, notification_type="review_received").exists()


def test_review_requires_completed_booking(customer_client, make_booking):
    booking = make_booking(status="in-progress")
    r = customer_client.post(f"{BASE}/", {"booking_id": booking.id, "rating": 4}, format="json")
    assert r.status_code == 400
    assert r.json()["code"] == "booking_not_completed"


def test_only_booking_owner_reviews(other_client, completed_booking):
    r = other_client.post(f"{BASE}/", {"booking_id": completed_booking.id, "rating": 4}, format="json")
    assert r.status_code == 403


def test_one_review_per_booking(customer_client, review, completed_booking):
    r = customer_client.post(f"{BASE}/", {"booking_id": completed_booking.id, "rating": 2}, format="json")
    assert r.status_code == 400
    assert r.json()["code"] == "already_reviewed"


@pytest.mark.parametrize("rating", [0, 6])
def test_rating_out_of_range(customer_client, completed_booking, rating):
    r = customer_client.post(f"{BASE}/", {"booking_id": completed_booking.id, "rating": rating}, format="json")
    assert r.status_code == 400


def test_worker_reviews_and_stats(api_client, worker, review, make_booking, other_customer):
    Review.objects.create(
        booking=make_booking(status="completed", user=other_customer),
        user=other_customer, worker=worker, rating=2, quality=3,
    )

    body = api_client.get(f"{BASE}/worker/{worker.id}/", {"sort": "rating-low"}).json()
    assert [r["rating"] for r in body["data"]["reviews"]] == [2, 4]
    assert body["data"]["distribution"] == {"1": 0, "2": 1, "3": 0, "4": 1, "5": 0}

    stats = api_client.get(f"{BASE}/worker/{worker.id}/stats/").json()["data"]
    assert stats["average_rating"] == 3.0
    assert stats["total_reviews"] == 2
    assert stats["sub_ratings"]["quality"] == 4.0
    assert stats["sub_ratings"]["punctuality"] is None


def test_user_reviews(customer_client, review):
    body = customer_client.get(f"{BASE}/user/").json()
    assert body["meta"]["total"] == 1


def test_update_review_recalculates_rating(customer_client, worker, review):
    r = customer_client.put(f"{BASE}/{review.id}/", {"rating": 1}, format="json")
    assert r.status_code == 200
    worker.refresh_from_db()
    assert worker.rating == Decimal("1.00")


def test_only_author_updates_review(other_client, review):
    assert other_client.put(f"{BASE}/{review.id}/", {"rating": 1}, format="json").status_code == 403


def test_delete_review_resets_rating(customer_client, worker, review):
    assert customer_client.delete(f"{BASE}/{review.id}/").status_code == 200
    worker.refresh_from_db()
    assert worker.total_reviews == 0
    assert worker.rating == Decimal("0")


def test_worker_responds_to_review(worker_client, customer_client, review):
    assert customer_client.put(f"{BASE}/{review.id}/response/", {"response": "Hi"}, format="json").status_code == 403

    r = worker_client.put(f"{BASE}/{review.id}/response/", {"response": "Thanks!"}, format="json")
    assert r.status_code == 200
    assert r.json()["data"]["worker_response"] == "Thanks!"
    assert r.json()["data"]["response_date"]


def test_toggle_helpful(other_client, review):
    first = other_client.put(f"{BASE}/{review.id}/helpful/").json()["data"]
    assert first == {"helpful_count": 1, "is_helpful": True}

    second = other_client.put(f"{BASE}/{review.id}/helpful/").json()["data"]
    assert second == {"helpful_count": 0, "is_helpful": False}
