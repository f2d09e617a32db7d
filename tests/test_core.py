import pytest
from django.http import QueryDict

from core.utils import haversine_distance, get_page_params, pagination_meta, paginate, parse_coordinates
from users.utils import normalize_phone
from workers import matching


def test_haversine_same_point():
    assert haversine_distance(12.9716, 77.5946, 12.9716, 77.5946) == 0


def test_haversine_bangalore_to_mysore():
    # ~128 km great-circle
    assert 125 < haversine_distance(12.9716, 77.5946, 12.2958, 76.6394) < 131


def test_pagination_meta():
    assert pagination_meta(25, 2, 10) == {
        "total": 25, "page": 2, "limit": 10, "total_pages": 3, "has_next": True, "has_prev": True,
    }
    assert pagination_meta(0, 1, 10)["total_pages"] == 0


@pytest.mark.parametrize("query, expected", [
    ("", (1, 10)),
    ("page=3&limit=5", (3, 5)),
    ("page=-1&limit=abc", (1, 10)),
    ("limit=1000", (1, 100)),
])
def test_page_params_are_coerced(settings, query, expected):
    settings.DEFAULT_PAGE_SIZE = 10
    assert get_page_params(QueryDict(query)) == expected


def test_paginate_list():
    items, meta = paginate(list(range(12)), QueryDict("page=2&limit=5"))
    assert items == [5, 6, 7, 8, 9]
    assert meta["total_pages"] == 3


@pytest.mark.parametrize("lat, lng", [(None, 1), ("", 1), ("x", 1), (91, 0), (0, 181)])
def test_parse_coordinates_rejects(lat, lng):
    with pytest.raises(ValueError):
        parse_coordinates(lat, lng)


def test_parse_coordinates_accepts_strings():
    assert parse_coordinates("12.5", "-77") == (12.5, -77.0)


@pytest.mark.parametrize("raw", ["9876543210", "+91 98765 43210", "0091-9876543210"])
def test_normalize_phone(raw):
    assert normalize_phone(raw) == "9876543210"


@pytest.mark.parametrize("raw", ["12345", "", "not-a-number"])
def test_invalid_phone(raw):
    with pytest.raises(ValueError):
        normalize_phone(raw)


# ==================== Matching ====================

def test_smart_score_prefers_close_cheap_well_rated():
    near = matching.smart_score(1, 4.5, 200)
    far = matching.smart_score(40, 4.5, 200)
    pricey = matching.smart_score(1, 4.5, 900)
    assert near > far
    assert near > pricey
    assert matching.smart_score(0, 5, 0) == 1.0


def test_match_score_bounds():
    assert matching.match_score(0, 5, 20, 500) == 100
    assert 0 <= matching.match_score(60, 0, 0, 5000) <= 100


def test_skill_match_score():
    assert matching.skill_match_score(["Pipe Repair"], []) == 0.5
    assert matching.skill_match_score(["pipe repair"], ["Pipe Repair"]) == 1
    assert matching.skill_match_score(["pipe repair"], ["pipe"]) == 0.5
    assert matching.skill_match_score(["wiring"], ["pipe"], ["Plumber"], "Plumber") == 0.3


def test_price_score():
    assert matching.price_score(300, None) == 0.7
    assert matching.price_score(600, 500) == 0
    assert matching.price_score(250, 500) == pytest.approx(0.85)
    assert matching.price_score(450, 500) == pytest.approx(0.2)


def test_rating_score_uses_prior_for_new_workers():
    assert matching.rating_score(5, 0) == pytest.approx(0.6)
    assert matching.rating_score(5, 10) == pytest.approx(1.0)


def test_distance_score():
    assert matching.distance_score(None) == 0.5
    assert matching.distance_score(0) == 1
    assert matching.distance_score(30) == 0


def test_recommendation_reason_uses_top_two():
    reason = matching.recommendation_reason({
        "skill": 0.9, "rating": 0.2, "price": 0.8, "availability": 0.1, "distance": 0.3,
    })
    assert reason == "Excellent skill match & Great price"
