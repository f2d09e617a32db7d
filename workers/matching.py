# workers/matching.py
"""
Ranking helpers for worker search.

smart_score      - nearby listing ("smart" sort): distance/rating/price
match_score      - search listing: 0..100 score incl. experience
recommend        - composite recommendation used by /workers/recommend/
"""
from datetime import timedelta

from django.utils import timezone

SMART_WEIGHTS = {'distance': 0.4, 'rating': 0.4, 'price': 0.2}
SMART_MAX_DISTANCE_KM = 50
SMART_MAX_PRICE = 1000

MATCH_MAX_DISTANCE_KM = 50
MATCH_MAX_EXPERIENCE = 20
MATCH_DEFAULT_AVG_PRICE = 500

RECOMMEND_WEIGHTS = {
    'skill': 0.35,
    'rating': 0.25,
    'price': 0.15,
    'availability': 0.15,
    'distance': 0.10,
}
RECOMMEND_DISTANCE_HORIZON_KM = 15
RATING_CONFIDENCE_JOBS = 5
RATING_PRIOR = 0.6

RECOMMENDATION_REASONS = {
    'skill': 'Excellent skill match',
    'rating': 'Highly rated',
    'price': 'Great price',
    'availability': 'Recently active',
    'distance': 'Close by',
}


def smart_score(distance, rating, price):
    """Higher is better. Distance and price count inversely."""
    normalized_distance = min(distance / SMART_MAX_DISTANCE_KM, 1)
    normalized_rating = float(rating) / 5
    normalized_price = min(float(price) / SMART_MAX_PRICE, 1)
    score = (
        SMART_WEIGHTS['distance'] * (1 - normalized_distance) +
        SMART_WEIGHTS['rating'] * normalized_rating +
        SMART_WEIGHTS['price'] * (1 - normalized_price)
    )
    return round(score, 2)


def match_score(distance, rating, experience, price,
                max_distance=MATCH_MAX_DISTANCE_KM, avg_price=MATCH_DEFAULT_AVG_PRICE):
    score = 0
    score += max(0, 100 * (1 - distance / max_distance)) * 0.4
    score += (float(rating) / 5) * 100 * 0.35
    score += min(100, experience / MATCH_MAX_EXPERIENCE * 100) * 0.15
    score += max(0, 100 * (1 - abs(float(price) - avg_price) / avg_price)) * 0.1
    return round(score)


# ====== Recommendation ======

def skill_match_score(worker_skills, required_skills, categories=None, required_category=None):
    if not required_skills:
        return 0.5

    matches = 0.0
    for required in required_skills:
        required = required.lower()
        for skill in worker_skills:
            skill = skill.lower()
            if required == skill:
                matches += 1
            elif required in skill or skill in required:
                matches += 0.5

    category_bonus = 0.3 if required_category and required_category in (categories or []) else 0
    return min(min(matches / len(required_skills), 1) + category_bonus, 1)


def price_score(price, max_budget):
    if not max_budget:
        return 0.7

    price = float(price)
    max_budget = float(max_budget)
    if price > max_budget:
        return 0

    ratio = price / max_budget
    if ratio <= 0.7:
        return 1 - ratio * 0.3
    return 0.5 - (ratio - 0.7) * 1.5


def rating_score(rating, completed_jobs):
    """Rating pulled toward a 3.0 prior until the worker has a few jobs"""
    confidence = min(completed_jobs / RATING_CONFIDENCE_JOBS, 1)
    return confidence * (float(rating) / 5) + (1 - confidence) * RATING_PRIOR


def distance_score(distance):
    if distance is None:
        return 0.5
    return max(1 - distance / RECOMMEND_DISTANCE_HORIZON_KM, 0)


def availability_scores(worker_ids):
    """
    1.0 when the worker had activity in the last 24h,
    0.7 with upcoming pending/confirmed jobs, else 0.5
    """
    from bookings.models import Booking

    now = timezone.now()
    recent = set(
        Booking.objects.filter(
            worker_id__in=worker_ids,
            status__in=['completed', 'in-progress', 'on-the-way'],
            updated_at__gte=now - timedelta(hours=24),
        ).values_list('worker_id', flat=True)
    )
    upcoming = set(
        Booking.objects.filter(
            worker_id__in=worker_ids,
            status__in=['pending', 'confirmed'],
            scheduled_date__gte=now.date(),
        ).values_list('worker_id', flat=True)
    )
    return {
        worker_id: 1.0 if worker_id in recent else 0.7 if worker_id in upcoming else 0.5
        for worker_id in worker_ids
    }


def recommendation_reason(scores):
    top = sorted(scores.items(), key=lambda item: item[1], reverse=True)[:2]
    return ' & '.join(RECOMMENDATION_REASONS[key] for key, _ in top)


def recommend(workers, latitude, longitude, skills=None, category=None, max_budget=None, limit=10):
    """
    Rank workers for a request. Returns a list of dicts
    {worker, distance, scores, composite_score, rank, reason}.
    """
    workers = list(workers)
    availability = availability_scores([w.id for w in workers])

    ranked = []
    for worker in workers:
        distance = worker.distance_to(latitude, longitude)
        scores = {
            'skill': skill_match_score(worker.skills, skills or [], worker.categories, category),
            'rating': rating_score(worker.rating, worker.completed_jobs),
            'price': price_score(worker.price_per_hour, max_budget),
            'availability': availability.get(worker.id, 0.5),
            'distance': distance_score(distance),
        }
        composite = sum(scores[key] * weight for key, weight in RECOMMEND_WEIGHTS.items())
        ranked.append({
            'worker': worker,
            'distance': round(distance, 2) if distance is not None else None,
            'scores': {key: round(value, 3) for key, value in scores.items()},
            'composite_score': round(composite, 4),
        })

    ranked.sort(key=lambda item: item['composite_score'], reverse=True)
    ranked = ranked[:limit]
    for index, item in enumerate(ranked, start=1):
        item['rank'] = index
        item['reason'] = recommendation_reason(item['scores'])
    return ranked
