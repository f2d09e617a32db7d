# reviews/utils.py
from django.db.models import Avg, Count

from .models import SUB_RATINGS


def rating_distribution(queryset):
    """{1: n, 2: n, ..., 5: n} for a review queryset"""
    counts = {
        row['rating']: row['count']
        for row in queryset.order_by().values('rating').annotate(count=Count('id'))
    }
    return {star: counts.get(star, 0) for star in range(1, 6)}


def review_stats(queryset):
    aggregates = queryset.aggregate(
        average=Avg('rating'),
        total=Count('id'),
        **{f'avg_{name}': Avg(name) for name in SUB_RATINGS}
    )
    return {
        'average_rating': round(aggregates['average'] or 0, 2),
        'total_reviews': aggregates['total'],
        'distribution': rating_distribution(queryset),
        'sub_ratings': {
            name: round(aggregates[f'avg_{name}'], 2) if aggregates[f'avg_{name}'] is not None else None
            for name in SUB_RATINGS
        },
    }
