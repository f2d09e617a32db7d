# admin_api/filters.py
import django_filters
from django.db.models import Q

from bookings.models import Booking
from reviews.models import Review
from users.models import User
from workers.models import Worker


class UserFilter(django_filters.FilterSet):
    role = django_filters.ChoiceFilter(choices=User.ROLE_CHOICES)
    status = django_filters.ChoiceFilter(
        choices=[('active', 'Active'), ('inactive', 'Inactive')],
        method='filter_status'
    )
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = User
        fields = ['role']

    def filter_status(self, queryset, name, value):
        return queryset.filter(is_active=(value == 'active'))

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(name__icontains=value) | Q(email__icontains=value) | Q(phone__icontains=value)
        )


class WorkerFilter(django_filters.FilterSet):
    approval_status = django_filters.ChoiceFilter(choices=Worker.APPROVAL_CHOICES)
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Worker
        fields = ['approval_status']

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(user__name__icontains=value) | Q(user__email__icontains=value) |
            Q(user__phone__icontains=value) | Q(city__icontains=value)
        )


class BookingFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(
        choices=Booking.STATUS_CHOICES + [(alias, alias) for alias in Booking.STATUS_ALIASES],
        method='filter_status'
    )
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Booking
        fields = ['status']

    def filter_status(self, queryset, name, value):
        return queryset.filter(status=Booking.normalize_status(value))

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(service_type__icontains=value) | Q(user__name__icontains=value) |
            Q(user__email__icontains=value) | Q(worker__user__name__icontains=value)
        )


class ReviewFilter(django_filters.FilterSet):
    rating = django_filters.ChoiceFilter(choices=[(value, str(value)) for value in range(1, 6)])

    class Meta:
        model = Review
        fields = ['rating']
