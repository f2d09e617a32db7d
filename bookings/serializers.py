# bookings/serializers.py
from decimal import Decimal

from django.utils import timezone
from rest_framework import serializers

from users.serializers import UserBriefSerializer
from .models import Booking

STATUS_INPUT_CHOICES = [c[0] for c in Booking.STATUS_CHOICES] + list(Booking.STATUS_ALIASES)


class BookingWorkerSerializer(serializers.Serializer):
    """Compact worker block embedded in booking payloads"""
    id = serializers.IntegerField()
    user = UserBriefSerializer()
    categories = serializers.ListField()
    rating = serializers.DecimalField(max_digits=3, decimal_places=2)
    price_per_hour = serializers.DecimalField(max_digits=10, decimal_places=2)


class BookingCreateSerializer(serializers.Serializer):
    worker_id = serializers.IntegerField()
    service_type = serializers.CharField(max_length=100)
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')
    scheduled_date = serializers.DateField()
    scheduled_time = serializers.CharField(max_length=20)
    estimated_duration = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal('0.5'), required=False, default=Decimal('1')
    )
    address = serializers.CharField(max_length=300)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    state = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    pincode = serializers.CharField(max_length=10, required=False, allow_blank=True, default='')
    landmark = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    latitude = serializers.FloatField(min_value=-90, max_value=90, required=False, allow_null=True)
    longitude = serializers.FloatField(min_value=-180, max_value=180, required=False, allow_null=True)
    total_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))
    payment_method = serializers.ChoiceField(
        choices=[c[0] for c in Booking.PAYMENT_METHOD_CHOICES], required=False, default='cash'
    )
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_scheduled_date(self, value):
        if value < timezone.localdate():
            raise serializers.ValidationError("Scheduled date cannot be in the past")
        return value

    def validate(self, attrs):
        latitude = attrs.get('latitude')
        longitude = attrs.get('longitude')
        if (latitude is None) != (longitude is None):
            raise serializers.ValidationError("latitude and longitude must be provided together")
        if latitude is not None:
            attrs['latitude'] = round(latitude, 6)
            attrs['longitude'] = round(longitude, 6)
        else:
            attrs.pop('latitude', None)
            attrs.pop('longitude', None)
        return attrs


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=STATUS_INPUT_CHOICES)
    rejection_reason = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_status(self, value):
        return Booking.normalize_status(value)


class BookingCancelSerializer(serializers.Serializer):
    cancellation_reason = serializers.CharField(required=False, allow_blank=True, default='')


class AdminBookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=STATUS_INPUT_CHOICES)
    admin_notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_status(self, value):
        return Booking.normalize_status(value)


class BookingListSerializer(serializers.ModelSerializer):
    user = UserBriefSerializer(read_only=True)
    worker = BookingWorkerSerializer(read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id', 'user', 'worker', 'service_type', 'scheduled_date', 'scheduled_time',
            'address', 'city', 'status', 'payment_status', 'payment_method',
            'total_price', 'created_at',
        ]


class BookingDetailSerializer(BookingListSerializer):
    has_review = serializers.SerializerMethodField()

    class Meta(BookingListSerializer.Meta):
        fields = BookingListSerializer.Meta.fields + [
            'description', 'estimated_duration', 'state', 'pincode', 'landmark',
            'latitude', 'longitude', 'platform_fee', 'worker_earning',
            'start_time', 'end_time', 'actual_duration', 'cancellation_reason',
            'rejection_reason', 'admin_notes', 'notes', 'has_review', 'updated_at',
        ]

    def get_has_review(self, obj):
        return hasattr(obj, 'review')
