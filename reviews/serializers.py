# reviews/serializers.py
from rest_framework import serializers

from users.serializers import UserBriefSerializer
from .models import Review, SUB_RATINGS


def _rating_field(required=False):
    return serializers.IntegerField(
        min_value=1, max_value=5, required=required, allow_null=not required
    )


class ReviewCreateSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField()
    rating = _rating_field(required=True)
    comment = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')
    punctuality = _rating_field()
    quality = _rating_field()
    behavior = _rating_field()
    value = _rating_field()


class ReviewUpdateSerializer(serializers.ModelSerializer):
    rating = _rating_field()

    class Meta:
        model = Review
        fields = ['rating', 'comment'] + SUB_RATINGS

    def validate_rating(self, value):
        if value is None:
            raise serializers.ValidationError("Rating cannot be empty")
        return value


class ReviewResponseSerializer(serializers.Serializer):
    response = serializers.CharField(max_length=500)


class ReviewSerializer(serializers.ModelSerializer):
    user = UserBriefSerializer(read_only=True)
    booking_id = serializers.IntegerField(read_only=True)
    worker_id = serializers.IntegerField(read_only=True)
    service_type = serializers.CharField(source='booking.service_type', read_only=True)
    is_helpful = serializers.SerializerMethodField()

    class Meta:
        model = Review
        fields = [
            'id', 'user', 'worker_id', 'booking_id', 'service_type', 'rating', 'comment',
            'punctuality', 'quality', 'behavior', 'value',
            'worker_response', 'response_date', 'helpful_count', 'is_helpful',
            'is_verified', 'created_at', 'updated_at',
        ]

    def get_is_helpful(self, obj):
        request = self.context.get('request')
        if request is None or not request.user.is_authenticated:
            return False
        return obj.helpful_by.filter(pk=request.user.pk).exists()
