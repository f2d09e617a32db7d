# workers/serializers.py
from rest_framework import serializers

from users.serializers import UserBriefSerializer
from .models import Worker, CATEGORIES, DOCUMENT_TYPES

WEEK_DAYS = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']

# default result count per urgency
URGENCY_LIMITS = {'normal': 20, 'high': 10}


def _clean_string_list(value, field_name):
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise serializers.ValidationError(f"{field_name} must be a list of strings")
    cleaned = []
    for item in value:
        item = item.strip()
        if item and item not in cleaned:
            cleaned.append(item)
    return cleaned


class WorkerWriteMixin:
    """Validation shared by register and profile update"""

    def validate_categories(self, value):
        value = _clean_string_list(value, 'categories')
        if not value:
            raise serializers.ValidationError("Select at least one category")
        unknown = [c for c in value if c not in CATEGORIES]
        if unknown:
            raise serializers.ValidationError(f"Unknown categories: {', '.join(unknown)}")
        return value

    def validate_skills(self, value):
        return _clean_string_list(value, 'skills')

    def validate_working_hours(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("working_hours must be an object keyed by weekday")
        unknown = [day for day in value if day not in WEEK_DAYS]
        if unknown:
            raise serializers.ValidationError(f"Unknown days: {', '.join(unknown)}")
        return value

    def validate(self, attrs):
        latitude = attrs.get('latitude')
        longitude = attrs.get('longitude')
        if (latitude is None) != (longitude is None):
            raise serializers.ValidationError("latitude and longitude must be provided together")
        if latitude is not None:
            attrs['latitude'] = round(latitude, 6)
            attrs['longitude'] = round(longitude, 6)
        return attrs


class WorkerRegisterSerializer(WorkerWriteMixin, serializers.ModelSerializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90, required=False, allow_null=True)
    longitude = serializers.FloatField(min_value=-180, max_value=180, required=False, allow_null=True)

    class Meta:
        model = Worker
        fields = [
            'categories', 'skills', 'experience', 'price_per_hour', 'service_radius',
            'bio', 'working_hours', 'address', 'city', 'latitude', 'longitude',
        ]
        extra_kwargs = {
            'categories': {'required': True},
            'price_per_hour': {'required': True},
        }


class WorkerProfileUpdateSerializer(WorkerRegisterSerializer):
    """
    Worker-editable fields only; approval and stats stay read-only
    """

    class Meta(WorkerRegisterSerializer.Meta):
        extra_kwargs = {}


class WorkerListSerializer(serializers.ModelSerializer):
    """Search / nearby listing"""
    user = UserBriefSerializer(read_only=True)
    distance = serializers.SerializerMethodField()
    score = serializers.SerializerMethodField()

    class Meta:
        model = Worker
        fields = [
            'id', 'user', 'categories', 'skills', 'experience', 'price_per_hour',
            'service_radius', 'rating', 'total_reviews', 'completed_jobs',
            'availability', 'approval_status', 'verified', 'city',
            'latitude', 'longitude', 'distance', 'score',
        ]

    def get_distance(self, obj):
        distance = getattr(obj, 'calculated_distance', None)
        if distance is None:
            return None
        return round(distance, 2)

    def get_score(self, obj):
        # set by smart / match_score sorting
        return getattr(obj, 'score', None)


class WorkerDetailSerializer(WorkerListSerializer):
    completion_rate = serializers.FloatField(read_only=True)
    location_status = serializers.CharField(read_only=True)
    documents = serializers.SerializerMethodField()

    class Meta(WorkerListSerializer.Meta):
        fields = WorkerListSerializer.Meta.fields + [
            'bio', 'working_hours', 'address', 'total_jobs', 'total_earnings',
            'completion_rate', 'is_active', 'approval_message', 'approved_at',
            'rejection_reason', 'location_sharing_enabled', 'location_updated_at',
            'location_status', 'documents', 'created_at',
        ]

    def get_documents(self, obj):
        request = self.context.get('request')
        documents = {}
        for doc_type in DOCUMENT_TYPES:
            file = getattr(obj, doc_type)
            if file:
                documents[doc_type] = request.build_absolute_uri(file.url) if request else file.url
            else:
                documents[doc_type] = None
        return documents


class PublicWorkerDetailSerializer(WorkerDetailSerializer):
    """Public profile: no earnings, no documents"""

    class Meta(WorkerDetailSerializer.Meta):
        fields = [
            f for f in WorkerDetailSerializer.Meta.fields
            if f not in ('total_earnings', 'documents', 'rejection_reason', 'approval_message')
        ]


class AvailabilitySerializer(serializers.Serializer):
    availability = serializers.ChoiceField(choices=[c[0] for c in Worker.AVAILABILITY_CHOICES])


class DocumentUploadSerializer(serializers.Serializer):
    document_type = serializers.ChoiceField(choices=DOCUMENT_TYPES)
    document = serializers.FileField()


class WorkerLocationSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    accuracy = serializers.FloatField(required=False, allow_null=True, min_value=0)


class LocationToggleSerializer(serializers.Serializer):
    enabled = serializers.BooleanField(required=True)


class RecommendationRequestSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    category = serializers.ChoiceField(choices=CATEGORIES, required=False, allow_null=True)
    skills = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    max_budget = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    radius = serializers.FloatField(min_value=0.1, max_value=100, required=False, default=10)
    urgency = serializers.ChoiceField(choices=list(URGENCY_LIMITS), required=False, default='normal')
    limit = serializers.IntegerField(min_value=1, max_value=50, required=False, allow_null=True)
