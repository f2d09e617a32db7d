# admin_api/serializers.py
from rest_framework import serializers

from reviews.serializers import ReviewSerializer
from users.models import User
from workers.serializers import WorkerDetailSerializer


class AdminLoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate_email(self, value):
        return value.lower()


class AdminPasswordResetRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()

    def validate_email(self, value):
        return value.lower()


class AdminPasswordResetConfirmSerializer(serializers.Serializer):
    email = serializers.EmailField()
    otp = serializers.RegexField(r'^\d{6}$', error_messages={'invalid': 'The code must contain 6 digits'})
    new_password = serializers.CharField(min_length=6, max_length=128, write_only=True)
    new_password_confirm = serializers.CharField(min_length=6, max_length=128, write_only=True)

    def validate_email(self, value):
        return value.lower()

    def validate(self, attrs):
        if attrs['new_password'] != attrs['new_password_confirm']:
            raise serializers.ValidationError({'new_password_confirm': 'Passwords do not match'})
        return attrs


class AdminUserListSerializer(serializers.ModelSerializer):
    status = serializers.SerializerMethodField()
    total_bookings = serializers.IntegerField(read_only=True)
    worker_profile_id = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'name', 'email', 'phone', 'role', 'is_active', 'status',
            'wallet', 'city', 'total_bookings', 'worker_profile_id',
            'last_login', 'created_at',
        ]

    def get_status(self, obj):
        return 'active' if obj.is_active else 'inactive'

    def get_worker_profile_id(self, obj):
        profile = getattr(obj, 'worker_profile', None) if obj.role == 'worker' else None
        return profile.id if profile else None


class AdminWorkerSerializer(WorkerDetailSerializer):
    approved_by = serializers.StringRelatedField()
    rejected_by = serializers.StringRelatedField()

    class Meta(WorkerDetailSerializer.Meta):
        fields = WorkerDetailSerializer.Meta.fields + [
            'approved_by', 'rejected_at', 'rejected_by', 'location_accuracy', 'updated_at',
        ]


class WorkerApproveSerializer(serializers.Serializer):
    message = serializers.CharField(required=False, allow_blank=True, default='')


class WorkerRejectSerializer(serializers.Serializer):
    reason = serializers.CharField()


class AdminReviewSerializer(ReviewSerializer):
    worker_name = serializers.CharField(source='worker.user.name', read_only=True)

    class Meta(ReviewSerializer.Meta):
        fields = ReviewSerializer.Meta.fields + ['worker_name']
