# notifications/serializers.py
from django.utils import timezone
from rest_framework import serializers

from .models import Notification, DeviceToken


class NotificationSerializer(serializers.ModelSerializer):
    time_ago = serializers.SerializerMethodField()
    booking_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Notification
        fields = [
            'id', 'notification_type', 'title', 'message', 'booking_id',
            'data', 'is_read', 'read_at', 'time_ago', 'created_at',
        ]
        read_only_fields = fields

    def get_time_ago(self, obj):
        diff = timezone.now() - obj.created_at
        seconds = diff.total_seconds()

        if seconds < 60:
            return 'just now'
        if seconds < 3600:
            return f'{int(seconds // 60)}m'
        if seconds < 86400:
            return f'{int(seconds // 3600)}h'
        if diff.days < 7:
            return f'{diff.days}d'
        if diff.days < 30:
            return f'{diff.days // 7}w'
        return obj.created_at.strftime('%Y-%m-%d')


class DeviceRegisterSerializer(serializers.Serializer):
    token = serializers.CharField()
    platform = serializers.ChoiceField(
        choices=[c[0] for c in DeviceToken.PLATFORM_CHOICES], default='web'
    )
    device_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')


class DeviceUnregisterSerializer(serializers.Serializer):
    token = serializers.CharField()


class DeviceTokenSerializer(serializers.ModelSerializer):
    class Meta:
        model = DeviceToken
        fields = ['id', 'platform', 'device_name', 'is_active', 'last_used', 'created_at']
