# notifications/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone


class Notification(models.Model):
    """
    In-app notification, mirrored to the user's devices through Firebase
    """

    NOTIFICATION_TYPES = [
        ('new_booking', 'New booking'),
        ('booking_status_changed', 'Booking status changed'),
        ('booking_cancelled', 'Booking cancelled'),
        ('worker_location_update', 'Worker location update'),
        ('worker_approved', 'Worker approved'),
        ('worker_rejected', 'Worker rejected'),
        ('review_received', 'Review received'),
        ('wallet_refund', 'Wallet refund'),
    ]

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    notification_type = models.CharField(max_length=30, choices=NOTIFICATION_TYPES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    booking = models.ForeignKey(
        'bookings.Booking',
        on_delete=models.CASCADE,
        null=True, blank=True,
        related_name='notifications'
    )
    data = models.JSONField(default=dict, blank=True)

    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['recipient', 'is_read']),
            models.Index(fields=['notification_type']),
        ]

    def __str__(self):
        return f"Notification for {self.recipient.email}: {self.notification_type}"

    def mark_as_read(self):
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
            self.save(update_fields=['is_read', 'read_at'])


class DeviceToken(models.Model):
    """
    Firebase FCM tokens per device
    """

    PLATFORM_CHOICES = [
        ('android', 'Android'),
        ('ios', 'iOS'),
        ('web', 'Web'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='device_tokens'
    )
    token = models.TextField(unique=True, help_text="Firebase FCM Token")
    platform = models.CharField(max_length=10, choices=PLATFORM_CHOICES, default='web')
    device_name = models.CharField(max_length=100, blank=True, default='')

    is_active = models.BooleanField(default=True)
    last_used = models.DateTimeField(auto_now=True)

    total_notifications_sent = models.PositiveIntegerField(default=0)
    last_notification_sent = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Device Token"
        verbose_name_plural = "Device Tokens"
        ordering = ['-last_used']
        indexes = [
            models.Index(fields=['user', 'is_active']),
        ]

    def __str__(self):
        return f"{self.user.email} - {self.platform} ({self.device_name or 'Unknown'})"

    @classmethod
    def register(cls, user, token, platform='web', device_name=''):
        """A token moves to whoever registered it last"""
        if platform not in dict(cls.PLATFORM_CHOICES):
            platform = 'web'
        device, _ = cls.objects.update_or_create(
            token=token,
            defaults={
                'user': user,
                'platform': platform,
                'device_name': device_name or '',
                'is_active': True,
            }
        )
        return device

    @classmethod
    def get_user_active_tokens(cls, user):
        return cls.objects.filter(user=user, is_active=True).values_list('token', flat=True)
