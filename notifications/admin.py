# notifications/admin.py
from django.contrib import admin

from .models import Notification, DeviceToken


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['id', 'notification_type', 'recipient', 'title', 'is_read', 'created_at']
    list_filter = ['notification_type', 'is_read', 'created_at']
    search_fields = ['title', 'message', 'recipient__email', 'recipient__name']
    readonly_fields = ['created_at', 'read_at']
    raw_id_fields = ['recipient', 'booking']
    ordering = ['-created_at']

    actions = ['mark_as_read']

    @admin.action(description="Mark selected notifications as read")
    def mark_as_read(self, request, queryset):
        updated = 0
        for notification in queryset.filter(is_read=False):
            notification.mark_as_read()
            updated += 1
        self.message_user(request, f"{updated} notifications marked as read.")


@admin.register(DeviceToken)
class DeviceTokenAdmin(admin.ModelAdmin):
    list_display = ['user', 'platform', 'device_name', 'is_active', 'total_notifications_sent', 'last_used']
    list_filter = ['platform', 'is_active']
    search_fields = ['user__email', 'device_name']
    readonly_fields = ['token', 'total_notifications_sent', 'last_notification_sent', 'created_at', 'last_used']
    raw_id_fields = ['user']

    actions = ['deactivate_tokens']

    @admin.action(description="Deactivate selected tokens")
    def deactivate_tokens(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f"{updated} tokens deactivated.")
