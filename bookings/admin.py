# bookings/admin.py
from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'service_type', 'user', 'worker', 'scheduled_date',
        'status', 'payment_status', 'total_price', 'created_at',
    ]
    list_filter = ['status', 'payment_status', 'payment_method', 'scheduled_date']
    search_fields = ['service_type', 'user__email', 'user__name', 'worker__user__name', 'address']
    raw_id_fields = ['user', 'worker']
    readonly_fields = [
        'platform_fee', 'worker_earning', 'start_time', 'end_time',
        'actual_duration', 'created_at', 'updated_at',
    ]
    ordering = ['-created_at']

    fieldsets = (
        (None, {
            'fields': ('user', 'worker', 'service_type', 'description', 'status')
        }),
        ('Schedule', {
            'fields': ('scheduled_date', 'scheduled_time', 'estimated_duration',
                       'start_time', 'end_time', 'actual_duration')
        }),
        ('Location', {
            'fields': ('address', 'city', 'state', 'pincode', 'landmark', 'latitude', 'longitude'),
            'classes': ('collapse',)
        }),
        ('Payment', {
            'fields': ('payment_method', 'payment_status', 'total_price', 'platform_fee', 'worker_earning')
        }),
        ('Notes', {
            'fields': ('cancellation_reason', 'rejection_reason', 'admin_notes', 'notes'),
            'classes': ('collapse',)
        }),
    )
