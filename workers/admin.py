# workers/admin.py
from django.contrib import admin
from django.utils import timezone

from .models import Worker


@admin.register(Worker)
class WorkerAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'user', 'city', 'price_per_hour', 'rating', 'completed_jobs',
        'availability', 'approval_status', 'is_active', 'created_at',
    ]
    list_filter = ['approval_status', 'availability', 'is_active', 'verified', 'location_sharing_enabled']
    search_fields = ['user__name', 'user__email', 'user__phone', 'city', 'bio']
    raw_id_fields = ['user', 'approved_by', 'rejected_by']
    readonly_fields = [
        'rating', 'total_reviews', 'total_jobs', 'completed_jobs', 'total_earnings',
        'approved_at', 'approved_by', 'rejected_at', 'rejected_by',
        'location_updated_at', 'created_at', 'updated_at',
    ]
    ordering = ['-created_at']

    fieldsets = (
        (None, {
            'fields': ('user', 'categories', 'skills', 'experience', 'price_per_hour',
                       'service_radius', 'bio', 'working_hours')
        }),
        ('Location', {
            'fields': ('address', 'city', 'latitude', 'longitude', 'location_accuracy',
                       'location_updated_at', 'location_sharing_enabled'),
            'classes': ('collapse',)
        }),
        ('Approval', {
            'fields': ('approval_status', 'approval_message', 'approved_at', 'approved_by',
                       'rejection_reason', 'rejected_at', 'rejected_by', 'verified')
        }),
        ('Documents', {
            'fields': ('id_proof', 'address_proof', 'certificate'),
            'classes': ('collapse',)
        }),
        ('Stats', {
            'fields': ('availability', 'is_active', 'rating', 'total_reviews', 'total_jobs',
                       'completed_jobs', 'total_earnings')
        }),
    )

    actions = ['approve_workers']

    @admin.action(description="Approve selected workers")
    def approve_workers(self, request, queryset):
        updated = queryset.exclude(approval_status='approved').update(
            approval_status='approved',
            approved_at=timezone.now(),
            approved_by=request.user,
            verified=True,
        )
        self.message_user(request, f"{updated} workers approved.")
