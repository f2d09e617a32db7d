# reviews/admin.py
from django.contrib import admin

from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ['id', 'worker', 'user', 'rating', 'helpful_count', 'is_verified', 'created_at']
    list_filter = ['rating', 'is_verified', 'created_at']
    search_fields = ['comment', 'user__email', 'worker__user__name']
    raw_id_fields = ['booking', 'user', 'worker']
    readonly_fields = ['helpful_count', 'response_date', 'created_at', 'updated_at']
    exclude = ['helpful_by']
