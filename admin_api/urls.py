# admin_api/urls.py
from django.urls import path
from . import views

app_name = 'admin_api'

urlpatterns = [
    # Dashboard
    path('dashboard/stats/', views.dashboard_stats, name='dashboard-stats'),
    path('system/stats/', views.system_stats, name='system-stats'),
    path('revenue/analytics/', views.revenue_analytics, name='revenue-analytics'),

    # Users Management
    path('users/', views.user_list, name='users-list'),
    path('users/<int:user_id>/toggle-status/', views.toggle_user_status, name='toggle-user-status'),
    path('users/<int:user_id>/', views.delete_user, name='delete-user'),

    # Workers Management
    path('workers/', views.worker_list, name='workers-list'),
    path('workers/<int:worker_id>/approve/', views.approve_worker, name='approve-worker'),
    path('workers/<int:worker_id>/reject/', views.reject_worker, name='reject-worker'),

    # Bookings
    path('bookings/', views.booking_list, name='bookings-list'),
    path('bookings/<int:booking_id>/status/', views.override_booking_status, name='booking-status'),

    # Reviews
    path('reviews/', views.review_list, name='reviews-list'),
    path('reviews/<int:review_id>/', views.delete_review, name='delete-review'),
]
