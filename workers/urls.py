# workers/urls.py
from django.urls import path
from . import views, dashboard_views

app_name = 'workers'

urlpatterns = [
    path('register/', views.register_worker, name='register'),

    # discovery
    path('nearby/', views.nearby_workers, name='nearby'),
    path('search/', views.search_workers, name='search'),
    path('recommend/', views.recommend_workers, name='recommend'),
    path('categories/stats/', views.categories_stats, name='categories_stats'),

    # own profile
    path('profile/', views.worker_profile, name='profile'),
    path('profile/document/', views.upload_document, name='upload_document'),
    path('availability/', views.update_availability, name='availability'),

    # location
    path('location/', views.update_location, name='update_location'),
    path('location/toggle/', views.toggle_location_sharing, name='toggle_location'),
    path('location/status/', views.location_status, name='location_status'),

    # dashboard
    path('dashboard/stats/', dashboard_views.dashboard_stats, name='dashboard_stats'),
    path('dashboard/pending-requests/', dashboard_views.pending_requests, name='pending_requests'),
    path('dashboard/schedule/', dashboard_views.todays_schedule, name='schedule'),
    path('dashboard/active-jobs/', dashboard_views.active_jobs, name='active_jobs'),
    path('dashboard/job-history/', dashboard_views.job_history, name='job_history'),
    path('dashboard/reviews/', dashboard_views.worker_reviews, name='dashboard_reviews'),
    path('dashboard/earnings/', dashboard_views.earnings, name='earnings'),

    path('<int:worker_id>/', views.worker_detail, name='detail'),
]
