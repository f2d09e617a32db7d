# users/urls.py
from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    # ====== Profile ======
    path('profile/', views.profile, name='profile'),

    # ====== Location ======
    path('location/', views.update_location, name='update_location'),
    path('location/history/', views.location_history, name='location_history'),

    # ====== Customer dashboard ======
    path('dashboard/stats/', views.dashboard_stats, name='dashboard_stats'),
    path('bookings/recent/', views.recent_bookings, name='recent_bookings'),
    path('wallet/', views.wallet, name='wallet'),
]
