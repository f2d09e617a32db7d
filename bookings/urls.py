# bookings/urls.py
from django.urls import path
from . import views

app_name = 'bookings'

urlpatterns = [
    path('', views.create_booking, name='create'),
    path('my-bookings/', views.my_bookings, name='my_bookings'),
    path('worker-bookings/', views.worker_bookings, name='worker_bookings'),

    path('<int:booking_id>/', views.booking_detail, name='detail'),
    path('<int:booking_id>/status/', views.update_booking_status, name='update_status'),
    path('<int:booking_id>/cancel/', views.cancel_booking, name='cancel'),
    path('<int:booking_id>/worker-location/', views.worker_location, name='worker_location'),
]
