# notifications/urls.py
from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    path('', views.notification_list, name='list'),
    path('unread-count/', views.unread_count, name='unread_count'),
    path('mark-all-read/', views.mark_all_as_read, name='mark_all_read'),

    # devices
    path('devices/register/', views.register_device, name='register_device'),
    path('devices/unregister/', views.unregister_device, name='unregister_device'),

    path('<int:notification_id>/read/', views.mark_as_read, name='mark_read'),
]
