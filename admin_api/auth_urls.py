# admin_api/auth_urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('login/', views.AdminLoginView.as_view(), name='admin-login'),
    path('forgotpassword/', views.admin_forgot_password, name='admin-forgot-password'),
    path('resetpassword/', views.admin_reset_password, name='admin-reset-password'),
    path('me/', views.admin_me, name='admin-me'),
]
