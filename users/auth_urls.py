# users/auth_urls.py
from django.urls import path, include
from . import views
from .upload_views import upload_profile_image

app_name = 'auth'

urlpatterns = [
    path('register/', views.RegisterView.as_view(), name='register'),
    path('login/', views.LoginView.as_view(), name='login'),
    path('logout/', views.logout, name='logout'),
    path('me/', views.me, name='me'),
    path('updatedetails/', views.update_details, name='update_details'),
    path('updatepassword/', views.update_password, name='update_password'),
    path('upload-photo/', upload_profile_image, name='upload_photo'),

    # ====== Admin authentication ======
    path('admin/', include('admin_api.auth_urls')),
]
