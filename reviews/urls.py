# reviews/urls.py
from django.urls import path
from . import views

app_name = 'reviews'

urlpatterns = [
    path('', views.create_review, name='create'),
    path('user/', views.user_reviews, name='user_reviews'),
    path('worker/<int:worker_id>/', views.worker_reviews, name='worker_reviews'),
    path('worker/<int:worker_id>/stats/', views.worker_review_stats, name='worker_stats'),

    path('<int:review_id>/', views.review_detail, name='detail'),
    path('<int:review_id>/response/', views.respond_to_review, name='respond'),
    path('<int:review_id>/helpful/', views.toggle_helpful, name='helpful'),
]
