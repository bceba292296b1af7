from django.urls import path
from . import views

app_name = 'activity'

urlpatterns = [
    # GET /api/activity/?limit=50 - Activity feed
    path('', views.activity_feed, name='activity-feed'),
]
