from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    # GET   /api/notifications/               - Inbox
    # GET   /api/notifications/unread-count/  - Unread badge count
    # PATCH /api/notifications/{id}/read/     - Mark read
    # POST  /api/notifications/{id}/accept/   - Accept group invitation
    # POST  /api/notifications/{id}/decline/  - Decline group invitation
    path('', views.notification_list, name='notification-list'),
    path('unread-count/', views.unread_count, name='unread-count'),
    path('<int:notification_id>/read/', views.notification_read, name='notification-read'),
    path('<int:notification_id>/accept/', views.invitation_accept, name='invitation-accept'),
    path('<int:notification_id>/decline/', views.invitation_decline, name='invitation-decline'),
]
