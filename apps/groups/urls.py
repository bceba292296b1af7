from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'groups'

router = DefaultRouter()
router.register(r'', views.GroupViewSet, basename='group')

urlpatterns = [
    # Group ViewSet routes
    # GET    /api/groups/                          - List user's groups
    # POST   /api/groups/                          - Create group
    # GET    /api/groups/{id}/                     - Get group with members
    # PATCH  /api/groups/{id}/                     - Update settings (creator)
    # DELETE /api/groups/{id}/                     - Delete group (creator)

    # Custom group actions
    # PATCH  /api/groups/{id}/archive/             - Archive/unarchive (creator)
    # PATCH  /api/groups/{id}/currency/            - Change base currency (creator)
    # GET    /api/groups/{id}/members/             - List members
    # POST   /api/groups/{id}/members/             - Add guest member
    # DELETE /api/groups/{id}/members/{member_id}/ - Remove guest member
    # POST   /api/groups/{id}/join/                - Join with invite code
    # POST   /api/groups/{id}/regenerate_invite/   - Regenerate invite code (creator)
    # POST   /api/groups/{id}/invite/              - Invite a registered user by email
    # GET    /api/groups/{id}/invitations/         - Pending invitations
    # DELETE /api/groups/{id}/invitations/{iid}/   - Withdraw an invitation

    path('', include(router.urls)),
]
