"""
Custom permission classes for balances app.

Permission Classes:
    IsGroupMemberForBalances - Requires group membership to see balances
"""

from rest_framework.permissions import BasePermission
from apps.groups.models import Group


class IsGroupMemberForBalances(BasePermission):
    """
    Permission check for group balance access.

    Reads ``group_id`` from the URL kwargs. Unknown groups are let through
    so the view can answer 404.
    """

    message = 'You must be a member of this group to view its balances.'

    def has_permission(self, request, view):
        group_id = view.kwargs.get('group_id')
        if not group_id:
            return True

        try:
            group = Group.objects.get(id=group_id)
        except Group.DoesNotExist:
            return True

        return group.has_member(request.user)
