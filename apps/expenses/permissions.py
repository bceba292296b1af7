"""
Custom permission classes for expenses app.

Permission Classes:
    IsGroupMemberForExpenses - Requires membership of the group named in the request
"""

from rest_framework.permissions import BasePermission
from apps.groups.models import Group


class IsGroupMemberForExpenses(BasePermission):
    """
    Permission check for group-scoped expense endpoints.

    Reads the group id from the query string (listing, export) or the
    request body (creating expenses and settlements).

    Access is allowed if:
    - No group is specified, or it does not exist (the view answers 400/404)
    - User is a member of the specified group

    Access is denied if:
    - User is not a member of the group
    """

    message = 'You must be a member of this group.'

    def has_permission(self, request, view):
        group_id = request.query_params.get('group')
        if not group_id and request.method == 'POST' and hasattr(request.data, 'get'):
            group_id = request.data.get('group')

        if not group_id:
            return True

        try:
            group = Group.objects.get(id=int(group_id))
        except (Group.DoesNotExist, TypeError, ValueError):
            return True

        return group.has_member(request.user)
