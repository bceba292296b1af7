from rest_framework import permissions


class IsGroupCreator(permissions.BasePermission):
    """
    Only the member who created the group may change its settings,
    archive it, rotate its invite code or delete it.
    """

    message = 'Only group creator can change group settings.'

    def has_object_permission(self, request, view, obj):
        return obj.is_creator(request.user)
