"""
Domain-specific exceptions for groups app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class GroupsServiceError(Exception):
    """Base exception for all groups service errors."""
    pass


class GroupNotFoundError(GroupsServiceError):
    """Raised when a group does not exist or is inaccessible."""
    pass


class NotMemberError(GroupsServiceError):
    """Raised when a user tries to perform an action requiring membership."""
    pass


class InsufficientPermissionsError(GroupsServiceError):
    """Raised when a non-creator attempts a creator-only change."""
    pass


class GroupArchivedError(GroupsServiceError):
    """Raised when writing expenses or settlements to an archived group."""
    pass


class MemberNotFoundError(GroupsServiceError):
    """Raised when a member id does not belong to the group."""
    pass


class CannotRemoveRegisteredMemberError(GroupsServiceError):
    """Raised when trying to delete a member linked to a user account."""
    pass


class InvalidInviteCodeError(GroupsServiceError):
    """Raised when an invite code is incorrect."""
    pass


class AlreadyMemberError(GroupsServiceError):
    """Raised when a user tries to join a group they're already in."""
    pass


class UnsupportedCurrencyError(GroupsServiceError):
    """Raised when a base currency is not one of the supported codes."""
    pass


class InvitedUserNotFoundError(GroupsServiceError):
    """Raised when an invitation names an email with no account."""
    pass


class AlreadyInvitedError(GroupsServiceError):
    """Raised when the user already has a pending invitation to the group."""
    pass


class InvitationNotFoundError(GroupsServiceError):
    """Raised when a pending invitation does not belong to the group."""
    pass
