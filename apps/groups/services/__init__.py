"""
Groups app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and concurrency protection.
"""

from .exceptions import (
    GroupsServiceError,
    GroupNotFoundError,
    NotMemberError,
    InsufficientPermissionsError,
    GroupArchivedError,
    MemberNotFoundError,
    CannotRemoveRegisteredMemberError,
    InvalidInviteCodeError,
    AlreadyMemberError,
    UnsupportedCurrencyError,
    InvitedUserNotFoundError,
    AlreadyInvitedError,
    InvitationNotFoundError,
)

from .group_management import (
    create_group,
    get_group_for_member,
    update_group,
    set_group_archived,
    set_base_currency,
    delete_group,
    ensure_not_archived,
)

from .membership_management import (
    join_group,
    get_group_members,
    add_guest_member,
    remove_guest_member,
)

from .invite_management import (
    regenerate_invite_code,
    invite_user_to_group,
    get_pending_invitations,
    cancel_invitation,
)


__all__ = [
    # Exceptions
    'GroupsServiceError',
    'GroupNotFoundError',
    'NotMemberError',
    'InsufficientPermissionsError',
    'GroupArchivedError',
    'MemberNotFoundError',
    'CannotRemoveRegisteredMemberError',
    'InvalidInviteCodeError',
    'AlreadyMemberError',
    'UnsupportedCurrencyError',
    'InvitedUserNotFoundError',
    'AlreadyInvitedError',
    'InvitationNotFoundError',

    # Group Management
    'create_group',
    'get_group_for_member',
    'update_group',
    'set_group_archived',
    'set_base_currency',
    'delete_group',
    'ensure_not_archived',

    # Membership Management
    'join_group',
    'get_group_members',
    'add_guest_member',
    'remove_guest_member',

    # Invite Management
    'regenerate_invite_code',
    'invite_user_to_group',
    'get_pending_invitations',
    'cancel_invitation',
]
