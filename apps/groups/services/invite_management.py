"""
Invites: the shared invite code, and in-app invitations sent to existing users.

An invitation is a ``group_invite`` notification addressed to the invited
user; it stays pending until that user accepts or declines it, or a member
of the group cancels it.
"""

import logging
from typing import List

from django.db import transaction, IntegrityError

from apps.accounts.models import User
from apps.groups.models import generate_invite_code
from apps.notifications.models import Notification, NotificationType

from .exceptions import (
    InsufficientPermissionsError,
    NotMemberError,
    AlreadyMemberError,
    InvitedUserNotFoundError,
    AlreadyInvitedError,
    InvitationNotFoundError,
)
from .group_management import _lock_group
from .membership_management import _get_group_as_member

logger = logging.getLogger(__name__)

INVITE_CODE_ATTEMPTS = 5


@transaction.atomic
def regenerate_invite_code(*, group_id: int, user: User) -> str:
    """
    Give a group a fresh invite code (creator only); the old code stops working.

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If user is not the creator
        RuntimeError: If no unused code was found in INVITE_CODE_ATTEMPTS tries
    """
    group = _lock_group(group_id)

    if not group.is_creator(user):
        raise InsufficientPermissionsError("Only group creator can regenerate invite codes")

    for _ in range(INVITE_CODE_ATTEMPTS):
        try:
            with transaction.atomic():
                group.invite_code = generate_invite_code()
                group.save(update_fields=['invite_code', 'updated_at'])
        except IntegrityError:
            continue
        logger.info("Invite code of group %s regenerated", group.id)
        return group.invite_code

    raise RuntimeError(f"Failed to generate unique invite code after {INVITE_CODE_ATTEMPTS} attempts")


def _pending_invitations(group_id: int):
    return Notification.objects.filter(
        type=NotificationType.GROUP_INVITE,
        data__group_id=group_id,
    )


@transaction.atomic
def invite_user_to_group(*, group_id: int, user: User, email: str) -> Notification:
    """
    Invite a registered user to a group with an in-app notification.

    Any member may invite. The invitee joins only by accepting.

    Args:
        group_id: ID of the group
        user: Member sending the invitation
        email: Email of the account to invite (case-insensitive)

    Returns:
        The pending invitation

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
        InvitedUserNotFoundError: If no account uses this email
        AlreadyMemberError: If the invitee is already in the group
        AlreadyInvitedError: If the invitee already has a pending invitation
    """
    group = _lock_group(group_id)

    if not group.has_member(user):
        raise NotMemberError("Not a member of this group")

    invitee = User.objects.filter(email__iexact=(email or '').strip()).first()
    if invitee is None:
        raise InvitedUserNotFoundError("No account uses this email")

    if group.has_member(invitee):
        raise AlreadyMemberError("User is already a member of this group")

    if _pending_invitations(group.id).filter(user=invitee).exists():
        raise AlreadyInvitedError("User already has a pending invitation")

    invitation = Notification.objects.create(
        user=invitee,
        type=NotificationType.GROUP_INVITE,
        title="Group Invitation",
        message=f'{user.get_display_name()} invited you to join "{group.name}"',
        data={'group_id': group.id, 'invited_by': str(user.pk)},
    )
    logger.info("User %s invited %s to group %s", user.id, invitee.id, group.id)
    return invitation


def get_pending_invitations(*, group_id: int, user: User) -> List[Notification]:
    """
    Pending invitations of a group, newest first.

    Each invitation gets an ``inviter`` attribute holding the inviting User,
    or None when that account no longer exists.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    group = _get_group_as_member(group_id, user)

    invitations = list(_pending_invitations(group.id).select_related('user'))
    inviter_ids = {invitation.data.get('invited_by') for invitation in invitations} - {None}
    inviters = {str(u.pk): u for u in User.objects.filter(pk__in=inviter_ids)}

    for invitation in invitations:
        invitation.inviter = inviters.get(invitation.data.get('invited_by'))
    return invitations


@transaction.atomic
def cancel_invitation(*, group_id: int, invitation_id: int, user: User) -> None:
    """
    Withdraw a pending invitation. Any member of the group may cancel.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
        InvitationNotFoundError: If the invitation is not pending for this group
    """
    group = _get_group_as_member(group_id, user)

    deleted, _ = _pending_invitations(group.id).filter(id=invitation_id).delete()
    if not deleted:
        raise InvitationNotFoundError("Invitation not found")

    logger.info("Invitation %s to group %s cancelled by %s", invitation_id, group.id, user.id)
