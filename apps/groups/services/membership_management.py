"""
Membership management service.

Registered users join with the group's invite code; any member can add
or remove guests, who exist only by name.
"""

from django.db import transaction, IntegrityError
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.groups.models import Group, GroupMember

from .exceptions import (
    GroupNotFoundError,
    InvalidInviteCodeError,
    AlreadyMemberError,
    NotMemberError,
    MemberNotFoundError,
    CannotRemoveRegisteredMemberError,
)


def _get_group_as_member(group_id: int, user: User) -> Group:
    try:
        group = Group.objects.get(id=group_id)
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    if not group.has_member(user):
        raise NotMemberError("Not a member of this group")

    return group


@transaction.atomic
def join_group(
    *,
    group_id: int,
    user: User,
    invite_code: str
) -> GroupMember:
    """
    Join a group using an invite code.

    Uses row-level locking to prevent race conditions when checking
    and creating memberships.

    Raises:
        GroupNotFoundError: If group doesn't exist
        InvalidInviteCodeError: If invite code is incorrect
        AlreadyMemberError: If user is already a member
    """
    try:
        group = (
            Group.objects
            .select_for_update()
            .get(id=group_id)
        )
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    if group.invite_code != invite_code:
        raise InvalidInviteCodeError("Invalid invite code")

    if group.has_member(user):
        raise AlreadyMemberError(f"User is already a member of {group.name}")

    try:
        member = GroupMember.objects.create(group=group, user=user)
    except IntegrityError:
        raise AlreadyMemberError(f"User is already a member of {group.name}")

    return member


def get_group_members(*, group_id: int) -> QuerySet[GroupMember]:
    """
    Get all members of a group, registered and guest, in join order.

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    if not Group.objects.filter(id=group_id).exists():
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    return (
        GroupMember.objects
        .filter(group_id=group_id)
        .select_related('user')
        .order_by('joined_at', 'id')
    )


@transaction.atomic
def add_guest_member(*, group_id: int, user: User, name: str) -> GroupMember:
    """
    Add a guest (no user account) to a group.

    Args:
        group_id: ID of the group
        user: Member adding the guest
        name: Guest display name

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
        ValueError: If name is blank
    """
    group = _get_group_as_member(group_id, user)

    name = (name or '').strip()
    if not name:
        raise ValueError("Name is required")

    return GroupMember.objects.create(group=group, user=None, name=name)


@transaction.atomic
def remove_guest_member(*, group_id: int, member_id: int, user: User) -> None:
    """
    Delete a guest member together with their expenses, shares and settlements.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
        MemberNotFoundError: If member_id is not in this group
        CannotRemoveRegisteredMemberError: If the member has a user account
    """
    group = _get_group_as_member(group_id, user)

    try:
        member = (
            GroupMember.objects
            .select_for_update()
            .get(id=member_id, group=group)
        )
    except GroupMember.DoesNotExist:
        raise MemberNotFoundError("Member not found")

    if not member.is_guest:
        raise CannotRemoveRegisteredMemberError("Cannot delete registered members")

    member.delete()
