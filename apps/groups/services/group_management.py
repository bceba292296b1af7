"""
Group management service.

Handles group CRUD, archiving and base currency changes with proper
transaction safety. Settings changes are reserved for the group creator.
"""

import logging
from typing import Optional

from django.db import transaction, IntegrityError
from django.db.models import Prefetch

from apps.accounts.models import User
from apps.currency.services import SUPPORTED_CURRENCIES, normalize_currency
from apps.groups.models import Group, GroupMember, generate_invite_code
from apps.notifications.models import Notification, NotificationType

from .exceptions import (
    GroupNotFoundError,
    GroupArchivedError,
    InsufficientPermissionsError,
    NotMemberError,
    UnsupportedCurrencyError,
)

logger = logging.getLogger(__name__)


def _validated_currency(code: Optional[str]) -> str:
    currency = normalize_currency(code)
    if currency not in SUPPORTED_CURRENCIES:
        raise UnsupportedCurrencyError(f"Unsupported currency: {currency}")
    return currency


def _lock_group(group_id: int) -> Group:
    try:
        return (
            Group.objects
            .select_for_update()
            .get(id=group_id)
        )
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


def create_group(
    *,
    name: str,
    created_by: User,
    description: str = '',
    base_currency: Optional[str] = None,
    max_retries: int = 5
) -> Group:
    """
    Create a new group and add the creator as its first member.

    Args:
        name: Group name
        created_by: User creating the group
        description: Optional group description
        base_currency: ISO code balances are reported in (default EUR)
        max_retries: Maximum attempts to generate unique invite code

    Returns:
        Created Group instance

    Raises:
        UnsupportedCurrencyError: If base_currency is not supported
        RuntimeError: If cannot generate unique invite code after retries
    """
    currency = _validated_currency(base_currency)

    for attempt in range(max_retries):
        try:
            with transaction.atomic():
                group = Group.objects.create(
                    name=name,
                    description=description,
                    base_currency=currency,
                    created_by=created_by,
                    invite_code=generate_invite_code(),
                )
                GroupMember.objects.create(group=group, user=created_by)
        except IntegrityError:
            if attempt == max_retries - 1:
                raise RuntimeError(
                    f"Failed to generate unique invite code after {max_retries} attempts"
                )
            continue

        logger.info("Group %s created by %s", group.id, created_by.id)
        return group

    raise RuntimeError("Unexpected error in group creation")


def get_group_for_member(*, group_id: int, user: User) -> Group:
    """
    Load a group the user belongs to, with members prefetched.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    try:
        group = (
            Group.objects
            .select_related('created_by')
            .prefetch_related(
                Prefetch('members', queryset=GroupMember.objects.select_related('user'))
            )
            .get(id=group_id)
        )
    except Group.DoesNotExist:
        raise GroupNotFoundError(f"Group with ID {group_id} not found")

    if not group.has_member(user):
        raise NotMemberError("Not a member of this group")

    return group


@transaction.atomic
def update_group(
    *,
    group_id: int,
    user: User,
    name: Optional[str] = None,
    description: Optional[str] = None,
    base_currency: Optional[str] = None
) -> Group:
    """
    Update group details (creator only).

    Uses select_for_update to prevent concurrent modifications.

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If user is not the creator
        UnsupportedCurrencyError: If base_currency is not supported
    """
    group = _lock_group(group_id)

    if not group.is_creator(user):
        raise InsufficientPermissionsError("Only group creator can update group settings")

    update_fields = ['updated_at']

    if name is not None:
        group.name = name
        update_fields.append('name')

    if description is not None:
        group.description = description
        update_fields.append('description')

    if base_currency is not None:
        group.base_currency = _validated_currency(base_currency)
        update_fields.append('base_currency')

    group.save(update_fields=update_fields)

    return group


@transaction.atomic
def set_group_archived(*, group_id: int, user: User, archived: bool) -> Group:
    """
    Archive or unarchive a group (creator only).

    Archived groups stay readable but refuse new expenses and settlements.
    """
    group = _lock_group(group_id)

    if not group.is_creator(user):
        raise InsufficientPermissionsError("Only group creator can archive/unarchive groups")

    group.archived = archived
    group.save(update_fields=['archived', 'updated_at'])

    logger.info("Group %s archived=%s", group.id, archived)
    return group


@transaction.atomic
def set_base_currency(*, group_id: int, user: User, base_currency: str) -> Group:
    """
    Change the currency balances are reported in (creator only).

    Existing expenses keep their own currency; only reporting changes.
    """
    group = _lock_group(group_id)

    if not group.is_creator(user):
        raise InsufficientPermissionsError("Only group creator can change base currency")

    group.base_currency = _validated_currency(base_currency)
    group.save(update_fields=['base_currency', 'updated_at'])

    return group


@transaction.atomic
def delete_group(*, group_id: int, user: User) -> None:
    """
    Delete a group (creator only).

    Cascading deletes remove members, expenses, shares, settlements and
    activity entries. Pending invitations to the group are withdrawn.

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If user is not the creator
    """
    group = _lock_group(group_id)

    if not group.is_creator(user):
        raise InsufficientPermissionsError("Only group creator can delete the group")

    Notification.objects.filter(
        type=NotificationType.GROUP_INVITE,
        data__group_id=group.id,
    ).delete()
    group.delete()
    logger.info("Group %s deleted by %s", group_id, user.id)


def ensure_not_archived(group: Group) -> None:
    """Raise GroupArchivedError when the group no longer accepts changes."""
    if group.archived:
        raise GroupArchivedError("This group is archived")
