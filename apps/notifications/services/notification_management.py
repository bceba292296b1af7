"""
Notification inbox service.

Lists a user's notifications, marks them read, and resolves group
invitations: accepting adds the user to the group, declining discards the
invitation. Either way the invitation notification is deleted.
"""

import logging

from django.db import transaction, IntegrityError
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.groups.models import Group, GroupMember
from apps.groups.services import GroupNotFoundError
from apps.notifications.models import Notification

from .exceptions import NotificationNotFoundError, InvalidNotificationTypeError

logger = logging.getLogger(__name__)


def _get_own_notification(notification_id: int, user: User, lock: bool = False) -> Notification:
    queryset = Notification.objects.filter(user=user)
    if lock:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(id=notification_id)
    except Notification.DoesNotExist:
        raise NotificationNotFoundError("Notification not found")


def get_notifications(*, user: User) -> QuerySet[Notification]:
    """All notifications addressed to ``user``, newest first."""
    return Notification.objects.filter(user=user).order_by('-created_at', '-id')


def get_unread_count(*, user: User) -> int:
    return Notification.objects.filter(user=user, read=False).count()


def mark_read(*, notification_id: int, user: User) -> Notification:
    """
    Mark one of the user's notifications as read.

    Raises:
        NotificationNotFoundError: If it doesn't exist or isn't the user's
    """
    notification = _get_own_notification(notification_id, user)
    if not notification.read:
        notification.read = True
        notification.save(update_fields=['read'])
    return notification


@transaction.atomic
def accept_invitation(*, notification_id: int, user: User) -> GroupMember:
    """
    Join the group a ``group_invite`` notification points at.

    Accepting an invitation to a group the user already belongs to returns
    the existing membership. The notification is deleted in both cases.

    Returns:
        The user's GroupMember row in the invited group

    Raises:
        NotificationNotFoundError: If it doesn't exist or isn't the user's
        InvalidNotificationTypeError: If it is not a group invitation
        GroupNotFoundError: If the group no longer exists
    """
    notification = _get_own_notification(notification_id, user, lock=True)

    if not notification.is_invitation:
        raise InvalidNotificationTypeError("Invalid notification type")

    group = Group.objects.select_for_update().filter(id=notification.group_id).first()
    if group is None:
        raise GroupNotFoundError("Group no longer exists")

    notification.delete()

    member = group.get_member(user)
    if member is not None:
        return member

    try:
        with transaction.atomic():
            member = GroupMember.objects.create(group=group, user=user)
    except IntegrityError:
        return group.get_member(user)

    logger.info("User %s accepted invitation to group %s", user.id, group.id)
    return member


@transaction.atomic
def decline_invitation(*, notification_id: int, user: User) -> None:
    """
    Discard a notification, typically a group invitation the user turns down.

    Raises:
        NotificationNotFoundError: If it doesn't exist or isn't the user's
    """
    notification = _get_own_notification(notification_id, user, lock=True)
    notification.delete()
    logger.info("User %s declined notification %s", user.id, notification_id)
