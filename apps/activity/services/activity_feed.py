"""
Activity feed service.

Records what happened in a group and renders it as readable feed items for
the members of that group.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from django.utils import timezone

from apps.accounts.models import User
from apps.currency.services import DEFAULT_CURRENCY
from apps.activity.models import Activity, ActivityType
from apps.groups.models import Group, GroupMember

logger = logging.getLogger(__name__)


DEFAULT_FEED_LIMIT = 50
MAX_FEED_LIMIT = 200


def record_activity(
    *,
    group: Group,
    actor_member: GroupMember,
    type: str,
    expense=None,
    settlement=None,
    from_member: Optional[GroupMember] = None,
    to_member: Optional[GroupMember] = None,
    amount: Optional[Decimal] = None,
    currency: str = '',
    metadata: Optional[dict] = None,
    created_at: Optional[datetime] = None
) -> Activity:
    """
    Append an entry to the group's activity feed.

    Called from inside the expense and settlement services so the entry is
    written in the same transaction as the change it describes.
    """
    activity = Activity.objects.create(
        group=group,
        actor_member=actor_member,
        type=type,
        expense=expense,
        settlement=settlement,
        from_member=from_member,
        to_member=to_member,
        amount=amount,
        currency=currency or '',
        metadata=metadata or {},
        created_at=created_at or timezone.now(),
    )
    logger.debug("Recorded %s activity in group %s", type, group.id)
    return activity


def clamp_feed_limit(limit) -> int:
    """Coerce a requested feed size into ``1..MAX_FEED_LIMIT``; junk means the default."""
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        return DEFAULT_FEED_LIMIT
    if limit == 0:
        return DEFAULT_FEED_LIMIT
    return max(1, min(limit, MAX_FEED_LIMIT))


def member_label(member: Optional[GroupMember]) -> str:
    """Name shown in the feed; guests are marked as such."""
    if member is None:
        return 'Unknown'
    if member.user is not None and member.user.name:
        return member.user.name
    if member.name:
        return f"{member.name} (guest)"
    return 'Unknown'


def format_amount(currency: str, amount: Optional[Decimal]) -> str:
    return f"{currency}{(amount or Decimal('0')):.2f}"


def date_label(created_at: datetime, now: Optional[datetime] = None) -> str:
    """``Today``, ``Yesterday`` or a short ``Mon D`` date."""
    now = timezone.localtime(now or timezone.now())
    day = timezone.localtime(created_at).date()
    delta = (now.date() - day).days
    if delta == 0:
        return 'Today'
    if delta == 1:
        return 'Yesterday'
    return f"{day:%b} {day.day}"


def _expense_text(activity: Activity, actor: str) -> Dict[str, str]:
    description = activity.metadata.get('description') or 'an expense'
    group_name = activity.group.name

    if activity.type == ActivityType.EXPENSE_UPDATED:
        return {
            'title': f'{actor} updated "{description}" in "{group_name}".',
            'detail': 'Expense updated',
        }
    if activity.type == ActivityType.EXPENSE_DELETED:
        return {
            'title': f'{actor} deleted "{description}" in "{group_name}".',
            'detail': 'Expense removed',
        }
    return {
        'title': f'{actor} added "{description}" in "{group_name}".',
        'detail': 'Expense recorded',
    }


def _settlement_text(activity: Activity, member_ids) -> Dict[str, str]:
    from_name = member_label(activity.from_member)
    to_name = member_label(activity.to_member)
    amount = format_amount(activity.currency or DEFAULT_CURRENCY, activity.amount)

    if activity.to_member_id in member_ids:
        detail = f"You received {amount}"
    elif activity.from_member_id in member_ids:
        detail = f"You paid {amount}"
    else:
        detail = f"Payment recorded {amount}"

    return {
        'title': f'{from_name} paid {to_name} in "{activity.group.name}".',
        'detail': detail,
    }


def describe_activity(activity: Activity, member_ids, now: Optional[datetime] = None) -> dict:
    """
    Render one activity as a feed item for the viewer owning ``member_ids``.

    Args:
        activity: Activity with group and members loaded
        member_ids: Ids of the viewer's GroupMember rows
        now: Reference time for the date label (default: now)
    """
    if activity.type == ActivityType.SETTLEMENT_CREATED:
        text = _settlement_text(activity, member_ids)
    else:
        actor = 'You' if activity.actor_member_id in member_ids else member_label(activity.actor_member)
        text = _expense_text(activity, actor)

    return {
        'id': activity.id,
        'type': activity.type,
        'group_id': activity.group_id,
        'group_name': activity.group.name,
        'title': text['title'],
        'detail': text['detail'],
        'amount': activity.amount,
        'currency': activity.currency or None,
        'created_at': activity.created_at,
        'date_label': date_label(activity.created_at, now),
    }


def get_activity_feed(*, user: User, limit=DEFAULT_FEED_LIMIT, now: Optional[datetime] = None) -> List[dict]:
    """
    Return the latest activity across every group ``user`` belongs to.

    Args:
        user: Viewer
        limit: Number of items, clamped to 1..200
        now: Reference time for date labels (default: now)

    Returns:
        Feed items, newest first
    """
    limit = clamp_feed_limit(limit)
    member_ids = set(
        GroupMember.objects.filter(user=user).values_list('id', flat=True)
    )
    if not member_ids:
        return []

    activities = (
        Activity.objects
        .filter(group__members__user=user)
        .select_related(
            'group',
            'actor_member__user',
            'from_member__user',
            'to_member__user',
        )
        .order_by('-created_at', '-id')[:limit]
    )

    return [describe_activity(activity, member_ids, now) for activity in activities]
