"""
Settlement service.

Records direct payments between two members of a group.
"""

import logging
from decimal import Decimal
from typing import Mapping, Optional

from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.activity.models import ActivityType
from apps.activity.services import record_activity
from apps.currency.services import normalize_currency
from apps.expenses.models import Settlement
from apps.groups.models import Group
from apps.groups.services import ensure_not_archived

from .exceptions import InvalidSettlementError
from .expense_management import resolve_actor_member, captured_rate, resolve_group_members

logger = logging.getLogger(__name__)


@transaction.atomic
def record_settlement(
    *,
    group: Group,
    actor: User,
    from_member_id: int,
    to_member_id: int,
    amount: Decimal,
    currency: Optional[str] = None,
    rates: Optional[Mapping[str, Decimal]] = None
) -> Settlement:
    """
    Record that ``from_member`` paid ``to_member``.

    Args:
        group: Group the members belong to
        actor: User recording the payment
        from_member_id: Paying member
        to_member_id: Receiving member
        amount: Amount paid (> 0)
        currency: ISO code (default: group base currency)
        rates: Rate table (default: the shared provider's table)

    Raises:
        NotMemberError: If actor is not a member
        GroupArchivedError: If the group is archived
        InvalidMemberError: If either member is outside the group
        InvalidSettlementError: If members are the same or amount is not positive
        MissingExchangeRateError: If the currency cannot be converted
    """
    actor_member = resolve_actor_member(group, actor)
    ensure_not_archived(group)

    if int(from_member_id) == int(to_member_id):
        raise InvalidSettlementError("A member cannot settle with themselves")
    if amount <= 0:
        raise InvalidSettlementError("Amount must be greater than zero")

    members = resolve_group_members(group, [from_member_id, to_member_id])
    from_member = members[int(from_member_id)]
    to_member = members[int(to_member_id)]
    currency = normalize_currency(currency, default=group.base_currency)

    settlement = Settlement.objects.create(
        group=group,
        from_member=from_member,
        to_member=to_member,
        amount=amount,
        currency=currency,
        exchange_rate=captured_rate(currency, group, rates),
    )

    record_activity(
        group=group,
        actor_member=actor_member,
        type=ActivityType.SETTLEMENT_CREATED,
        settlement=settlement,
        from_member=from_member,
        to_member=to_member,
        amount=settlement.amount,
        currency=settlement.currency,
        created_at=settlement.created_at,
    )

    logger.info(
        "Settlement %s: member %s paid member %s %s %s",
        settlement.id, from_member.id, to_member.id, amount, currency,
    )
    return settlement


def get_group_settlements(*, group: Group) -> QuerySet:
    """Settlements of a group, newest first."""
    return (
        Settlement.objects
        .filter(group=group)
        .select_related('from_member__user', 'to_member__user')
        .order_by('-created_at', '-id')
    )
