"""
Expense management service.

Creates, edits and deletes expenses together with their shares. Each change
is validated against the group (membership, archived state), captures the
exchange rate into the group's base currency, and is written to the group's
activity feed in the same transaction.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from django.db import transaction
from django.db.models import Prefetch, QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.activity.models import ActivityType
from apps.activity.services import record_activity
from apps.currency.services import get_exchange_rates, normalize_currency, rate_between
from apps.expenses.models import Expense, ExpenseShare
from apps.groups.models import Group, GroupMember
from apps.groups.services import NotMemberError, ensure_not_archived

from .exceptions import (
    ExpenseNotFoundError,
    FutureDateError,
    InvalidMemberError,
    InvalidSplitError,
)
from .split import split_evenly, validate_custom_shares

logger = logging.getLogger(__name__)


RATE_PRECISION = Decimal('0.00000001')


def resolve_actor_member(group: Group, user: User) -> GroupMember:
    member = group.get_member(user)
    if member is None:
        raise NotMemberError("Not a member of this group")
    return member


def resolve_group_members(group: Group, member_ids: Iterable[int]) -> Dict[int, GroupMember]:
    """
    Load members by id in the order requested, failing if any of them is
    outside ``group``. Duplicate ids collapse to their first occurrence.
    """
    member_ids = list(dict.fromkeys(int(member_id) for member_id in member_ids))
    found = {
        member.id: member
        for member in GroupMember.objects.filter(group=group, id__in=member_ids).select_related('user')
    }
    missing = [member_id for member_id in member_ids if member_id not in found]
    if missing:
        raise InvalidMemberError(
            f"Members {', '.join(str(m) for m in missing)} do not belong to this group"
        )
    return {member_id: found[member_id] for member_id in member_ids}


def _check_date(created_at: Optional[datetime]) -> None:
    if created_at is not None and created_at > timezone.now():
        raise FutureDateError("Expense date cannot be in the future")


def captured_rate(currency: str, group: Group, rates: Optional[Mapping[str, Decimal]]) -> Decimal:
    if rates is None:
        rates = get_exchange_rates()
    return rate_between(currency, group.base_currency, rates).quantize(RATE_PRECISION)


def _build_shares(
    group: Group,
    amount: Decimal,
    shared_with: Optional[Sequence[int]],
    custom_shares: Optional[Sequence[Mapping]],
) -> List[tuple]:
    """
    Resolve (member, amount) pairs from either explicit shares or an even split.

    Raises:
        InvalidSplitError: If neither is given or custom shares don't add up
        InvalidMemberError: If a member is outside the group
    """
    if custom_shares:
        member_ids = [share['member_id'] for share in custom_shares]
        if len(set(member_ids)) != len(member_ids):
            raise InvalidSplitError("Each member can only have one share")
        validate_custom_shares(amount, [Decimal(share['amount']) for share in custom_shares])
        members = resolve_group_members(group, member_ids)
        return [
            (members[int(share['member_id'])], Decimal(share['amount']))
            for share in custom_shares
        ]

    if not shared_with:
        raise InvalidSplitError("Expense must be shared with at least one member")

    members = resolve_group_members(group, shared_with)
    return split_evenly(amount, list(members.values()))


def _replace_shares(expense: Expense, shares: Sequence[tuple]) -> List[ExpenseShare]:
    expense.shares.all().delete()
    return ExpenseShare.objects.bulk_create([
        ExpenseShare(expense=expense, member=member, amount=amount)
        for member, amount in shares
    ])


@transaction.atomic
def create_expense(
    *,
    group: Group,
    actor: User,
    description: str,
    amount: Decimal,
    shared_with: Optional[Sequence[int]] = None,
    custom_shares: Optional[Sequence[Mapping]] = None,
    currency: Optional[str] = None,
    paid_by: Optional[int] = None,
    note: str = '',
    created_at: Optional[datetime] = None,
    receipt_items: Optional[list] = None,
    attachments: Optional[list] = None,
    rates: Optional[Mapping[str, Decimal]] = None
) -> Expense:
    """
    Record an expense and split it between members.

    Args:
        group: Group the expense belongs to
        actor: User recording the expense
        description: Short description
        amount: Total amount (> 0, 2 decimal places)
        shared_with: Member ids to split the amount evenly between
        custom_shares: Explicit ``{'member_id', 'amount'}`` shares; take
            precedence over ``shared_with`` and must add up to ``amount``
        currency: ISO code (default: group base currency)
        paid_by: Paying member id (default: the actor's membership)
        note: Free text note
        created_at: When the expense happened (default: now)
        receipt_items: Optional itemised receipt lines
        attachments: Optional ``{'url', 'name', 'type'}`` entries
        rates: Rate table (default: the shared provider's table)

    Returns:
        Created Expense with its shares

    Raises:
        NotMemberError: If actor is not a member
        GroupArchivedError: If the group is archived
        InvalidMemberError: If payer or share members are outside the group
        InvalidSplitError: If shares are missing or don't add up
        FutureDateError: If created_at is in the future
        MissingExchangeRateError: If the currency cannot be converted
    """
    actor_member = resolve_actor_member(group, actor)
    ensure_not_archived(group)
    _check_date(created_at)

    if amount <= 0:
        raise InvalidSplitError("Amount must be greater than zero")

    if paid_by is None:
        payer = actor_member
    else:
        payer = resolve_group_members(group, [paid_by])[int(paid_by)]

    currency = normalize_currency(currency, default=group.base_currency)
    shares = _build_shares(group, amount, shared_with, custom_shares)

    expense = Expense.objects.create(
        group=group,
        description=description,
        note=note or '',
        amount=amount,
        currency=currency,
        exchange_rate=captured_rate(currency, group, rates),
        paid_by=payer,
        receipt_items=receipt_items or [],
        attachments=attachments or [],
        created_at=created_at or timezone.now(),
    )
    _replace_shares(expense, shares)

    record_activity(
        group=group,
        actor_member=actor_member,
        type=ActivityType.EXPENSE_CREATED,
        expense=expense,
        amount=expense.amount,
        currency=expense.currency,
        metadata={'description': expense.description, 'note': expense.note},
    )

    logger.info(
        "Expense %s (%s %s) created in group %s by member %s",
        expense.id, expense.amount, expense.currency, group.id, actor_member.id,
    )
    return expense


def _lock_expense(expense_id: int) -> Expense:
    try:
        return (
            Expense.objects
            .select_for_update()
            .select_related('group')
            .get(id=expense_id)
        )
    except Expense.DoesNotExist:
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")


@transaction.atomic
def update_expense(
    *,
    expense_id: int,
    user: User,
    description: Optional[str] = None,
    amount: Optional[Decimal] = None,
    shared_with: Optional[Sequence[int]] = None,
    custom_shares: Optional[Sequence[Mapping]] = None,
    currency: Optional[str] = None,
    paid_by: Optional[int] = None,
    note: Optional[str] = None,
    created_at: Optional[datetime] = None,
    receipt_items: Optional[list] = None,
    attachments: Optional[list] = None,
    rates: Optional[Mapping[str, Decimal]] = None
) -> Expense:
    """
    Partially update an expense.

    Shares are rebuilt when ``shared_with`` or ``custom_shares`` is given.
    When only the amount changes, it is split evenly again between the
    members already sharing the expense. The captured exchange rate is
    refreshed when the currency changes.

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        NotMemberError: If user is not a member of the expense's group
        GroupArchivedError: If the group is archived
        InvalidMemberError, InvalidSplitError, FutureDateError,
        MissingExchangeRateError: As for create_expense
    """
    expense = _lock_expense(expense_id)
    group = expense.group
    actor_member = resolve_actor_member(group, user)
    ensure_not_archived(group)
    _check_date(created_at)

    if description is not None:
        expense.description = description
    if note is not None:
        expense.note = note
    if created_at is not None:
        expense.created_at = created_at
    if receipt_items is not None:
        expense.receipt_items = receipt_items
    if attachments is not None:
        expense.attachments = attachments
    if paid_by is not None:
        expense.paid_by = resolve_group_members(group, [paid_by])[int(paid_by)]

    amount_changed = amount is not None and amount != expense.amount
    if amount is not None:
        if amount <= 0:
            raise InvalidSplitError("Amount must be greater than zero")
        expense.amount = amount

    if currency is not None:
        currency = normalize_currency(currency, default=group.base_currency)
        if currency != expense.currency:
            expense.currency = currency
            expense.exchange_rate = captured_rate(currency, group, rates)

    if shared_with or custom_shares:
        _replace_shares(expense, _build_shares(group, expense.amount, shared_with, custom_shares))
    elif amount_changed:
        current = [
            share.member
            for share in expense.shares.select_related('member').order_by('id')
        ]
        _replace_shares(expense, split_evenly(expense.amount, current))

    expense.save()

    record_activity(
        group=group,
        actor_member=actor_member,
        type=ActivityType.EXPENSE_UPDATED,
        expense=expense,
        amount=expense.amount,
        currency=expense.currency,
        metadata={'description': expense.description, 'note': expense.note},
    )

    logger.info("Expense %s updated by member %s", expense.id, actor_member.id)
    return expense


@transaction.atomic
def delete_expense(*, expense_id: int, user: User) -> None:
    """
    Delete an expense and its shares.

    The activity entry is written first and keeps the description in its
    metadata, since its link to the expense is cleared by the delete.

    Raises:
        ExpenseNotFoundError: If expense doesn't exist
        NotMemberError: If user is not a member of the expense's group
        GroupArchivedError: If the group is archived
    """
    expense = _lock_expense(expense_id)
    group = expense.group
    actor_member = resolve_actor_member(group, user)
    ensure_not_archived(group)

    record_activity(
        group=group,
        actor_member=actor_member,
        type=ActivityType.EXPENSE_DELETED,
        amount=expense.amount,
        currency=expense.currency,
        metadata={'description': expense.description, 'note': expense.note},
    )

    expense.delete()
    logger.info("Expense %s deleted by member %s", expense_id, actor_member.id)


def get_group_expenses(*, group: Group) -> QuerySet:
    """Expenses of a group with payer and shares loaded, newest first."""
    return (
        Expense.objects
        .filter(group=group)
        .select_related('group', 'paid_by__user')
        .prefetch_related(
            Prefetch('shares', queryset=ExpenseShare.objects.select_related('member__user'))
        )
        .order_by('-created_at', '-id')
    )
