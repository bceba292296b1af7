"""
Balance Aggregator
==================

Computes every member's net position in a group, broken out by currency
and converted into the group's base currency.

A member is credited for expenses they paid and debited for their share of
every expense. Settlements move debt between two members: the paying member
(``from_member``) is credited and the receiving member (``to_member``) is
debited, so a debtor who pays back what they owe ends at zero.

Functions:
    compute_balances: Pure aggregation over already loaded rows.
    get_group_balances: Loads a group's rows and aggregates them.

Example:
    Balances of a group in its base currency::

        from apps.balances.balances import get_group_balances

        for balance in get_group_balances(group=group):
            print(f"{balance.member_name}: {balance.balance} {group.base_currency}")

Note:
    ``compute_balances`` performs no I/O and only reads attributes, so it
    accepts model instances as well as any objects with the same fields.
    Given the same inputs and rate table its output is identical.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from apps.currency.services import (
    CENT,
    MissingExchangeRateError,
    convert,
    get_exchange_rates,
    missing_currencies,
    normalize_currency,
    round_money,
)
from apps.expenses.models import Expense, ExpenseShare, Settlement
from apps.groups.models import GroupMember


@dataclass(frozen=True)
class CurrencyAmount:
    currency: str
    amount: Decimal


@dataclass(frozen=True)
class MemberBalance:
    """
    Net position of one member.

    Attributes:
        member_id: GroupMember id
        member_name: User's name, else guest name, else ``"Unknown"``
        balance: Rounded total in the group's base currency
        balance_by_currency: Per-currency totals of at least one cent
        balance_in_base_currency: Same value as ``balance``
        is_guest: True iff the member has no linked user
    """

    member_id: int
    member_name: str
    balance: Decimal
    balance_by_currency: List[CurrencyAmount] = field(default_factory=list)
    balance_in_base_currency: Decimal = Decimal('0.00')
    is_guest: bool = False


def member_display_name(member) -> str:
    user = getattr(member, 'user', None)
    if user is not None and getattr(user, 'name', ''):
        return user.name
    return getattr(member, 'name', '') or 'Unknown'


def _positive_zero(value: Decimal) -> Decimal:
    # -0.00 reads badly in API output
    return abs(value) if value == 0 else value


def compute_balances(group, members, expenses, shares, settlements, rates: Mapping[str, Decimal]) -> List[MemberBalance]:
    """
    Aggregate a group's expenses, shares and settlements per member.

    Args:
        group: Object with ``base_currency``
        members: Every member of the group, in output order
        expenses: The group's expenses (``id``, ``paid_by_id``, ``amount``, ``currency``)
        shares: Shares of those expenses (``expense_id``, ``member_id``, ``amount``)
        settlements: The group's settlements (``from_member_id``,
            ``to_member_id``, ``amount``, ``currency``)
        rates: Table of units per 1 EUR

    Returns:
        One MemberBalance per member, in the order of ``members``

    Raises:
        MissingExchangeRateError: If a currency in use is absent from ``rates``

    Example:
        A pays 100.00 EUR split evenly between A and B::

            >>> [b.balance for b in compute_balances(group, [a, b], [lunch], lunch_shares, [], rates)]
            [Decimal('50.00'), Decimal('-50.00')]
    """
    base_currency = normalize_currency(getattr(group, 'base_currency', None))

    # member id -> currency -> running total; dicts keep first-seen order
    totals: Dict[int, Dict[str, Decimal]] = {member.id: {} for member in members}

    def add(member_id, currency, amount):
        if member_id not in totals:
            return
        by_currency = totals[member_id]
        by_currency[currency] = by_currency.get(currency, Decimal('0')) + Decimal(amount)

    expense_currency: Dict[int, str] = {}
    for expense in expenses:
        currency = normalize_currency(expense.currency, default=base_currency)
        expense_currency[expense.id] = currency
        add(expense.paid_by_id, currency, expense.amount)

    for share in shares:
        currency = expense_currency.get(share.expense_id, base_currency)
        add(share.member_id, currency, -share.amount)

    for settlement in settlements:
        currency = normalize_currency(settlement.currency, default=base_currency)
        add(settlement.from_member_id, currency, settlement.amount)
        add(settlement.to_member_id, currency, -settlement.amount)

    balances = []
    for member in members:
        by_currency = totals[member.id]

        total_in_base = sum(
            (convert(amount, currency, base_currency, rates) for currency, amount in by_currency.items()),
            Decimal('0'),
        )
        total_in_base = _positive_zero(round_money(total_in_base))

        visible = [
            CurrencyAmount(currency=currency, amount=_positive_zero(round_money(amount)))
            for currency, amount in by_currency.items()
            if abs(amount) >= CENT
        ]

        balances.append(MemberBalance(
            member_id=member.id,
            member_name=member_display_name(member),
            balance=total_in_base,
            balance_by_currency=visible,
            balance_in_base_currency=total_in_base,
            is_guest=getattr(member, 'user_id', None) is None,
        ))

    return balances


def required_currencies(group, expenses: Iterable, settlements: Iterable) -> List[str]:
    """Currencies a balance computation for these rows will convert from or to."""
    base_currency = normalize_currency(getattr(group, 'base_currency', None))
    currencies = {base_currency}
    currencies.update(normalize_currency(e.currency, default=base_currency) for e in expenses)
    currencies.update(normalize_currency(s.currency, default=base_currency) for s in settlements)
    return sorted(currencies)


def get_group_balances(*, group, rates: Optional[Mapping[str, Decimal]] = None) -> List[MemberBalance]:
    """
    Load a group's members, expenses, shares and settlements and aggregate them.

    Args:
        group: Group instance
        rates: Rate table (default: the shared provider's table)

    Raises:
        MissingExchangeRateError: Before any aggregation, if ``rates`` cannot
            convert one of the currencies in use
    """
    if rates is None:
        rates = get_exchange_rates()

    members = list(GroupMember.objects.filter(group=group).select_related('user').order_by('joined_at', 'id'))
    expenses = list(Expense.objects.filter(group=group).order_by('created_at', 'id'))
    shares = list(ExpenseShare.objects.filter(expense__group=group).order_by('id'))
    settlements = list(Settlement.objects.filter(group=group).order_by('created_at', 'id'))

    missing = missing_currencies(required_currencies(group, expenses, settlements), rates)
    if missing:
        raise MissingExchangeRateError(missing[0])

    return compute_balances(group, members, expenses, shares, settlements, rates)
