"""
Cent-precise expense splitting.

Amounts are converted to integer cents, divided, and the remainder is handed
out one cent at a time so the shares always add up to the total exactly.
"""

from decimal import Decimal
from typing import Iterable, List, Sequence, Tuple, TypeVar

from .exceptions import InvalidSplitError

Member = TypeVar('Member')

SHARE_TOLERANCE = Decimal('0.01')


def split_evenly(amount: Decimal, members: Sequence[Member]) -> List[Tuple[Member, Decimal]]:
    """
    Split ``amount`` between ``members``.

    Algorithm:
        1. Convert to cents: ``total_cents = amount * 100``
        2. Base share: ``base = total_cents // N``
        3. Remainder: ``remainder = total_cents % N``
        4. First ``remainder`` members get ``base + 1`` cents, the rest ``base``

    Example:
        >>> split_evenly(Decimal('100.00'), ['a', 'b', 'c'])
        [('a', Decimal('33.34')), ('b', Decimal('33.33')), ('c', Decimal('33.33'))]

    Raises:
        InvalidSplitError: If ``members`` is empty or the split does not add up.
    """
    if not members:
        raise InvalidSplitError("At least one member required")

    total_cents = int((amount * 100).to_integral_value())
    base_cents, remainder_cents = divmod(total_cents, len(members))

    shares = []
    for i, member in enumerate(members):
        cents = base_cents + 1 if i < remainder_cents else base_cents
        shares.append((member, Decimal(cents) / Decimal(100)))

    total_check = sum(share for _, share in shares)
    if total_check != amount:
        raise InvalidSplitError(f"Split calculation error: {total_check} != {amount}")

    return shares


def validate_custom_shares(amount: Decimal, shares: Iterable[Decimal]) -> None:
    """
    Check that explicit shares add up to ``amount``, allowing one cent of slack.

    Raises:
        InvalidSplitError: If any share is negative or the total is off.
    """
    shares = list(shares)
    if not shares:
        raise InvalidSplitError("At least one share required")
    if any(share < 0 for share in shares):
        raise InvalidSplitError("Shares cannot be negative")
    if abs(sum(shares) - amount) > SHARE_TOLERANCE:
        raise InvalidSplitError("Custom shares must add up to the total amount")
