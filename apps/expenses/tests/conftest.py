import pytest
from decimal import Decimal

from apps.expenses.services import create_expense
from apps.groups.models import Group, GroupMember


@pytest.fixture
def expense(group, user, creator_member, registered_member, guest_member):
    """90.00 EUR dinner paid by ``user``, split evenly between three members."""
    return create_expense(
        group=group,
        actor=user,
        description='Dinner',
        amount=Decimal('90.00'),
        shared_with=[creator_member.id, registered_member.id, guest_member.id],
        note='Time Out Market',
    )


@pytest.fixture
def other_group(db, outsider):
    """A group ``user`` does not belong to."""
    group = Group.objects.create(name='Book Club', created_by=outsider)
    GroupMember.objects.create(group=group, user=outsider)
    return group
