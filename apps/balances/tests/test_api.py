import pytest
from decimal import Decimal
from django.urls import reverse
from rest_framework import status

from apps.expenses.models import Expense
from apps.expenses.services import create_expense, record_settlement


def balances_url(group_id):
    return reverse('balances:group-balances', kwargs={'group_id': group_id})


@pytest.mark.django_db
class TestGroupBalances:
    """Tests for GET /api/balances/group/{id}/"""

    def test_balances_of_shared_dinner(self, authenticated_client, group, user,
                                       creator_member, registered_member, guest_member):
        create_expense(
            group=group,
            actor=user,
            description='Dinner',
            amount=Decimal('90.00'),
            shared_with=[creator_member.id, registered_member.id, guest_member.id],
        )

        response = authenticated_client.get(balances_url(group.id))

        assert response.status_code == status.HTTP_200_OK
        by_member = {row['memberId']: row for row in response.data}
        assert by_member[creator_member.id]['balance'] == Decimal('60.00')
        assert by_member[registered_member.id]['balance'] == Decimal('-30.00')
        assert by_member[guest_member.id]['balanceInBaseCurrency'] == Decimal('-30.00')
        assert by_member[guest_member.id]['isGuest'] is True
        assert by_member[creator_member.id]['isGuest'] is False
        assert by_member[creator_member.id]['balanceByCurrency'] == [
            {'currency': 'EUR', 'amount': Decimal('60.00')},
        ]

    def test_response_keys(self, authenticated_client, group):
        response = authenticated_client.get(balances_url(group.id))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert set(response.data[0]) == {
            'memberId',
            'memberName',
            'balance',
            'balanceByCurrency',
            'balanceInBaseCurrency',
            'isGuest',
        }
        assert response.data[0]['memberName'] == 'Alice'
        assert response.data[0]['balance'] == Decimal('0.00')
        assert response.data[0]['balanceByCurrency'] == []

    def test_foreign_expense_and_settlement(self, authenticated_client, group, user,
                                            creator_member, registered_member):
        create_expense(
            group=group,
            actor=user,
            description='Boat tour',
            amount=Decimal('100.00'),
            currency='USD',
            shared_with=[registered_member.id],
        )
        record_settlement(
            group=group,
            actor=user,
            from_member_id=registered_member.id,
            to_member_id=creator_member.id,
            amount=Decimal('30.00'),
        )

        response = authenticated_client.get(balances_url(group.id))

        by_member = {row['memberId']: row for row in response.data}
        # 100 USD is 80 EUR; Bob has paid back 30 EUR of it
        assert by_member[creator_member.id]['balance'] == Decimal('50.00')
        assert by_member[registered_member.id]['balance'] == Decimal('-50.00')
        assert by_member[registered_member.id]['balanceByCurrency'] == [
            {'currency': 'USD', 'amount': Decimal('-100.00')},
            {'currency': 'EUR', 'amount': Decimal('30.00')},
        ]

    def test_non_member_forbidden(self, outsider_client, group):
        response = outsider_client.get(balances_url(group.id))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_group(self, authenticated_client):
        response = authenticated_client.get(balances_url(99999))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_requires_authentication(self, api_client, group):
        response = api_client.get(balances_url(group.id))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_missing_rate_is_service_unavailable(self, authenticated_client, group, creator_member):
        Expense.objects.create(
            group=group,
            description='Fondue',
            amount=Decimal('40.00'),
            currency='CHF',
            paid_by=creator_member,
        )

        response = authenticated_client.get(balances_url(group.id))

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert 'detail' in response.data
