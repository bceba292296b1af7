import csv
import io
import pytest
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from apps.expenses.models import Expense, Settlement
from apps.expenses.services import create_expense


# =============================================================================
# Expense CRUD Tests
# =============================================================================

@pytest.mark.django_db
class TestExpenseCreate:
    """Tests for POST /api/expenses/"""

    def url(self):
        return reverse('expenses:expense-list')

    def test_create_even_split(self, authenticated_client, group, creator_member, registered_member):
        data = {
            'group': group.id,
            'description': 'Groceries',
            'amount': '30.00',
            'shared_with': [creator_member.id, registered_member.id],
        }
        response = authenticated_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['paid_by'] == creator_member.id
        assert response.data['paid_by_name'] == 'Alice'
        assert response.data['currency'] == 'EUR'
        assert [share['amount'] for share in response.data['shares']] == ['15.00', '15.00']

    def test_create_custom_shares(self, authenticated_client, group, creator_member, guest_member):
        data = {
            'group': group.id,
            'description': 'Hotel',
            'amount': '100.00',
            'currency': 'usd',
            'custom_shares': [
                {'member_id': creator_member.id, 'amount': '60.00'},
                {'member_id': guest_member.id, 'amount': '40.00'},
            ],
        }
        response = authenticated_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['currency'] == 'USD'
        assert Decimal(response.data['exchange_rate']) == Decimal('0.8')
        names = {share['member_name']: share['amount'] for share in response.data['shares']}
        assert names == {'Alice': '60.00', 'Charlie': '40.00'}

    def test_custom_shares_mismatch(self, authenticated_client, group, creator_member, guest_member):
        data = {
            'group': group.id,
            'description': 'Hotel',
            'amount': '100.00',
            'custom_shares': [
                {'member_id': creator_member.id, 'amount': '60.00'},
                {'member_id': guest_member.id, 'amount': '20.00'},
            ],
        }
        response = authenticated_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'Custom shares must add up to the total amount'

    def test_requires_shared_with(self, authenticated_client, group):
        data = {'group': group.id, 'description': 'Snacks', 'amount': '5.00'}
        response = authenticated_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'shared_with' in response.data

    def test_rejects_non_positive_amount(self, authenticated_client, group, creator_member):
        data = {
            'group': group.id,
            'description': 'Snacks',
            'amount': '0',
            'shared_with': [creator_member.id],
        }
        response = authenticated_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'amount' in response.data

    def test_rejects_future_date(self, authenticated_client, group, creator_member):
        data = {
            'group': group.id,
            'description': 'Snacks',
            'amount': '5.00',
            'shared_with': [creator_member.id],
            'created_at': (timezone.now() + timedelta(days=2)).isoformat(),
        }
        response = authenticated_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'created_at' in response.data

    def test_rejects_unsupported_currency(self, authenticated_client, group, creator_member):
        data = {
            'group': group.id,
            'description': 'Snacks',
            'amount': '5.00',
            'currency': 'XYZ',
            'shared_with': [creator_member.id],
        }
        response = authenticated_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'currency' in response.data

    def test_missing_rate_is_service_unavailable(self, authenticated_client, group, creator_member):
        data = {
            'group': group.id,
            'description': 'Fondue',
            'amount': '40.00',
            'currency': 'CHF',
            'shared_with': [creator_member.id],
        }
        response = authenticated_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.data['detail'].code == 'exchange_rate_unavailable'
        assert not Expense.objects.exists()

    def test_share_member_outside_group(self, authenticated_client, group, creator_member, other_group):
        data = {
            'group': group.id,
            'description': 'Snacks',
            'amount': '5.00',
            'shared_with': [creator_member.id, other_group.members.get().id],
        }
        response = authenticated_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_archived_group(self, authenticated_client, group, creator_member):
        group.archived = True
        group.save()

        data = {
            'group': group.id,
            'description': 'Snacks',
            'amount': '5.00',
            'shared_with': [creator_member.id],
        }
        response = authenticated_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert 'archived' in response.data['error']

    def test_non_member(self, outsider_client, group, creator_member):
        data = {
            'group': group.id,
            'description': 'Snacks',
            'amount': '5.00',
            'shared_with': [creator_member.id],
        }
        response = outsider_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_group(self, authenticated_client):
        data = {
            'group': 99999,
            'description': 'Snacks',
            'amount': '5.00',
            'shared_with': [1],
        }
        response = authenticated_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unauthenticated(self, api_client, group):
        response = api_client.post(self.url(), {'group': group.id}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestExpenseList:
    """Tests for GET /api/expenses/"""

    def test_list_group_expenses(self, authenticated_client, group, expense):
        url = reverse('expenses:expense-list')
        response = authenticated_client.get(url, {'group': group.id})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['description'] == 'Dinner'
        assert len(response.data['results'][0]['shares']) == 3

    def test_list_without_group_covers_all_my_groups(self, other_client, expense):
        url = reverse('expenses:expense-list')
        response = other_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1

    def test_list_non_member(self, outsider_client, group, expense):
        url = reverse('expenses:expense-list')
        response = outsider_client.get(url, {'group': group.id})

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestExpenseDetail:
    """Tests for GET/PATCH/DELETE /api/expenses/{id}/"""

    def test_retrieve(self, other_client, expense):
        url = reverse('expenses:expense-detail', kwargs={'pk': expense.id})
        response = other_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['note'] == 'Time Out Market'

    def test_retrieve_non_member(self, outsider_client, expense):
        url = reverse('expenses:expense-detail', kwargs={'pk': expense.id})
        response = outsider_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_partial_update(self, authenticated_client, expense, creator_member, guest_member):
        url = reverse('expenses:expense-detail', kwargs={'pk': expense.id})
        data = {
            'description': 'Dinner and drinks',
            'amount': '50.00',
            'shared_with': [creator_member.id, guest_member.id],
        }
        response = authenticated_client.patch(url, data, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['description'] == 'Dinner and drinks'
        assert [share['amount'] for share in response.data['shares']] == ['25.00', '25.00']

    def test_partial_update_archived(self, authenticated_client, group, expense):
        group.archived = True
        group.save()

        url = reverse('expenses:expense-detail', kwargs={'pk': expense.id})
        response = authenticated_client.patch(url, {'description': 'Nope'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_put_not_allowed(self, authenticated_client, expense):
        url = reverse('expenses:expense-detail', kwargs={'pk': expense.id})
        response = authenticated_client.put(url, {'description': 'Nope'}, format='json')

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED

    def test_delete(self, other_client, expense):
        url = reverse('expenses:expense-detail', kwargs={'pk': expense.id})
        response = other_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Expense.objects.filter(id=expense.id).exists()

    def test_delete_non_member(self, outsider_client, expense):
        url = reverse('expenses:expense-detail', kwargs={'pk': expense.id})
        response = outsider_client.delete(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert Expense.objects.filter(id=expense.id).exists()


# =============================================================================
# Export Tests
# =============================================================================

@pytest.mark.django_db
class TestExpenseExport:
    """Tests for GET /api/expenses/export/"""

    def _rows(self, response):
        return list(csv.reader(io.StringIO(response.content.decode('utf-8'))))

    def test_export_csv(self, authenticated_client, group, user, creator_member, guest_member):
        create_expense(
            group=group,
            actor=user,
            description='Tram, day pass',
            amount=Decimal('12.50'),
            currency='USD',
            shared_with=[creator_member.id, guest_member.id],
            created_at=datetime(2024, 3, 1, 14, 5, tzinfo=dt_timezone.utc),
            attachments=[{'url': 'https://files.example.com/t.png', 'name': 't.png', 'type': 'image/png'}],
        )

        url = reverse('expenses:expense-export')
        response = authenticated_client.get(url, {'group': group.id})

        assert response.status_code == status.HTTP_200_OK
        assert response['Content-Type'] == 'text/csv; charset=utf-8'
        today = timezone.localdate().isoformat()
        assert response['Content-Disposition'] == (
            f'attachment; filename="expenses-lisbon-trip-{today}.csv"'
        )

        header, row = self._rows(response)
        assert header == [
            'expense_id', 'description', 'note', 'amount', 'currency',
            'exchange_rate', 'base_currency', 'paid_by', 'created_at',
            'split_with', 'shares', 'have_attachments',
        ]
        assert row[1] == 'Tram, day pass'
        assert row[3:8] == ['12.50', 'USD', '0.8000', 'EUR', 'Alice']
        assert row[8] == '01/03/2024, 14:05'
        assert row[9] == 'Alice; Charlie (guest)'
        assert row[10] == 'Alice: 6.25; Charlie (guest): 6.25'
        assert row[11] == 'true'

    def test_export_quotes_fields_with_commas(self, authenticated_client, group, expense):
        expense.note = 'Fish, wine and "dessert"'
        expense.save()

        url = reverse('expenses:expense-export')
        response = authenticated_client.get(url, {'group': group.id})

        assert '"Fish, wine and ""dessert"""' in response.content.decode('utf-8')

    def test_export_requires_group(self, authenticated_client):
        url = reverse('expenses:expense-export')
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_export_non_member(self, outsider_client, group, expense):
        url = reverse('expenses:expense-export')
        response = outsider_client.get(url, {'group': group.id})

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Settlement Tests
# =============================================================================

@pytest.mark.django_db
class TestSettlements:
    """Tests for GET/POST /api/expenses/settlements/"""

    def url(self):
        return reverse('expenses:expense-settlements')

    def test_record_settlement(self, other_client, group, creator_member, registered_member):
        data = {
            'group': group.id,
            'from_member': registered_member.id,
            'to_member': creator_member.id,
            'amount': '30.00',
        }
        response = other_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['from_member_name'] == 'Bob'
        assert response.data['to_member_name'] == 'Alice'
        assert response.data['currency'] == 'EUR'
        assert Settlement.objects.filter(group=group).count() == 1

    def test_same_member(self, authenticated_client, group, creator_member):
        data = {
            'group': group.id,
            'from_member': creator_member.id,
            'to_member': creator_member.id,
            'amount': '30.00',
        }
        response = authenticated_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_archived_group(self, authenticated_client, group, creator_member, guest_member):
        group.archived = True
        group.save()

        data = {
            'group': group.id,
            'from_member': guest_member.id,
            'to_member': creator_member.id,
            'amount': '30.00',
        }
        response = authenticated_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert 'archived' in response.data['error']

    def test_non_member(self, outsider_client, group, creator_member, guest_member):
        data = {
            'group': group.id,
            'from_member': guest_member.id,
            'to_member': creator_member.id,
            'amount': '30.00',
        }
        response = outsider_client.post(self.url(), data, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_settlements(self, authenticated_client, group, creator_member, guest_member):
        Settlement.objects.create(
            group=group,
            from_member=guest_member,
            to_member=creator_member,
            amount=Decimal('10.00'),
        )

        response = authenticated_client.get(self.url(), {'group': group.id})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert response.data[0]['amount'] == '10.00'
        assert response.data[0]['from_member_name'] == 'Charlie'

    def test_list_requires_group(self, authenticated_client):
        response = authenticated_client.get(self.url())

        assert response.status_code == status.HTTP_400_BAD_REQUEST
