import pytest
from decimal import Decimal
from django.urls import reverse
from rest_framework import status

from apps.activity.models import ActivityType
from apps.activity.services import record_activity
from apps.expenses.services import create_expense


def feed_url():
    return reverse('activity:activity-feed')


@pytest.mark.django_db
class TestActivityFeedEndpoint:
    """Tests for GET /api/activity/"""

    def test_feed_items(self, authenticated_client, group, user, creator_member, guest_member):
        create_expense(
            group=group,
            actor=user,
            description='Sardines',
            amount=Decimal('24.00'),
            shared_with=[creator_member.id, guest_member.id],
        )

        response = authenticated_client.get(feed_url())

        assert response.status_code == status.HTTP_200_OK
        (item,) = response.data
        assert item['type'] == 'expense_created'
        assert item['title'] == 'You added "Sardines" in "Lisbon Trip".'
        assert item['detail'] == 'Expense recorded'
        assert item['amount'] == Decimal('24.00')
        assert item['currency'] == 'EUR'
        assert item['group_id'] == group.id
        assert item['date_label'] == 'Today'

    def test_limit_parameter(self, authenticated_client, group, creator_member):
        for _ in range(3):
            record_activity(group=group, actor_member=creator_member, type=ActivityType.EXPENSE_CREATED)

        response = authenticated_client.get(feed_url(), {'limit': 2})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 2

    def test_invalid_limit_uses_default(self, authenticated_client, group, creator_member):
        for _ in range(3):
            record_activity(group=group, actor_member=creator_member, type=ActivityType.EXPENSE_CREATED)

        response = authenticated_client.get(feed_url(), {'limit': 'lots'})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 3

    def test_empty_for_user_without_groups(self, outsider_client):
        response = outsider_client.get(feed_url())

        assert response.status_code == status.HTTP_200_OK
        assert response.data == []

    def test_requires_authentication(self, api_client):
        response = api_client.get(feed_url())

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
