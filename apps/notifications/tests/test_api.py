import pytest
from django.urls import reverse
from rest_framework import status

from apps.notifications.models import Notification


@pytest.mark.django_db
class TestNotificationList:
    """Tests for GET /api/notifications/ and /api/notifications/unread-count/"""

    def test_list(self, outsider_client, invitation, group):
        response = outsider_client.get(reverse('notifications:notification-list'))

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        item = response.data[0]
        assert item['id'] == invitation.id
        assert item['type'] == 'group_invite'
        assert item['title'] == 'Group Invitation'
        assert item['message'] == 'Alice invited you to join "Lisbon Trip"'
        assert item['data']['group_id'] == group.id
        assert item['read'] is False

    def test_list_is_private(self, authenticated_client, invitation):
        response = authenticated_client.get(reverse('notifications:notification-list'))

        assert response.data == []

    def test_unread_count(self, outsider_client, invitation):
        url = reverse('notifications:unread-count')

        assert outsider_client.get(url).data == {'count': 1}

        outsider_client.patch(reverse('notifications:notification-read', args=[invitation.id]))
        assert outsider_client.get(url).data == {'count': 0}

    def test_requires_authentication(self, api_client):
        response = api_client.get(reverse('notifications:notification-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestNotificationRead:
    """Tests for PATCH /api/notifications/{id}/read/"""

    def test_mark_read(self, outsider_client, invitation):
        response = outsider_client.patch(reverse('notifications:notification-read', args=[invitation.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['read'] is True

    def test_someone_elses(self, authenticated_client, invitation):
        response = authenticated_client.patch(reverse('notifications:notification-read', args=[invitation.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['error'] == 'Notification not found'


@pytest.mark.django_db
class TestInvitationResponses:
    """Tests for POST /api/notifications/{id}/accept/ and /decline/"""

    def test_accept(self, outsider_client, outsider, invitation, group):
        response = outsider_client.post(reverse('notifications:invitation-accept', args=[invitation.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['group_id'] == group.id
        assert response.data['group_name'] == 'Lisbon Trip'
        assert response.data['member_id'] == group.get_member(outsider).id

        groups = outsider_client.get(reverse('groups:group-list'))
        assert [item['id'] for item in groups.data['results']] == [group.id]

    def test_accept_missing(self, outsider_client):
        response = outsider_client.post(reverse('notifications:invitation-accept', args=[99999]))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_accept_non_invitation(self, outsider_client, outsider):
        reminder = Notification.objects.create(
            user=outsider,
            type='reminder',
            title='Reminder',
            message='Settle up',
        )

        response = outsider_client.post(reverse('notifications:invitation-accept', args=[reminder.id]))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error'] == 'Invalid notification type'

    def test_decline(self, outsider_client, outsider, invitation, group):
        response = outsider_client.post(reverse('notifications:invitation-decline', args=[invitation.id]))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not group.has_member(outsider)
        assert not outsider.notifications.exists()

    def test_decline_someone_elses(self, authenticated_client, invitation):
        response = authenticated_client.post(reverse('notifications:invitation-decline', args=[invitation.id]))

        assert response.status_code == status.HTTP_404_NOT_FOUND
