import pytest
from django.urls import reverse
from rest_framework import status

from apps.currency.services import SUPPORTED_CURRENCIES


@pytest.mark.django_db
class TestCurrencyEndpoints:
    """Tests for /api/currencies/"""

    def test_list_is_public(self, api_client):
        url = reverse('currency:currency-list')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['currencies'] == SUPPORTED_CURRENCIES
        assert len(response.data['currencies']) == 30

    def test_rates_require_authentication(self, api_client):
        url = reverse('currency:currency-rates')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_rates_come_from_provider_cache(self, authenticated_client):
        url = reverse('currency:currency-rates')
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['base'] == 'EUR'
        assert response.data['rates']['USD'] == 1.25
        assert response.data['rates']['EUR'] == 1.0
