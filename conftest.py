import pytest
from decimal import Decimal
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User
from apps.groups.models import Group, GroupMember
from apps.currency.services import get_exchange_rate_provider


TEST_RATES = {
    'EUR': Decimal('1'),
    'USD': Decimal('1.25'),
    'GBP': Decimal('0.8'),
    'JPY': Decimal('160'),
    'CZK': Decimal('25'),
}


@pytest.fixture(autouse=True)
def exchange_rates(settings):
    """Seed the shared rate provider so no test reaches the rate feed."""
    settings.EXCHANGE_RATES = {
        'SOURCE_URL': 'https://rates.invalid/eurofxref-daily.xml',
        'TIMEOUT': 1.0,
        'REFRESH_HOURS': 24,
    }
    get_exchange_rate_provider.cache_clear()
    provider = get_exchange_rate_provider()
    provider.cache.store(TEST_RATES, timezone.now())
    yield dict(TEST_RATES)
    get_exchange_rate_provider.cache_clear()


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Create and return a registered test user."""
    return User.objects.create_user(
        email='alice@example.com',
        password='TestPass123!',
        name='Alice',
    )


@pytest.fixture
def other_user(db):
    """Create and return a second registered user."""
    return User.objects.create_user(
        email='bob@example.com',
        password='TestPass123!',
        name='Bob',
    )


@pytest.fixture
def outsider(db):
    """Create and return a user who belongs to no group."""
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
        name='Outsider',
    )


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def authenticated_client(user):
    """Return API client authenticated as ``user``."""
    return _client_for(user)


@pytest.fixture
def other_client(other_user):
    """Return API client authenticated as ``other_user``."""
    return _client_for(other_user)


@pytest.fixture
def outsider_client(outsider):
    """Return API client authenticated as a non-member."""
    return _client_for(outsider)


@pytest.fixture
def group(db, user):
    """Create a EUR group with ``user`` as creator and first member."""
    group = Group.objects.create(
        name='Lisbon Trip',
        description='Flights, food and the tram',
        created_by=user,
    )
    GroupMember.objects.create(group=group, user=user)
    return group


@pytest.fixture
def creator_member(group, user):
    return group.members.get(user=user)


@pytest.fixture
def registered_member(group, other_user):
    """Second registered member of ``group``."""
    return GroupMember.objects.create(group=group, user=other_user)


@pytest.fixture
def guest_member(group):
    """Guest member without a user account."""
    return GroupMember.objects.create(group=group, name='Charlie')
