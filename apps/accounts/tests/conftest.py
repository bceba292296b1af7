import pytest
from apps.accounts.models import User


@pytest.fixture
def dormant_user(db):
    """Deactivated account with a valid password."""
    return User.objects.create_user(
        email='dormant@example.com',
        password='TestPass123!',
        name='Dana',
        is_active=False,
    )
