import pytest

from apps.groups.services import invite_user_to_group


@pytest.fixture
def invitation(group, user, outsider):
    """Pending invitation from Alice to the outsider for ``group``."""
    return invite_user_to_group(group_id=group.id, user=user, email=outsider.email)
