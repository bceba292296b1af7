"""User registration service."""

import logging
from typing import Optional

from django.db import transaction, IntegrityError
from django.contrib.auth import get_user_model

from apps.groups.models import Group
from apps.groups.services import join_group

from .exceptions import UserRegistrationError

logger = logging.getLogger(__name__)

User = get_user_model()


def _group_for_invite(invite_code: str) -> Group:
    try:
        return Group.objects.get(invite_code=invite_code.strip())
    except Group.DoesNotExist:
        raise UserRegistrationError("Invalid invite code")


@transaction.atomic
def register_user(
    *,
    email: str,
    password: str,
    name: str = "",
    invite_code: Optional[str] = None
) -> User:
    """
    Register a new user, optionally joining a group in the same step.

    Args:
        email: User's email address
        password: User's password (will be hashed)
        name: Display name shown to other group members
        invite_code: A group's invite code; the new user becomes a member

    Returns:
        Created User instance

    Raises:
        UserRegistrationError: If the email is already registered or the
            invite code matches no group. Nothing is created in either case.
    """
    email = User.objects.normalize_email(email)

    if User.objects.filter(email__iexact=email).exists():
        raise UserRegistrationError("Email already registered")

    group = _group_for_invite(invite_code) if invite_code else None

    try:
        user = User.objects.create_user(
            email=email,
            password=password,
            name=name.strip(),
        )
    except IntegrityError:
        raise UserRegistrationError("Email already registered")

    if group is not None:
        join_group(group_id=group.id, user=user, invite_code=group.invite_code)
        logger.info("Registered user %s into group %s", user.id, group.id)
    else:
        logger.info("Registered user %s", user.id)

    return user
