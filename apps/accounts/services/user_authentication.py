"""User authentication and credential services."""

from django.db import transaction
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import RefreshToken

from .exceptions import (
    InvalidCredentialsError,
    InactiveAccountError,
    PasswordConfirmationError,
    InvalidRefreshTokenError,
)

User = get_user_model()


@transaction.atomic
def authenticate_user(*, email: str, password: str) -> User:
    """
    Authenticate user with email and password.

    Uses select_for_update() to prevent race conditions when updating last_login.

    Args:
        email: User's email
        password: User's password

    Returns:
        Authenticated User instance

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveAccountError: If account is deactivated
    """
    try:
        user = (
            User.objects
            .select_for_update()
            .get(email__iexact=email)
        )
    except User.DoesNotExist:
        raise InvalidCredentialsError("Invalid email or password")

    if not user.check_password(password):
        raise InvalidCredentialsError("Invalid email or password")

    if not user.is_active:
        raise InactiveAccountError("Account is deactivated")

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])

    return user


@transaction.atomic
def change_password(*, user: User, current_password: str, new_password: str) -> User:
    """
    Replace the user's password after re-checking the current one.

    Raises:
        PasswordConfirmationError: If current_password is wrong
    """
    if not user.check_password(current_password):
        raise PasswordConfirmationError("Current password is incorrect")

    user.set_password(new_password)
    user.save(update_fields=['password'])
    return user


def revoke_refresh_token(*, user: User, refresh_token: str) -> None:
    """
    Blacklist one of ``user``'s refresh tokens so it can no longer be refreshed.

    Access tokens already issued stay valid until they expire.

    Raises:
        InvalidRefreshTokenError: If the token is malformed, expired, already
            blacklisted, or was issued to someone else
    """
    try:
        token = RefreshToken(refresh_token)
    except TokenError:
        raise InvalidRefreshTokenError("Invalid or expired refresh token")

    if str(token.get(api_settings.USER_ID_CLAIM)) != str(user.pk):
        raise InvalidRefreshTokenError("Invalid or expired refresh token")

    token.blacklist()
