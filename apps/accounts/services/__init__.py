"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    UserRegistrationError,
    InvalidCredentialsError,
    InactiveAccountError,
    PasswordConfirmationError,
    InvalidRefreshTokenError,
)
from .user_registration import register_user
from .user_authentication import authenticate_user, change_password, revoke_refresh_token

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'UserRegistrationError',
    'InvalidCredentialsError',
    'InactiveAccountError',
    'PasswordConfirmationError',
    'InvalidRefreshTokenError',
    # Services
    'register_user',
    'authenticate_user',
    'change_password',
    'revoke_refresh_token',
]
