"""
Notifications app services layer.

In-app inbox: listing, read state, and answering group invitations.
"""

from .exceptions import (
    NotificationsServiceError,
    NotificationNotFoundError,
    InvalidNotificationTypeError,
)

from .notification_management import (
    get_notifications,
    get_unread_count,
    mark_read,
    accept_invitation,
    decline_invitation,
)


__all__ = [
    # Exceptions
    'NotificationsServiceError',
    'NotificationNotFoundError',
    'InvalidNotificationTypeError',

    # Inbox
    'get_notifications',
    'get_unread_count',
    'mark_read',
    'accept_invitation',
    'decline_invitation',
]
