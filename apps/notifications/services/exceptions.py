"""Domain-specific exceptions for notifications services."""


class NotificationsServiceError(Exception):
    """Base exception for notifications services."""
    pass


class NotificationNotFoundError(NotificationsServiceError):
    """Raised when a notification does not exist or belongs to someone else."""
    pass


class InvalidNotificationTypeError(NotificationsServiceError):
    """Raised when accepting a notification that is not an invitation."""
    pass
