from django.db import models
from django.utils import timezone


class NotificationType(models.TextChoices):
    GROUP_INVITE = 'group_invite', 'Group invitation'


class Notification(models.Model):
    """
    In-app message addressed to one user.

    ``data`` carries type-specific details; a group invitation stores
    ``group_id`` and ``invited_by`` (the inviter's user id).
    """

    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='notifications')
    type = models.CharField(max_length=32, choices=NotificationType.choices)
    title = models.CharField(max_length=200)
    message = models.TextField()
    data = models.JSONField(default=dict, blank=True)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'notifications'
        indexes = [
            models.Index(fields=['user', 'read'], name='notifications_user_read_idx'),
        ]
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.get_type_display()} for {self.user}"

    @property
    def group_id(self):
        return self.data.get('group_id')

    @property
    def is_invitation(self):
        return self.type == NotificationType.GROUP_INVITE
