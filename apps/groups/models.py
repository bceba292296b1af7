from django.db import models
import secrets

from apps.currency.services import DEFAULT_CURRENCY, normalize_currency


def generate_invite_code():
    return secrets.token_urlsafe(12)[:16]


class Group(models.Model):
    """A set of people sharing expenses, kept in one base currency."""

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    base_currency = models.CharField(max_length=3, default=DEFAULT_CURRENCY)
    archived = models.BooleanField(default=False)
    invite_code = models.CharField(max_length=16, unique=True, db_index=True, editable=False)
    created_by = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='created_groups')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'groups'
        indexes = [
            models.Index(fields=['created_by', 'created_at'], name='groups_creator_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.base_currency = normalize_currency(self.base_currency)
        if not self.invite_code:
            self.invite_code = generate_invite_code()
        super().save(*args, **kwargs)

    def has_member(self, user):
        return self.members.filter(user=user).exists()

    def get_member(self, user):
        """Return the user's GroupMember row, or None."""
        return self.members.filter(user=user).first()

    def is_creator(self, user):
        return self.created_by_id == user.pk


class GroupMember(models.Model):
    """
    Participant in a group's expense splitting.

    Linked to a registered user, or a guest known only by ``name``
    when ``user`` is null.
    """

    group = models.ForeignKey(Group, on_delete=models.CASCADE, related_name='members')
    user = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='group_memberships',
    )
    name = models.CharField(max_length=100, blank=True)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'group_members'
        constraints = [
            models.UniqueConstraint(fields=['group', 'user'], name='unique_group_user'),
        ]
        indexes = [
            models.Index(fields=['user', 'joined_at'], name='group_members_user_idx'),
        ]
        ordering = ['joined_at', 'id']

    def __str__(self):
        return f"{self.display_name} in {self.group.name}"

    @property
    def is_guest(self):
        return self.user_id is None

    @property
    def display_name(self):
        if self.user is not None and self.user.name:
            return self.user.name
        return self.name or 'Unknown'
