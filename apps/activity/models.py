from django.db import models
from django.utils import timezone


class ActivityType(models.TextChoices):
    EXPENSE_CREATED = 'expense_created', 'Expense created'
    EXPENSE_UPDATED = 'expense_updated', 'Expense updated'
    EXPENSE_DELETED = 'expense_deleted', 'Expense deleted'
    SETTLEMENT_CREATED = 'settlement_created', 'Settlement created'


class Activity(models.Model):
    """Entry in a group's activity feed."""

    group = models.ForeignKey('groups.Group', on_delete=models.CASCADE, related_name='activities')
    actor_member = models.ForeignKey(
        'groups.GroupMember',
        on_delete=models.CASCADE,
        related_name='activities_as_actor',
    )
    type = models.CharField(max_length=32, choices=ActivityType.choices)

    # Subjects (kept as SET_NULL so the feed survives deletions)
    expense = models.ForeignKey(
        'expenses.Expense',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='activities',
    )
    settlement = models.ForeignKey(
        'expenses.Settlement',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='activities',
    )
    from_member = models.ForeignKey(
        'groups.GroupMember',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='activities_as_payer',
    )
    to_member = models.ForeignKey(
        'groups.GroupMember',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='activities_as_receiver',
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'activities'
        indexes = [
            models.Index(fields=['group', 'created_at'], name='activities_group_idx'),
            models.Index(fields=['created_at'], name='activities_created_idx'),
        ]
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'activities'

    def __str__(self):
        return f"{self.get_type_display()} in {self.group.name}"
