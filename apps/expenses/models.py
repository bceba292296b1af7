from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone
from decimal import Decimal

from apps.currency.services import DEFAULT_CURRENCY, normalize_currency


class Expense(models.Model):
    """Something one member paid for, split between members of a group."""

    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        related_name='expenses'
    )
    description = models.CharField(max_length=200)
    note = models.TextField(blank=True)

    # Financial details
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    currency = models.CharField(max_length=3, default=DEFAULT_CURRENCY)
    # Expense currency -> group base currency, captured when recorded
    exchange_rate = models.DecimalField(max_digits=20, decimal_places=8, default=Decimal('1'))

    paid_by = models.ForeignKey(
        'groups.GroupMember',
        on_delete=models.CASCADE,
        related_name='expenses_paid'
    )

    # Optional extras
    receipt_items = models.JSONField(default=list, blank=True)
    attachments = models.JSONField(default=list, blank=True)

    # Timestamps (created_at is user-settable, never in the future)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'expenses'
        indexes = [
            models.Index(fields=['group', 'created_at'], name='expenses_group_created_idx'),
            models.Index(fields=['paid_by'], name='expenses_paid_by_idx'),
        ]
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.description} - {self.amount} {self.currency}"

    def save(self, *args, **kwargs):
        self.currency = normalize_currency(self.currency, default=self.group.base_currency)
        super().save(*args, **kwargs)


class ExpenseShare(models.Model):
    """Portion of an expense attributed to one member."""

    expense = models.ForeignKey(
        Expense,
        on_delete=models.CASCADE,
        related_name='shares'
    )
    member = models.ForeignKey(
        'groups.GroupMember',
        on_delete=models.CASCADE,
        related_name='expense_shares'
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = 'expense_shares'
        constraints = [
            models.UniqueConstraint(fields=['expense', 'member'], name='unique_expense_member'),
        ]
        ordering = ['id']

    def __str__(self):
        return f"{self.member.display_name} owes {self.amount} {self.expense.currency}"


class Settlement(models.Model):
    """Direct payment from one member to another."""

    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        related_name='settlements'
    )
    from_member = models.ForeignKey(
        'groups.GroupMember',
        on_delete=models.CASCADE,
        related_name='settlements_paid'
    )
    to_member = models.ForeignKey(
        'groups.GroupMember',
        on_delete=models.CASCADE,
        related_name='settlements_received'
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    currency = models.CharField(max_length=3, default=DEFAULT_CURRENCY)
    exchange_rate = models.DecimalField(max_digits=20, decimal_places=8, default=Decimal('1'))
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'settlements'
        indexes = [
            models.Index(fields=['group', 'created_at'], name='settlements_group_created_idx'),
        ]
        ordering = ['-created_at', '-id']

    def __str__(self):
        return (
            f"{self.from_member.display_name} paid {self.to_member.display_name} "
            f"{self.amount} {self.currency}"
        )

    def save(self, *args, **kwargs):
        self.currency = normalize_currency(self.currency, default=self.group.base_currency)
        super().save(*args, **kwargs)
