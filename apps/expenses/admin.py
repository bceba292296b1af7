from django.contrib import admin
from django.utils.html import format_html
from .models import Expense, ExpenseShare, Settlement


class ExpenseShareInline(admin.TabularInline):
    """Inline admin for shares within an expense."""
    model = ExpenseShare
    extra = 0
    fields = ['member', 'amount']
    raw_id_fields = ['member']

    def has_add_permission(self, request, obj=None):
        """Shares are created by the expense service."""
        return False


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    """Admin interface for Expenses."""

    list_display = [
        'description',
        'group',
        'get_payer',
        'amount',
        'currency',
        'exchange_rate',
        'attachments_badge',
        'created_at',
    ]
    list_filter = ['currency', 'created_at']
    search_fields = ['description', 'note', 'group__name', 'paid_by__name', 'paid_by__user__email']
    readonly_fields = ['exchange_rate', 'updated_at']
    raw_id_fields = ['group', 'paid_by']
    inlines = [ExpenseShareInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    fieldsets = (
        ('Expense', {
            'fields': ('group', 'description', 'paid_by', 'created_at')
        }),
        ('Financial Details', {
            'fields': ('amount', 'currency', 'exchange_rate')
        }),
        ('Notes & Receipt', {
            'fields': ('note', 'receipt_items', 'attachments'),
            'classes': ('collapse',),
        }),
        ('Metadata', {
            'fields': ('updated_at',),
            'classes': ('collapse',),
        }),
    )

    @admin.display(description='Paid by', ordering='paid_by__name')
    def get_payer(self, obj):
        return obj.paid_by.display_name

    @admin.display(description='Attachments')
    def attachments_badge(self, obj):
        if not obj.attachments:
            return '-'
        return format_html(
            '<span style="background: #6B8E5E; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            len(obj.attachments)
        )


@admin.register(Settlement)
class SettlementAdmin(admin.ModelAdmin):
    list_display = ['__str__', 'group', 'amount', 'currency', 'created_at']
    list_filter = ['currency', 'created_at']
    search_fields = ['group__name', 'from_member__name', 'to_member__name']
    raw_id_fields = ['group', 'from_member', 'to_member']
    readonly_fields = ['exchange_rate']
    ordering = ['-created_at']
