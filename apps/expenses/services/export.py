"""
CSV export of a group's expenses.
"""

import csv
import io
import re
from datetime import date
from typing import Optional, Tuple

from django.utils import timezone

from apps.activity.services import member_label
from apps.groups.models import Group

from .expense_management import get_group_expenses


CSV_HEADERS = [
    'expense_id',
    'description',
    'note',
    'amount',
    'currency',
    'exchange_rate',
    'base_currency',
    'paid_by',
    'created_at',
    'split_with',
    'shares',
    'have_attachments',
]


def slugify_group_name(name: str) -> str:
    """
    Lowercase ASCII slug used in export filenames.

    Example:
        >>> slugify_group_name('Lisbon Trip 2024!')
        'lisbon-trip-2024'
    """
    slug = re.sub(r'[^a-z0-9]+', '-', (name or '').lower()).strip('-')[:60]
    return slug or 'group'


def export_filename(group: Group, today: Optional[date] = None) -> str:
    today = today or timezone.localdate()
    return f"expenses-{slugify_group_name(group.name)}-{today.isoformat()}.csv"


def export_group_expenses_csv(*, group: Group, today: Optional[date] = None) -> Tuple[str, str]:
    """
    Render every expense of ``group`` as CSV, newest first.

    Returns:
        Tuple of (filename, csv text)
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator='\n')
    writer.writerow(CSV_HEADERS)

    for expense in get_group_expenses(group=group):
        shares = list(expense.shares.all())
        writer.writerow([
            expense.id,
            expense.description,
            expense.note,
            f"{expense.amount:.2f}",
            expense.currency,
            f"{expense.exchange_rate:.4f}",
            group.base_currency,
            member_label(expense.paid_by),
            timezone.localtime(expense.created_at).strftime('%d/%m/%Y, %H:%M'),
            '; '.join(member_label(share.member) for share in shares),
            '; '.join(f"{member_label(share.member)}: {share.amount:.2f}" for share in shares),
            'true' if expense.attachments else 'false',
        ])

    return export_filename(group, today), output.getvalue()
