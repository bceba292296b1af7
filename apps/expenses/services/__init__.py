"""
Expenses app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and record activity.
"""

from .exceptions import (
    ExpenseServiceError,
    ExpenseNotFoundError,
    InvalidSplitError,
    InvalidMemberError,
    FutureDateError,
    InvalidSettlementError,
)

from .split import (
    split_evenly,
    validate_custom_shares,
)

from .expense_management import (
    create_expense,
    update_expense,
    delete_expense,
    get_group_expenses,
)

from .settlement_management import (
    record_settlement,
    get_group_settlements,
)

from .export import (
    CSV_HEADERS,
    slugify_group_name,
    export_filename,
    export_group_expenses_csv,
)


__all__ = [
    # Exceptions
    'ExpenseServiceError',
    'ExpenseNotFoundError',
    'InvalidSplitError',
    'InvalidMemberError',
    'FutureDateError',
    'InvalidSettlementError',

    # Splitting
    'split_evenly',
    'validate_custom_shares',

    # Expense Management
    'create_expense',
    'update_expense',
    'delete_expense',
    'get_group_expenses',

    # Settlements
    'record_settlement',
    'get_group_settlements',

    # Export
    'CSV_HEADERS',
    'slugify_group_name',
    'export_filename',
    'export_group_expenses_csv',
]
