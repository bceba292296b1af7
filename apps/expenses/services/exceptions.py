"""
Domain exceptions for expenses app.

Service functions raise these; views translate them into HTTP responses.
"""


class ExpenseServiceError(Exception):
    """Base exception for expense service errors."""
    pass


class ExpenseNotFoundError(ExpenseServiceError):
    """Raised when expense doesn't exist."""
    pass


class InvalidSplitError(ExpenseServiceError):
    """Raised when shares cannot be built for an expense."""
    pass


class InvalidMemberError(ExpenseServiceError):
    """Raised when a referenced member does not belong to the group."""
    pass


class FutureDateError(ExpenseServiceError):
    """Raised when an expense is dated in the future."""
    pass


class InvalidSettlementError(ExpenseServiceError):
    """Raised when a settlement is between the same member or not positive."""
    pass
