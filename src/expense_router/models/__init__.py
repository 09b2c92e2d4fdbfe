"""ORM models."""

from expense_router.models.base import Base, TimestampMixin, UpdatedAtMixin, utcnow
from expense_router.models.organization import BudgetTier, Employee
from expense_router.models.expense import ApprovalEvent, ExpenseRequest

__all__ = [
    "Base",
    "TimestampMixin",
    "UpdatedAtMixin",
    "utcnow",
    "Employee",
    "BudgetTier",
    "ExpenseRequest",
    "ApprovalEvent",
]
