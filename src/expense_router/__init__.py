"""Expense approval routing engine."""

from expense_router.config import ChainPolicy, Settings, configure_logging, get_settings
from expense_router.exceptions import (
    BudgetTierNotFoundError,
    ConcurrentDecisionError,
    EmployeeNotFoundError,
    ExpenseNotFoundError,
    HierarchyCycleError,
    InvalidTransitionError,
)
from expense_router.routing import (
    ApprovalChainResolver,
    BudgetTierTable,
    Decision,
    DecisionOutcome,
    ExpenseStatus,
    OrgDirectory,
)

__version__ = "0.1.0"

__all__ = [
    "ApprovalChainResolver",
    "BudgetTierNotFoundError",
    "BudgetTierTable",
    "ChainPolicy",
    "ConcurrentDecisionError",
    "Decision",
    "DecisionOutcome",
    "EmployeeNotFoundError",
    "ExpenseNotFoundError",
    "ExpenseStatus",
    "HierarchyCycleError",
    "InvalidTransitionError",
    "OrgDirectory",
    "Settings",
    "configure_logging",
    "get_settings",
]
