"""Approval routing: directory and tier snapshots plus chain resolution."""

from expense_router.routing.directory import OrgDirectory
from expense_router.routing.resolver import ApprovalChainResolver
from expense_router.routing.tiers import BudgetTierTable
from expense_router.routing.types import (
    ApproverPreview,
    BudgetTierRecord,
    Decision,
    DecisionOutcome,
    EmployeeRecord,
    ExpenseStatus,
    Role,
    RoutingState,
    Urgency,
)

__all__ = [
    "ApprovalChainResolver",
    "ApproverPreview",
    "BudgetTierRecord",
    "BudgetTierTable",
    "Decision",
    "DecisionOutcome",
    "EmployeeRecord",
    "ExpenseStatus",
    "OrgDirectory",
    "Role",
    "RoutingState",
    "Urgency",
]
