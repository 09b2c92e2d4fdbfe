"""Expense router services."""

from expense_router.services.state_machine import ApprovalStateMachine
from expense_router.services.locking_service import (
    ExpenseLockRegistry,
    LockingService,
    default_lock_registry,
)
from expense_router.services.snapshot_service import SnapshotService
from expense_router.services.approval_service import ApprovalService
from expense_router.services.organization_service import OrganizationService

__all__ = [
    "ApprovalStateMachine",
    "ExpenseLockRegistry",
    "LockingService",
    "default_lock_registry",
    "SnapshotService",
    "ApprovalService",
    "OrganizationService",
]
