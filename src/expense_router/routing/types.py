"""Type definitions for the routing pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


class Role(str, Enum):
    """Employee roles."""

    ADMIN = "admin"
    STANDARD = "standard"


class ExpenseStatus(str, Enum):
    """Expense request status values."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Decision(str, Enum):
    """Decisions an approver can record."""

    APPROVED = "approved"
    REJECTED = "rejected"


class Urgency(str, Enum):
    """Expense urgency values."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class EmployeeRecord:
    """Immutable view of one employee in a directory snapshot."""

    employee_id: UUID
    name: str
    level: int
    role: Role = Role.STANDARD
    manager_id: UUID | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "employee_id": str(self.employee_id),
            "name": self.name,
            "level": self.level,
            "role": self.role.value,
            "manager_id": str(self.manager_id) if self.manager_id else None,
        }


@dataclass(frozen=True)
class BudgetTierRecord:
    """Immutable view of one budget tier in a tier snapshot."""

    budget_tier_id: UUID
    name: str
    min_amount: Decimal
    max_amount: Decimal
    approver_levels: frozenset[int]
    is_active: bool = True

    def contains(self, amount: Decimal) -> bool:
        """Check if an amount falls inside the closed range [min, max]."""
        return self.min_amount <= amount <= self.max_amount

    def routing_levels(self) -> list[int]:
        """Required levels, most junior (highest number) first."""
        return sorted(self.approver_levels, reverse=True)

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "budget_tier_id": str(self.budget_tier_id),
            "name": self.name,
            "min_amount": str(self.min_amount),
            "max_amount": str(self.max_amount),
            "approver_levels": sorted(self.approver_levels),
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class ApproverPreview:
    """One approver as shown in an approval flow preview."""

    employee_id: UUID
    name: str
    level: int


@dataclass(frozen=True)
class DecisionOutcome:
    """Result of applying a decision to a request.

    Exactly one of next_approver / terminal is set while the request is
    routable; both None never occurs.
    """

    next_approver: UUID | None
    terminal: ExpenseStatus | None

    @property
    def is_terminal(self) -> bool:
        return self.terminal is not None


@dataclass(frozen=True)
class RoutingState:
    """Live routing view of a request: chain, progress and next approver."""

    expense_id: UUID
    status: ExpenseStatus
    chain: list[UUID]
    approved_by: frozenset[UUID] = field(default_factory=frozenset)
    next_approver: UUID | None = None

    @property
    def remaining(self) -> list[UUID]:
        """Chain entries that have not approved yet."""
        return [a for a in self.chain if a not in self.approved_by]
