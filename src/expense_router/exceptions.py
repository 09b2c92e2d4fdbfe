"""Exceptions raised by the expense router."""

from __future__ import annotations

from uuid import UUID


class ExpenseNotFoundError(Exception):
    """Raised when an expense request does not exist."""

    def __init__(self, expense_id: UUID):
        self.expense_id = expense_id
        super().__init__(f"Expense request {expense_id} not found")


class EmployeeNotFoundError(Exception):
    """Raised when an employee does not exist."""

    def __init__(self, employee_id: UUID):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id} not found")


class BudgetTierNotFoundError(Exception):
    """Raised when a budget tier does not exist."""

    def __init__(self, budget_tier_id: UUID):
        self.budget_tier_id = budget_tier_id
        super().__init__(f"Budget tier {budget_tier_id} not found")


class HierarchyCycleError(Exception):
    """Raised when a manager assignment would create a reporting cycle."""

    def __init__(self, employee_id: UUID, manager_id: UUID):
        self.employee_id = employee_id
        self.manager_id = manager_id
        super().__init__(
            f"Assigning manager {manager_id} to employee {employee_id} "
            f"would create a reporting cycle"
        )


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ConcurrentDecisionError(Exception):
    """Raised when another decision was committed for the same request first."""

    def __init__(self, expense_id: UUID, expected_revision: int):
        self.expense_id = expense_id
        self.expected_revision = expected_revision
        super().__init__(
            f"Expense request {expense_id} changed concurrently "
            f"(expected revision {expected_revision})"
        )
