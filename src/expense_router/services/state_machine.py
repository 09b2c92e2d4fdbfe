"""Expense request state machine with transition validation."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from uuid import UUID

from expense_router.exceptions import InvalidTransitionError
from expense_router.routing.types import Decision, DecisionOutcome, ExpenseStatus


class ApprovalStateMachine:
    """State machine for expense request status transitions.

    Allowed transitions:
    - pending → pending (advance to the next approver)
    - pending → approved (chain exhausted)
    - pending → rejected (any approver rejects)

    approved and rejected are terminal.
    """

    # Define valid transitions: {from_status: [allowed_to_statuses]}
    VALID_TRANSITIONS: dict[str, list[str]] = {
        ExpenseStatus.PENDING: [
            ExpenseStatus.PENDING,
            ExpenseStatus.APPROVED,
            ExpenseStatus.REJECTED,
        ],
        ExpenseStatus.APPROVED: [],  # Terminal state
        ExpenseStatus.REJECTED: [],  # Terminal state
    }

    TERMINAL = {
        ExpenseStatus.APPROVED,
        ExpenseStatus.REJECTED,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            reason = "request is already final" if cls.is_terminal(from_status) else None
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        """Check if no further decisions may be applied."""
        return status in cls.TERMINAL

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])

    @staticmethod
    def next_approver(chain: Sequence[UUID], approved_by: Iterable[UUID]) -> UUID | None:
        """First chain entry that has not approved yet, or None when exhausted."""
        approved = set(approved_by)
        for approver_id in chain:
            if approver_id not in approved:
                return approver_id
        return None

    @classmethod
    def apply_decision(
        cls,
        status: str,
        decision: str,
        chain: Sequence[UUID],
        approved_by: Iterable[UUID],
    ) -> DecisionOutcome:
        """Compute the outcome of a decision on a request in the given status.

        approved_by must already include the deciding approver when the
        decision is an approval.

        Raises InvalidTransitionError if the request is terminal.
        """
        if decision == Decision.REJECTED:
            cls.validate_transition(status, ExpenseStatus.REJECTED)
            return DecisionOutcome(next_approver=None, terminal=ExpenseStatus.REJECTED)

        if decision != Decision.APPROVED:
            raise ValueError(f"Unknown decision '{decision}'")

        next_approver = cls.next_approver(chain, approved_by)
        if next_approver is None:
            cls.validate_transition(status, ExpenseStatus.APPROVED)
            return DecisionOutcome(next_approver=None, terminal=ExpenseStatus.APPROVED)

        cls.validate_transition(status, ExpenseStatus.PENDING)
        return DecisionOutcome(next_approver=next_approver, terminal=None)
