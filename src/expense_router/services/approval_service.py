"""Approval service - routes expense requests through their approvers."""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from expense_router.config import ChainPolicy, get_settings
from expense_router.exceptions import (
    ConcurrentDecisionError,
    EmployeeNotFoundError,
    ExpenseNotFoundError,
    InvalidTransitionError,
)
from expense_router.models import ApprovalEvent, ExpenseRequest, utcnow
from expense_router.routing.types import (
    ApproverPreview,
    Decision,
    DecisionOutcome,
    ExpenseStatus,
    RoutingState,
    Urgency,
)
from expense_router.services.locking_service import ExpenseLockRegistry, LockingService
from expense_router.services.snapshot_service import SnapshotService
from expense_router.services.state_machine import ApprovalStateMachine

logger = logging.getLogger(__name__)


class ApprovalService:
    """Service for the approval lifecycle of expense requests.

    Operations:
    - resolve_chain / preview_approval_flow: chain for a prospective expense
    - submit_expense: create a request routed to its first approver
    - record_decision: the only way a request advances or terminates
    - get_routing_state, get_history, pending_for_approver,
      requests_for_submitter: read views

    With ChainPolicy.LIVE (default) the chain is re-resolved from current
    configuration on every decision, so org or tier edits re-route requests
    already in flight. ChainPolicy.FROZEN routes from the chain stored at
    submission.
    """

    def __init__(
        self,
        session: AsyncSession,
        chain_policy: ChainPolicy | None = None,
        lock_registry: ExpenseLockRegistry | None = None,
    ):
        self.session = session
        self.chain_policy = chain_policy or get_settings().chain_policy
        self.snapshots = SnapshotService(session)
        self.locking_service = LockingService(session, lock_registry)

    async def resolve_chain(self, submitter_id: UUID, amount: Decimal) -> list[UUID]:
        """Resolve the approval chain against current configuration."""
        resolver = await self.snapshots.load_resolver()
        return resolver.resolve_chain(submitter_id, amount)

    async def preview_approval_flow(
        self, submitter_id: UUID, amount: Decimal
    ) -> list[ApproverPreview]:
        """Approvers a prospective expense would route through."""
        resolver = await self.snapshots.load_resolver()
        return resolver.preview_approval_flow(submitter_id, amount)

    async def submit_expense(
        self,
        submitter_id: UUID,
        amount: Decimal,
        title: str,
        category: str,
        description: str | None = None,
        business_justification: str | None = None,
        urgency: str = Urgency.MEDIUM,
    ) -> ExpenseRequest:
        """Create an expense request and route it to its first approver.

        A request whose chain is empty needs no approval and is created
        already approved.

        Raises:
            EmployeeNotFoundError: If the submitter does not exist
            ValueError: If the amount is not positive or urgency is unknown
        """
        amount = Decimal(str(amount))
        if amount <= 0:
            raise ValueError(f"Expense amount must be positive, got {amount}")
        urgency = Urgency(urgency)

        resolver = await self.snapshots.load_resolver()
        if submitter_id not in resolver.directory:
            raise EmployeeNotFoundError(submitter_id)

        chain = resolver.resolve_chain(submitter_id, amount)
        status = ExpenseStatus.PENDING if chain else ExpenseStatus.APPROVED

        expense = ExpenseRequest(
            title=title,
            amount=amount,
            category=category,
            description=description,
            business_justification=business_justification,
            urgency=urgency.value,
            submitted_by=submitter_id,
            status=status.value,
            current_approver_id=chain[0] if chain else None,
            approval_chain=[str(approver_id) for approver_id in chain],
            directory_version=resolver.directory.version,
            tier_version=resolver.tiers.version,
            revision=0,
        )
        self.session.add(expense)
        await self.session.flush()

        if chain:
            logger.info(
                "Expense %s submitted by %s for %s; routed to %s (%d approver(s))",
                expense.expense_id,
                submitter_id,
                amount,
                chain[0],
                len(chain),
            )
        else:
            logger.info(
                "Expense %s submitted by %s for %s; no approval required",
                expense.expense_id,
                submitter_id,
                amount,
            )
        return expense

    async def record_decision(
        self,
        expense_id: UUID,
        approver_id: UUID,
        decision: str,
        comment: str | None = None,
    ) -> DecisionOutcome:
        """Record an approver's decision and advance the request.

        Args:
            expense_id: Request being decided
            approver_id: Employee deciding
            decision: "approved" or "rejected"
            comment: Optional free text stored with the event

        Returns:
            The next approver, or the terminal status reached

        Raises:
            ExpenseNotFoundError: If the request does not exist
            InvalidTransitionError: If the request is already approved/rejected
            ConcurrentDecisionError: If another decision committed first
        """
        decision = Decision(decision)

        async with self.locking_service.lock_request(expense_id) as expense:
            if expense is None:
                raise ExpenseNotFoundError(expense_id)

            if ApprovalStateMachine.is_terminal(expense.status):
                raise InvalidTransitionError(
                    expense.status,
                    decision.value,
                    "request is already final",
                )

            expected_revision = expense.revision

            self.session.add(
                ApprovalEvent(
                    expense_id=expense_id,
                    approver_id=approver_id,
                    decision=decision.value,
                    comment=comment,
                    created_at=utcnow(),
                )
            )
            await self.session.flush()

            if decision == Decision.REJECTED:
                outcome = ApprovalStateMachine.apply_decision(
                    expense.status, decision, [], []
                )
            else:
                chain = await self._chain_for(expense)
                if approver_id not in chain:
                    logger.info(
                        "Approver %s is not in the chain of expense %s",
                        approver_id,
                        expense_id,
                    )
                approved_by = await self._approved_by(expense_id)
                outcome = ApprovalStateMachine.apply_decision(
                    expense.status, decision, chain, approved_by
                )

            await self._apply_outcome(expense, outcome, expected_revision)

        if outcome.terminal is not None:
            logger.info(
                "Expense %s %s after decision by %s",
                expense_id,
                outcome.terminal.value,
                approver_id,
            )
        else:
            logger.info(
                "Expense %s approved by %s; next approver %s",
                expense_id,
                approver_id,
                outcome.next_approver,
            )
        return outcome

    async def get_expense(self, expense_id: UUID) -> ExpenseRequest | None:
        """Load an expense request."""
        result = await self.session.execute(
            select(ExpenseRequest).where(ExpenseRequest.expense_id == expense_id)
        )
        return result.scalar_one_or_none()

    async def get_routing_state(self, expense_id: UUID) -> RoutingState:
        """Chain, approvals so far and next approver of a request.

        Raises ExpenseNotFoundError if the request does not exist.
        """
        expense = await self.get_expense(expense_id)
        if expense is None:
            raise ExpenseNotFoundError(expense_id)

        chain = await self._chain_for(expense)
        approved_by = await self._approved_by(expense_id)
        status = ExpenseStatus(expense.status)

        next_approver = None
        if not ApprovalStateMachine.is_terminal(status):
            next_approver = ApprovalStateMachine.next_approver(chain, approved_by)

        return RoutingState(
            expense_id=expense_id,
            status=status,
            chain=chain,
            approved_by=frozenset(approved_by),
            next_approver=next_approver,
        )

    async def get_history(self, expense_id: UUID) -> list[ApprovalEvent]:
        """All recorded decisions for a request, oldest first, with approvers loaded."""
        result = await self.session.execute(
            select(ApprovalEvent)
            .where(ApprovalEvent.expense_id == expense_id)
            .options(selectinload(ApprovalEvent.approver))
            .order_by(ApprovalEvent.created_at, ApprovalEvent.approval_event_id)
        )
        return list(result.scalars().all())

    async def pending_for_approver(self, approver_id: UUID) -> list[ExpenseRequest]:
        """Pending requests waiting on an approver, newest first, with submitters loaded."""
        result = await self.session.execute(
            select(ExpenseRequest)
            .options(selectinload(ExpenseRequest.submitter))
            .where(
                ExpenseRequest.current_approver_id == approver_id,
                ExpenseRequest.status == ExpenseStatus.PENDING.value,
            )
            .order_by(ExpenseRequest.created_at.desc())
        )
        return list(result.scalars().all())

    async def requests_for_submitter(self, submitter_id: UUID) -> list[ExpenseRequest]:
        """Requests submitted by an employee, newest first, with current approvers loaded."""
        result = await self.session.execute(
            select(ExpenseRequest)
            .options(selectinload(ExpenseRequest.current_approver))
            .where(ExpenseRequest.submitted_by == submitter_id)
            .order_by(ExpenseRequest.created_at.desc())
        )
        return list(result.scalars().all())

    async def _chain_for(self, expense: ExpenseRequest) -> list[UUID]:
        """Chain used for routing under the configured policy."""
        if self.chain_policy == ChainPolicy.FROZEN:
            return expense.chain_ids
        resolver = await self.snapshots.load_resolver()
        return resolver.resolve_chain(expense.submitted_by, expense.amount)

    async def _approved_by(self, expense_id: UUID) -> set[UUID]:
        """Distinct approvers with an approval event for the request."""
        result = await self.session.execute(
            select(ApprovalEvent.approver_id)
            .where(
                ApprovalEvent.expense_id == expense_id,
                ApprovalEvent.decision == Decision.APPROVED.value,
            )
            .distinct()
        )
        return set(result.scalars().all())

    async def _apply_outcome(
        self,
        expense: ExpenseRequest,
        outcome: DecisionOutcome,
        expected_revision: int,
    ) -> None:
        """Persist the outcome, conditional on nobody else having decided."""
        status = outcome.terminal or ExpenseStatus.PENDING

        result = await self.session.execute(
            update(ExpenseRequest)
            .where(
                ExpenseRequest.expense_id == expense.expense_id,
                ExpenseRequest.revision == expected_revision,
            )
            .values(
                status=status.value,
                current_approver_id=outcome.next_approver,
                revision=expected_revision + 1,
                updated_at=utcnow(),
            )
        )
        if result.rowcount == 0:
            raise ConcurrentDecisionError(expense.expense_id, expected_revision)
