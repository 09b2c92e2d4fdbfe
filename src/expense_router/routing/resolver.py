"""Approval chain resolution over directory and tier snapshots."""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from expense_router.routing.directory import OrgDirectory
from expense_router.routing.tiers import BudgetTierTable
from expense_router.routing.types import ApproverPreview, EmployeeRecord

logger = logging.getLogger(__name__)


class ApprovalChainResolver:
    """Computes the ordered approvers an expense must pass through.

    Resolution rules:
    1. Unknown submitter -> empty chain
    2. No active tier for the amount -> the submitter's direct manager only
    3. Otherwise, for each required level of the tier, most junior first:
       - nearest non-admin ancestor of the current position at that level
       - else the first non-admin employee at that level (directory order)
       - the found approver becomes the current position
       - levels with no candidate are skipped

    The submitter, admins and duplicates never appear in a chain. The
    resolver is a pure function of its snapshots and safe to share.
    """

    def __init__(self, directory: OrgDirectory, tiers: BudgetTierTable):
        self.directory = directory
        self.tiers = tiers

    def resolve_chain(self, submitter_id: UUID, amount: Decimal) -> list[UUID]:
        """Resolve the approval chain for a submitter and amount.

        Args:
            submitter_id: Employee submitting the expense
            amount: Expense amount

        Returns:
            Ordered approver ids; empty means no approval is required
        """
        submitter = self.directory.get(submitter_id)
        if submitter is None:
            logger.warning("Submitter %s not in directory; no chain computed", submitter_id)
            return []

        tier = self.tiers.match(amount)
        if tier is None:
            fallback = self._fallback_chain(submitter)
            logger.debug(
                "No budget tier for amount %s (tiers %s); manager fallback chain %s",
                amount,
                self.tiers.version,
                fallback,
            )
            return fallback

        chain: list[UUID] = []
        current = submitter

        for level in tier.routing_levels():
            approver = self._find_in_hierarchy(current, level, submitter)
            if approver is None:
                approver = self._find_at_level(level, submitter, chain)

            if approver is None:
                logger.debug(
                    "No approver at level %d for submitter %s (tier '%s'); level skipped",
                    level,
                    submitter_id,
                    tier.name,
                )
                continue

            if approver.employee_id in chain:
                continue

            chain.append(approver.employee_id)
            current = approver

        logger.debug(
            "Resolved chain for submitter %s amount %s via tier '%s': %s",
            submitter_id,
            amount,
            tier.name,
            chain,
        )
        return chain

    def initial_approver(self, submitter_id: UUID, amount: Decimal) -> UUID | None:
        """First approver of the chain, or None when no approval is needed."""
        chain = self.resolve_chain(submitter_id, amount)
        return chain[0] if chain else None

    def preview_approval_flow(
        self, submitter_id: UUID, amount: Decimal
    ) -> list[ApproverPreview]:
        """Resolve the chain and describe each approver for display."""
        previews = []
        for approver_id in self.resolve_chain(submitter_id, amount):
            approver = self.directory.get(approver_id)
            if approver is None:
                continue
            previews.append(
                ApproverPreview(
                    employee_id=approver.employee_id,
                    name=approver.name,
                    level=approver.level,
                )
            )
        return previews

    def _fallback_chain(self, submitter: EmployeeRecord) -> list[UUID]:
        """Single-manager approval used when no tier matches."""
        manager = self.directory.manager_of(submitter)
        if manager is None or manager.is_admin:
            return []
        if manager.employee_id == submitter.employee_id:
            return []
        return [manager.employee_id]

    def _find_in_hierarchy(
        self,
        current: EmployeeRecord,
        level: int,
        submitter: EmployeeRecord,
    ) -> EmployeeRecord | None:
        """Nearest non-admin ancestor of current at exactly the given level."""
        for ancestor in self.directory.ancestors(current):
            if ancestor.is_admin or ancestor.employee_id == submitter.employee_id:
                continue
            if ancestor.level == level:
                return ancestor
        return None

    def _find_at_level(
        self,
        level: int,
        submitter: EmployeeRecord,
        chain: list[UUID],
    ) -> EmployeeRecord | None:
        """Any non-admin at the level, excluding the submitter and the chain."""
        for candidate in self.directory.at_level(level):
            if candidate.employee_id == submitter.employee_id:
                continue
            if candidate.employee_id in chain:
                continue
            return candidate
        return None
