"""Load directory and tier snapshots from the database."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from expense_router.models import BudgetTier, Employee
from expense_router.routing.directory import OrgDirectory
from expense_router.routing.resolver import ApprovalChainResolver
from expense_router.routing.tiers import BudgetTierTable
from expense_router.routing.types import BudgetTierRecord, EmployeeRecord, Role


def employee_record(employee: Employee) -> EmployeeRecord:
    """Convert an Employee row to its snapshot record."""
    return EmployeeRecord(
        employee_id=employee.employee_id,
        name=employee.name,
        level=employee.level,
        role=Role(employee.role),
        manager_id=employee.manager_id,
    )


def budget_tier_record(tier: BudgetTier) -> BudgetTierRecord:
    """Convert a BudgetTier row to its snapshot record."""
    return BudgetTierRecord(
        budget_tier_id=tier.budget_tier_id,
        name=tier.name,
        min_amount=tier.min_amount,
        max_amount=tier.max_amount,
        approver_levels=frozenset(int(level) for level in tier.approver_levels),
        is_active=tier.is_active,
    )


class SnapshotService:
    """Builds immutable routing snapshots from current configuration."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_directory(self) -> OrgDirectory:
        """Snapshot every employee."""
        result = await self.session.execute(select(Employee))
        return OrgDirectory(employee_record(e) for e in result.scalars().all())

    async def load_tiers(self) -> BudgetTierTable:
        """Snapshot the active budget tiers."""
        result = await self.session.execute(
            select(BudgetTier).where(BudgetTier.is_active.is_(True))
        )
        return BudgetTierTable(budget_tier_record(t) for t in result.scalars().all())

    async def load_resolver(self) -> ApprovalChainResolver:
        """Resolver over fresh directory and tier snapshots."""
        directory = await self.load_directory()
        tiers = await self.load_tiers()
        return ApprovalChainResolver(directory, tiers)
