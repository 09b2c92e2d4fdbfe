"""Maintenance of the org chart and budget tiers."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from expense_router.exceptions import (
    BudgetTierNotFoundError,
    EmployeeNotFoundError,
    HierarchyCycleError,
)
from expense_router.models import BudgetTier, Employee
from expense_router.routing.types import Role
from expense_router.services.snapshot_service import SnapshotService

logger = logging.getLogger(__name__)

# Sentinel for "argument not given" where None is a meaningful value
_UNSET: Any = object()


def normalize_levels(levels: Iterable[int]) -> list[int]:
    """Validate approver levels and return them distinct, most junior first."""
    normalized = sorted({int(level) for level in levels}, reverse=True)
    if not normalized:
        raise ValueError("At least one approver level is required")
    if normalized[-1] < 1:
        raise ValueError(f"Approver levels must be positive, got {normalized[-1]}")
    return normalized


def validate_range(min_amount: Decimal, max_amount: Decimal) -> None:
    """Validate a budget tier amount range."""
    if min_amount < 0:
        raise ValueError(f"Minimum amount must not be negative, got {min_amount}")
    if min_amount >= max_amount:
        raise ValueError(
            f"Maximum amount must be greater than minimum amount "
            f"({max_amount} <= {min_amount})"
        )


class OrganizationService:
    """Service for employees and budget tiers.

    Writes keep the manager graph acyclic; the resolver still tolerates
    cycles coming from data loaded by other means.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.snapshots = SnapshotService(session)

    # ------------------------------------------------------------------
    # Employees
    # ------------------------------------------------------------------

    async def get_employee(self, employee_id: UUID) -> Employee | None:
        """Load an employee."""
        result = await self.session.execute(
            select(Employee).where(Employee.employee_id == employee_id)
        )
        return result.scalar_one_or_none()

    async def list_employees(self) -> list[Employee]:
        """All employees ordered by name, with managers loaded."""
        result = await self.session.execute(
            select(Employee).options(selectinload(Employee.manager)).order_by(Employee.name)
        )
        return list(result.scalars().all())

    async def create_employee(
        self,
        name: str,
        email: str,
        level: int | None = None,
        role: str = Role.STANDARD,
        manager_id: UUID | None = None,
        position: str | None = None,
        department: str | None = None,
        employee_id: UUID | None = None,
    ) -> Employee:
        """Create an employee.

        Without an explicit level the employee sits one level below their
        manager.

        Raises:
            EmployeeNotFoundError: If manager_id does not exist
            ValueError: If the level is not positive or the role is unknown,
                or neither a level nor a manager is given
        """
        role = Role(role)

        manager = None
        if manager_id is not None:
            manager = await self.get_employee(manager_id)
            if manager is None:
                raise EmployeeNotFoundError(manager_id)

        if level is None:
            if manager is None:
                raise ValueError("A level is required for an employee without a manager")
            level = manager.level + 1
        if level < 1:
            raise ValueError(f"Level must be positive, got {level}")

        employee = Employee(
            name=name,
            email=email,
            level=level,
            role=role.value,
            manager_id=manager_id,
            position=position,
            department=department,
        )
        if employee_id is not None:
            employee.employee_id = employee_id
        self.session.add(employee)
        await self.session.flush()

        logger.info("Created employee %s (%s, level %d)", employee.employee_id, name, level)
        return employee

    async def update_employee(
        self,
        employee_id: UUID,
        name: str | None = None,
        email: str | None = None,
        level: int | None = None,
        role: str | None = None,
        manager_id: UUID | None = _UNSET,
        position: str | None = None,
        department: str | None = None,
    ) -> Employee:
        """Update an employee; pass manager_id=None to detach from the hierarchy.

        Raises:
            EmployeeNotFoundError: If the employee or new manager does not exist
            HierarchyCycleError: If the new manager reports to this employee
        """
        employee = await self.get_employee(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)

        if manager_id is not _UNSET and manager_id is not None:
            if await self.get_employee(manager_id) is None:
                raise EmployeeNotFoundError(manager_id)
            directory = await self.snapshots.load_directory()
            if directory.would_create_cycle(employee_id, manager_id):
                raise HierarchyCycleError(employee_id, manager_id)

        if level is not None:
            if level < 1:
                raise ValueError(f"Level must be positive, got {level}")
            employee.level = level
        if role is not None:
            employee.role = Role(role).value
        if name is not None:
            employee.name = name
        if email is not None:
            employee.email = email
        if position is not None:
            employee.position = position
        if department is not None:
            employee.department = department
        if manager_id is not _UNSET:
            employee.manager_id = manager_id

        await self.session.flush()
        return employee

    # ------------------------------------------------------------------
    # Budget tiers
    # ------------------------------------------------------------------

    async def get_budget_tier(self, budget_tier_id: UUID) -> BudgetTier | None:
        """Load a budget tier."""
        result = await self.session.execute(
            select(BudgetTier).where(BudgetTier.budget_tier_id == budget_tier_id)
        )
        return result.scalar_one_or_none()

    async def list_active_budget_tiers(self) -> list[BudgetTier]:
        """Active tiers ordered by minimum amount."""
        result = await self.session.execute(
            select(BudgetTier)
            .where(BudgetTier.is_active.is_(True))
            .order_by(BudgetTier.min_amount, BudgetTier.max_amount)
        )
        return list(result.scalars().all())

    async def create_budget_tier(
        self,
        name: str,
        min_amount: Decimal,
        max_amount: Decimal,
        approver_levels: Iterable[int],
        required_approvers: int | None = None,
        description: str | None = None,
    ) -> BudgetTier:
        """Create an active budget tier.

        Raises ValueError for an empty/invalid range or no approver levels.
        """
        min_amount = Decimal(str(min_amount))
        max_amount = Decimal(str(max_amount))
        validate_range(min_amount, max_amount)
        levels = normalize_levels(approver_levels)

        tier = BudgetTier(
            name=name,
            min_amount=min_amount,
            max_amount=max_amount,
            approver_levels=levels,
            required_approvers=required_approvers or len(levels),
            description=description,
            is_active=True,
        )
        self.session.add(tier)
        await self.session.flush()

        logger.info(
            "Created budget tier '%s' [%s, %s] -> levels %s",
            name,
            min_amount,
            max_amount,
            levels,
        )
        await self._warn_on_overlap(tier)
        return tier

    async def update_budget_tier(
        self,
        budget_tier_id: UUID,
        name: str | None = None,
        min_amount: Decimal | None = None,
        max_amount: Decimal | None = None,
        approver_levels: Iterable[int] | None = None,
        required_approvers: int | None = None,
        description: str | None = None,
        is_active: bool | None = None,
    ) -> BudgetTier:
        """Update a budget tier.

        Raises:
            BudgetTierNotFoundError: If the tier does not exist
            ValueError: If the resulting range or levels are invalid
        """
        tier = await self.get_budget_tier(budget_tier_id)
        if tier is None:
            raise BudgetTierNotFoundError(budget_tier_id)

        new_min = Decimal(str(min_amount)) if min_amount is not None else tier.min_amount
        new_max = Decimal(str(max_amount)) if max_amount is not None else tier.max_amount
        validate_range(new_min, new_max)
        levels = normalize_levels(approver_levels) if approver_levels is not None else None

        tier.min_amount = new_min
        tier.max_amount = new_max
        if levels is not None:
            tier.approver_levels = levels
        if required_approvers is not None:
            tier.required_approvers = required_approvers
        if name is not None:
            tier.name = name
        if description is not None:
            tier.description = description
        if is_active is not None:
            tier.is_active = is_active

        await self.session.flush()
        if tier.is_active:
            await self._warn_on_overlap(tier)
        return tier

    async def deactivate_budget_tier(self, budget_tier_id: UUID) -> BudgetTier:
        """Soft-delete a tier; it stops matching amounts but stays on record."""
        tier = await self.update_budget_tier(budget_tier_id, is_active=False)
        logger.info("Deactivated budget tier '%s'", tier.name)
        return tier

    async def _warn_on_overlap(self, tier: BudgetTier) -> None:
        """Log when an active tier shares amounts with another active tier."""
        tiers = await self.snapshots.load_tiers()
        for first, second in tiers.overlapping_pairs():
            if tier.budget_tier_id not in (first.budget_tier_id, second.budget_tier_id):
                continue
            logger.warning(
                "Budget tiers '%s' and '%s' overlap; amounts in both "
                "route by '%s'",
                first.name,
                second.name,
                first.name,
            )
