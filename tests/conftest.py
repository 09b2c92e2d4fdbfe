"""Pytest fixtures for routing tests (no database)."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from expense_router.routing import (
    ApprovalChainResolver,
    BudgetTierRecord,
    BudgetTierTable,
    EmployeeRecord,
    OrgDirectory,
    Role,
)


class OrgBuilder:
    """Builds directory and tier snapshots for a test."""

    def __init__(self) -> None:
        self.employees: list[EmployeeRecord] = []
        self.tiers: list[BudgetTierRecord] = []

    def employee(
        self,
        name: str,
        level: int,
        manager: EmployeeRecord | UUID | None = None,
        role: Role = Role.STANDARD,
        employee_id: UUID | None = None,
    ) -> EmployeeRecord:
        """Add an employee reporting to manager."""
        manager_id = manager.employee_id if isinstance(manager, EmployeeRecord) else manager
        record = EmployeeRecord(
            employee_id=employee_id or uuid4(),
            name=name,
            level=level,
            role=role,
            manager_id=manager_id,
        )
        self.employees.append(record)
        return record

    def tier(
        self,
        min_amount: str,
        max_amount: str,
        levels: set[int],
        is_active: bool = True,
        name: str | None = None,
    ) -> BudgetTierRecord:
        """Add a budget tier."""
        record = BudgetTierRecord(
            budget_tier_id=uuid4(),
            name=name or f"{min_amount}-{max_amount}",
            min_amount=Decimal(min_amount),
            max_amount=Decimal(max_amount),
            approver_levels=frozenset(levels),
            is_active=is_active,
        )
        self.tiers.append(record)
        return record

    def directory(self) -> OrgDirectory:
        return OrgDirectory(self.employees)

    def tier_table(self) -> BudgetTierTable:
        return BudgetTierTable(self.tiers)

    def resolver(self) -> ApprovalChainResolver:
        return ApprovalChainResolver(self.directory(), self.tier_table())


@pytest.fixture
def org() -> OrgBuilder:
    """Empty org builder."""
    return OrgBuilder()


@pytest.fixture
def three_level_org(org: OrgBuilder) -> dict[str, EmployeeRecord]:
    """Director (1) <- department manager (2) <- team lead (3) <- engineer (4)."""
    director = org.employee("Dana Director", 1)
    manager = org.employee("Morgan Manager", 2, manager=director)
    lead = org.employee("Taylor Lead", 3, manager=manager)
    engineer = org.employee("Alex Engineer", 4, manager=lead)
    return {
        "director": director,
        "manager": manager,
        "lead": lead,
        "engineer": engineer,
    }
