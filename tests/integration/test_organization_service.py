"""Org chart and budget tier maintenance against the database."""

import logging
from decimal import Decimal
from uuid import uuid4

import pytest

from expense_router.exceptions import (
    BudgetTierNotFoundError,
    EmployeeNotFoundError,
    HierarchyCycleError,
)


pytestmark = pytest.mark.asyncio


class TestEmployees:
    """Employee creation and hierarchy edits."""

    async def test_create_and_list(self, org_service, staff):
        employees = await org_service.list_employees()

        assert [e.name for e in employees] == [
            "Avery Admin",
            "Dana Director",
            "Morgan Manager",
            "Sam Submitter",
        ]
        assert staff["admin"].is_admin
        assert staff["submitter"].manager_id == staff["manager"].employee_id

    async def test_managers_loaded_with_listing(self, org_service, staff):
        employees = {e.name: e for e in await org_service.list_employees()}

        assert employees["Sam Submitter"].manager.name == "Morgan Manager"
        assert employees["Morgan Manager"].manager.name == "Dana Director"
        assert employees["Dana Director"].manager is None

    async def test_level_defaults_below_manager(self, org_service, staff):
        employee = await org_service.create_employee(
            name="Jo Junior", email="jo@example.com", manager_id=staff["submitter"].employee_id
        )

        assert employee.level == staff["submitter"].level + 1

    async def test_level_required_without_manager(self, org_service):
        with pytest.raises(ValueError, match="level is required"):
            await org_service.create_employee(name="Top", email="top@example.com")

    async def test_explicit_employee_id(self, org_service):
        employee_id = uuid4()

        employee = await org_service.create_employee(
            name="Pat Fixed", email="pat@example.com", level=2, employee_id=employee_id
        )

        assert employee.employee_id == employee_id
        assert (await org_service.get_employee(employee_id)).name == "Pat Fixed"

    async def test_unknown_manager(self, org_service):
        with pytest.raises(EmployeeNotFoundError):
            await org_service.create_employee(
                name="Orphan", email="orphan@example.com", level=3, manager_id=uuid4()
            )

    @pytest.mark.parametrize(
        "level,role",
        [(0, "standard"), (-1, "standard"), (2, "superuser")],
    )
    async def test_invalid_level_or_role(self, org_service, level, role):
        with pytest.raises(ValueError):
            await org_service.create_employee(
                name="Bad", email="bad@example.com", level=level, role=role
            )

    async def test_update_fields(self, org_service, staff):
        manager = staff["manager"]

        updated = await org_service.update_employee(
            manager.employee_id, level=3, position="Team Lead", department="Finance"
        )

        assert updated.level == 3
        assert updated.position == "Team Lead"
        assert updated.department == "Finance"
        # Untouched manager stays attached
        assert updated.manager_id == staff["director"].employee_id

    async def test_detach_from_hierarchy(self, org_service, staff):
        updated = await org_service.update_employee(
            staff["submitter"].employee_id, manager_id=None
        )

        assert updated.manager_id is None

    async def test_reassign_manager(self, org_service, staff):
        updated = await org_service.update_employee(
            staff["submitter"].employee_id, manager_id=staff["director"].employee_id
        )

        assert updated.manager_id == staff["director"].employee_id

    async def test_cycle_through_reports_refused(self, org_service, staff):
        director, submitter = staff["director"], staff["submitter"]

        with pytest.raises(HierarchyCycleError) as exc_info:
            await org_service.update_employee(
                director.employee_id, manager_id=submitter.employee_id
            )

        assert exc_info.value.employee_id == director.employee_id
        assert director.manager_id is None

    async def test_self_management_refused(self, org_service, staff):
        manager = staff["manager"]

        with pytest.raises(HierarchyCycleError):
            await org_service.update_employee(
                manager.employee_id, manager_id=manager.employee_id
            )

    async def test_update_unknown_employee(self, org_service):
        with pytest.raises(EmployeeNotFoundError):
            await org_service.update_employee(uuid4(), level=2)

    async def test_update_to_unknown_manager(self, org_service, staff):
        with pytest.raises(EmployeeNotFoundError):
            await org_service.update_employee(
                staff["submitter"].employee_id, manager_id=uuid4()
            )


class TestBudgetTiers:
    """Budget tier validation and lifecycle."""

    async def test_levels_normalized(self, org_service):
        tier = await org_service.create_budget_tier(
            "Large", Decimal("20000"), Decimal("100000"), [1, 3, 2, 3]
        )

        assert tier.approver_levels == [3, 2, 1]
        assert tier.required_approvers == 3
        assert tier.is_active

    @pytest.mark.parametrize(
        "min_amount,max_amount,levels",
        [
            ("100", "100", [1]),
            ("500", "100", [1]),
            ("-1", "100", [1]),
            ("0", "100", []),
            ("0", "100", [0, 1]),
        ],
    )
    async def test_invalid_tier(self, org_service, min_amount, max_amount, levels):
        with pytest.raises(ValueError):
            await org_service.create_budget_tier(
                "Broken", Decimal(min_amount), Decimal(max_amount), levels
            )

    async def test_update_tier(self, org_service):
        tier = await org_service.create_budget_tier(
            "Small", Decimal("0"), Decimal("999"), [3]
        )

        updated = await org_service.update_budget_tier(
            tier.budget_tier_id, max_amount=Decimal("1499.99"), approver_levels=[2, 3]
        )

        assert updated.max_amount == Decimal("1499.99")
        assert updated.approver_levels == [3, 2]

    async def test_update_rejects_inverted_range(self, org_service):
        tier = await org_service.create_budget_tier(
            "Small", Decimal("100"), Decimal("999"), [3]
        )

        with pytest.raises(ValueError):
            await org_service.update_budget_tier(tier.budget_tier_id, max_amount=Decimal("50"))

    async def test_invalid_levels_leave_tier_untouched(self, org_service):
        tier = await org_service.create_budget_tier(
            "Small", Decimal("0"), Decimal("999"), [3]
        )

        with pytest.raises(ValueError):
            await org_service.update_budget_tier(
                tier.budget_tier_id,
                min_amount=Decimal("100"),
                max_amount=Decimal("1999"),
                approver_levels=[],
            )

        assert tier.min_amount == Decimal("0")
        assert tier.max_amount == Decimal("999")
        assert tier.approver_levels == [3]

    async def test_update_unknown_tier(self, org_service):
        with pytest.raises(BudgetTierNotFoundError):
            await org_service.update_budget_tier(uuid4(), name="Ghost")

    async def test_deactivate(self, org_service):
        small = await org_service.create_budget_tier(
            "Small", Decimal("0"), Decimal("999"), [3]
        )
        medium = await org_service.create_budget_tier(
            "Medium", Decimal("1000"), Decimal("19999"), [3, 2]
        )

        await org_service.deactivate_budget_tier(small.budget_tier_id)

        active = await org_service.list_active_budget_tiers()
        assert [t.budget_tier_id for t in active] == [medium.budget_tier_id]
        kept = await org_service.get_budget_tier(small.budget_tier_id)
        assert kept is not None
        assert kept.is_active is False

    async def test_active_tiers_ordered_by_amount(self, org_service):
        await org_service.create_budget_tier("Large", Decimal("20000"), Decimal("90000"), [1])
        await org_service.create_budget_tier("Small", Decimal("0"), Decimal("999"), [3])
        await org_service.create_budget_tier("Medium", Decimal("1000"), Decimal("19999"), [2])

        active = await org_service.list_active_budget_tiers()

        assert [t.name for t in active] == ["Small", "Medium", "Large"]

    async def test_overlap_logs_warning(self, org_service, caplog):
        await org_service.create_budget_tier("Small", Decimal("0"), Decimal("1000"), [3])

        with caplog.at_level(logging.WARNING, logger="expense_router"):
            await org_service.create_budget_tier(
                "Medium", Decimal("1000"), Decimal("5000"), [2]
            )

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "'Small' and 'Medium' overlap" in warnings[0].getMessage()

    async def test_adjacent_tiers_do_not_warn(self, org_service, caplog):
        await org_service.create_budget_tier("Small", Decimal("0"), Decimal("999.99"), [3])

        with caplog.at_level(logging.WARNING, logger="expense_router"):
            await org_service.create_budget_tier(
                "Medium", Decimal("1000"), Decimal("5000"), [2]
            )

        assert not [r for r in caplog.records if r.levelno == logging.WARNING]
