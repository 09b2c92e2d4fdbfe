"""Seed a development database with a sample org chart and budget tiers.

Usage:
    python scripts/seed_org.py
    python scripts/seed_org.py --database-url sqlite+aiosqlite:///dev.db

Creates the schema if needed, then three hierarchy levels (director,
department manager, employee manager), a few staff members, an admin, and
three budget tiers.
"""

from __future__ import annotations

import argparse
import asyncio
import os
from decimal import Decimal

from expense_router.config import configure_logging, get_settings
from expense_router.database import create_schema, dispose_db, get_session
from expense_router.services import OrganizationService

BUDGET_TIERS = [
    ("Small expenses", Decimal("0"), Decimal("999.99"), [3]),
    ("Medium expenses", Decimal("1000"), Decimal("19999.99"), [3, 2]),
    ("Large expenses", Decimal("20000"), Decimal("1000000"), [3, 2, 1]),
]


async def seed() -> None:
    """Create schema and sample data."""
    await create_schema()

    async with get_session() as session:
        org = OrganizationService(session)

        await org.create_employee(
            name="System Admin", email="admin@example.com", level=1, role="admin"
        )
        director = await org.create_employee(
            name="Dana Director",
            email="dana@example.com",
            level=1,
            position="Director",
        )
        department_manager = await org.create_employee(
            name="Morgan Manager",
            email="morgan@example.com",
            level=2,
            manager_id=director.employee_id,
            position="Department Manager",
            department="Engineering",
        )
        team_lead = await org.create_employee(
            name="Taylor Lead",
            email="taylor@example.com",
            level=3,
            manager_id=department_manager.employee_id,
            position="Team Lead",
            department="Engineering",
        )
        for name, email in [
            ("Alex Engineer", "alex@example.com"),
            ("Sam Engineer", "sam@example.com"),
        ]:
            await org.create_employee(
                name=name,
                email=email,
                level=4,
                manager_id=team_lead.employee_id,
                position="Engineer",
                department="Engineering",
            )

        for name, min_amount, max_amount, levels in BUDGET_TIERS:
            await org.create_budget_tier(name, min_amount, max_amount, levels)

    await dispose_db()
    print("Seed data loaded")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed sample org and budget tiers")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    args = parser.parse_args()

    if args.database_url:
        os.environ["DATABASE_URL"] = args.database_url
        get_settings.cache_clear()

    configure_logging()
    asyncio.run(seed())


if __name__ == "__main__":
    main()
