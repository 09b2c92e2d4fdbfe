"""Integration test fixtures with a real (SQLite) database."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from expense_router.config import ChainPolicy
from expense_router.models import Base, Employee
from expense_router.services import (
    ApprovalService,
    ExpenseLockRegistry,
    OrganizationService,
)

# In-memory SQLite per test; StaticPool keeps the single connection alive
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    """Create test database engine with the schema."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def org_service(session: AsyncSession) -> OrganizationService:
    return OrganizationService(session)


@pytest_asyncio.fixture
async def approvals(session: AsyncSession) -> ApprovalService:
    """Approval service re-resolving chains on every decision."""
    return ApprovalService(
        session,
        chain_policy=ChainPolicy.LIVE,
        lock_registry=ExpenseLockRegistry(),
    )


@pytest_asyncio.fixture
async def frozen_approvals(session: AsyncSession) -> ApprovalService:
    """Approval service routing from the chain stored at submission."""
    return ApprovalService(
        session,
        chain_policy=ChainPolicy.FROZEN,
        lock_registry=ExpenseLockRegistry(),
    )


@pytest_asyncio.fixture
async def staff(org_service: OrganizationService) -> dict[str, Employee]:
    """Director (1) <- manager (2) <- submitter (3), plus an admin."""
    admin = await org_service.create_employee(
        name="Avery Admin", email="admin@example.com", level=1, role="admin"
    )
    director = await org_service.create_employee(
        name="Dana Director", email="dana@example.com", level=1
    )
    manager = await org_service.create_employee(
        name="Morgan Manager",
        email="morgan@example.com",
        level=2,
        manager_id=director.employee_id,
    )
    submitter = await org_service.create_employee(
        name="Sam Submitter",
        email="sam@example.com",
        level=3,
        manager_id=manager.employee_id,
    )
    return {
        "admin": admin,
        "director": director,
        "manager": manager,
        "submitter": submitter,
    }
