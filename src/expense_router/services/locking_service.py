"""Per-request locking for approval decisions."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from expense_router.database import acquire_expense_lock
from expense_router.models import ExpenseRequest


class ExpenseLockRegistry:
    """In-process mutual exclusion keyed by expense id.

    Locks are created on demand and dropped once no coroutine holds or
    waits on them. Different expense ids never contend.
    """

    def __init__(self) -> None:
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._waiters: dict[UUID, int] = {}

    @asynccontextmanager
    async def hold(self, expense_id: UUID) -> AsyncIterator[None]:
        """Hold the lock for one expense for the duration of the block."""
        lock = self._locks.setdefault(expense_id, asyncio.Lock())
        self._waiters[expense_id] = self._waiters.get(expense_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[expense_id] -= 1
            if self._waiters[expense_id] == 0:
                del self._waiters[expense_id]
                del self._locks[expense_id]

    def is_held(self, expense_id: UUID) -> bool:
        lock = self._locks.get(expense_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


# Shared by every service instance in the process
default_lock_registry = ExpenseLockRegistry()


class LockingService:
    """Serializes decisions on a single expense request.

    Holding the lock for a request means:
    1. No other coroutine in this process is deciding on it
    2. On PostgreSQL, a transaction-scoped advisory lock is held
    3. The request row is loaded FOR UPDATE (row lock until commit)

    Other requests are unaffected. The in-process lock is released when the
    block exits, before the caller commits; until then a second session can
    read the old row, and the revision guard in ApprovalService refuses its
    update. The advisory and row locks last until commit.
    """

    def __init__(
        self,
        session: AsyncSession,
        registry: ExpenseLockRegistry | None = None,
    ):
        self.session = session
        self.registry = registry or default_lock_registry

    @asynccontextmanager
    async def lock_request(self, expense_id: UUID) -> AsyncIterator[ExpenseRequest | None]:
        """Lock an expense request and yield its freshly loaded row.

        Yields None if the request does not exist.
        """
        async with self.registry.hold(expense_id):
            await acquire_expense_lock(self.session, expense_id)
            result = await self.session.execute(
                select(ExpenseRequest)
                .where(ExpenseRequest.expense_id == expense_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            yield result.scalar_one_or_none()
