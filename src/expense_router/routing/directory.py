"""Read-only org directory snapshot with hierarchy traversal."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Iterator
from uuid import UUID

from expense_router.routing.types import EmployeeRecord


class OrgDirectory:
    """Immutable snapshot of employees keyed by id.

    Iteration order is (name, employee_id), which is also the order used
    when falling back to "any employee at a level".
    """

    def __init__(self, employees: Iterable[EmployeeRecord]):
        ordered = sorted(employees, key=lambda e: (e.name, str(e.employee_id)))
        self._by_id: dict[UUID, EmployeeRecord] = {e.employee_id: e for e in ordered}
        self._ordered: tuple[EmployeeRecord, ...] = tuple(self._by_id.values())
        self._version: str | None = None

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self) -> Iterator[EmployeeRecord]:
        return iter(self._ordered)

    def __contains__(self, employee_id: object) -> bool:
        return employee_id in self._by_id

    def get(self, employee_id: UUID) -> EmployeeRecord | None:
        """Look up an employee by id."""
        return self._by_id.get(employee_id)

    def manager_of(self, employee: EmployeeRecord) -> EmployeeRecord | None:
        """Direct manager, or None at the top or when the link is dangling."""
        if employee.manager_id is None:
            return None
        return self._by_id.get(employee.manager_id)

    def ancestors(self, employee: EmployeeRecord) -> Iterator[EmployeeRecord]:
        """Walk manager references upward, nearest first.

        Stops at the top of the hierarchy, at a dangling manager reference,
        or when an employee would be visited twice (cyclic data).
        """
        visited = {employee.employee_id}
        current = self.manager_of(employee)
        # A chain can never be longer than the directory itself
        for _ in range(len(self._ordered)):
            if current is None or current.employee_id in visited:
                return
            visited.add(current.employee_id)
            yield current
            current = self.manager_of(current)

    def at_level(self, level: int, include_admins: bool = False) -> list[EmployeeRecord]:
        """Employees at exactly the given level, in directory order."""
        return [
            e
            for e in self._ordered
            if e.level == level and (include_admins or not e.is_admin)
        ]

    def would_create_cycle(self, employee_id: UUID, manager_id: UUID) -> bool:
        """Check if making manager_id the manager of employee_id closes a loop."""
        if employee_id == manager_id:
            return True
        manager = self._by_id.get(manager_id)
        if manager is None:
            return False
        return any(a.employee_id == employee_id for a in self.ancestors(manager))

    @property
    def version(self) -> str:
        """Deterministic digest of the snapshot content."""
        if self._version is None:
            payload = [e.to_canonical_dict() for e in self._ordered]
            json_str = json.dumps(payload, sort_keys=True)
            self._version = hashlib.sha256(json_str.encode()).hexdigest()[:32]
        return self._version
