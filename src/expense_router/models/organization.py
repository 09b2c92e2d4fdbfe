"""Employee and budget tier models."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expense_router.models.base import Base, UpdatedAtMixin


class Employee(Base, UpdatedAtMixin):
    """Employee record with its position in the org hierarchy."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String, nullable=False, default="standard")
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    manager_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="SET NULL"),
        nullable=True,
    )
    position: Mapped[str | None] = mapped_column(String, nullable=True)
    department: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'standard')", name="employee_role_check"),
        CheckConstraint("level > 0", name="employee_level_positive"),
        CheckConstraint(
            "manager_id IS NULL OR manager_id <> employee_id",
            name="employee_not_own_manager",
        ),
        Index("ix_employee_manager_id", "manager_id"),
        Index("ix_employee_level", "level"),
    )

    # Relationships
    manager: Mapped[Employee | None] = relationship(remote_side=[employee_id])

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class BudgetTier(Base, UpdatedAtMixin):
    """Amount range mapped to the org levels that must approve it."""

    __tablename__ = "budget_tier"

    budget_tier_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    min_amount: Mapped[Decimal] = mapped_column(nullable=False)
    max_amount: Mapped[Decimal] = mapped_column(nullable=False)
    approver_levels: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    required_approvers: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("min_amount >= 0", name="budget_tier_min_nonnegative"),
        CheckConstraint("max_amount > min_amount", name="budget_tier_range_check"),
        Index("ix_budget_tier_active_range", "is_active", "min_amount", "max_amount"),
    )
