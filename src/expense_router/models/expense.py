"""Expense request and approval event models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expense_router.models.base import Base, UpdatedAtMixin, utcnow
from expense_router.models.organization import Employee


class ExpenseRequest(Base, UpdatedAtMixin):
    """An expense submitted for approval."""

    __tablename__ = "expense_request"

    expense_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    business_justification: Mapped[str | None] = mapped_column(Text, nullable=True)
    urgency: Mapped[str] = mapped_column(String, nullable=False, default="medium")
    submitted_by: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    current_approver_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="SET NULL"),
        nullable=True,
    )
    # Chain resolved at submission, stored as string ids
    approval_chain: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Digests of the directory and tier snapshots the chain was resolved from
    directory_version: Mapped[str | None] = mapped_column(String(32), nullable=True)
    tier_version: Mapped[str | None] = mapped_column(String(32), nullable=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="expense_request_amount_positive"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="expense_request_status_check",
        ),
        CheckConstraint(
            "urgency IN ('low', 'medium', 'high')",
            name="expense_request_urgency_check",
        ),
        CheckConstraint(
            "status = 'pending' OR current_approver_id IS NULL",
            name="expense_request_terminal_has_no_approver",
        ),
        Index("ix_expense_request_submitted_by", "submitted_by"),
        Index("ix_expense_request_approver_status", "current_approver_id", "status"),
    )

    # Relationships
    submitter: Mapped[Employee] = relationship(foreign_keys=[submitted_by])
    current_approver: Mapped[Employee | None] = relationship(
        foreign_keys=[current_approver_id]
    )

    @property
    def chain_ids(self) -> list[UUID]:
        """Approval chain snapshot as UUIDs."""
        return [UUID(value) for value in self.approval_chain]


class ApprovalEvent(Base):
    """Immutable record of one approval decision (append-only)."""

    __tablename__ = "approval_event"

    approval_event_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    expense_id: Mapped[UUID] = mapped_column(
        ForeignKey("expense_request.expense_id", ondelete="RESTRICT"),
        nullable=False,
    )
    approver_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    decision: Mapped[str] = mapped_column(String, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "decision IN ('approved', 'rejected')",
            name="approval_event_decision_check",
        ),
        Index("ix_approval_event_expense", "expense_id", "created_at"),
    )

    # Relationships
    approver: Mapped[Employee] = relationship()
