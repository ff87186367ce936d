"""Models for monthly credit-card statements and the expense lines extracted from them."""
import enum
from datetime import datetime, date as date_type
from decimal import Decimal
from typing import Optional
from sqlalchemy import String, Numeric, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base


class StatementStatus(str, enum.Enum):
    in_review = "in_review"
    matched = "matched"
    divergent = "divergent"


class Statement(Base):
    """One credit-card bill for a given user and month.

    ``calculated_total``, ``difference`` and ``status`` are derived from the
    expense lines and refreshed by ``statement_service`` on every change.
    """

    __tablename__ = "statements"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "period_month", "period_year", name="uq_statement_user_period"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    period_month: Mapped[int]
    period_year: Mapped[int]
    declared_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    calculated_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    difference: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    status: Mapped[StatementStatus] = mapped_column(
        String(20), default=StatementStatus.in_review
    )
    source_filename: Mapped[Optional[str]] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(default=func.now())
    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())

    expenses: Mapped[list["Expense"]] = relationship(
        "Expense",
        back_populates="statement",
        cascade="all, delete-orphan",
        order_by="Expense.id",
    )


class Expense(Base):
    """A single charge line extracted from a statement."""

    __tablename__ = "statement_expenses"

    id: Mapped[int] = mapped_column(primary_key=True)
    statement_id: Mapped[int] = mapped_column(ForeignKey("statements.id"), index=True)
    description: Mapped[str] = mapped_column(String(500))
    value: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    expense_date: Mapped[Optional[date_type]]
    created_at: Mapped[datetime] = mapped_column(default=func.now())
    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())

    statement: Mapped["Statement"] = relationship("Statement", back_populates="expenses")
