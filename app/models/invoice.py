import enum
from datetime import datetime
from datetime import date as date_type
from decimal import Decimal
from typing import Optional
from sqlalchemy import String, Text, Numeric, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column
from app.database import Base


class InvoiceStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class Invoice(Base):
    """A submitted receipt/nota fiscal going through the approval workflow.

    Invoices are never linked to a statement by foreign key; reconciliation
    pairs them transiently by period and value.
    """

    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    supplier: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[Optional[str]] = mapped_column(String(100))
    total_value: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    invoice_date: Mapped[Optional[date_type]] = mapped_column(index=True)
    status: Mapped[InvoiceStatus] = mapped_column(String(20), default=InvoiceStatus.pending)
    # Review
    reviewed_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"))
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text)
    # Timestamps
    created_at: Mapped[datetime] = mapped_column(default=func.now())
    updated_at: Mapped[datetime] = mapped_column(default=func.now(), onupdate=func.now())
