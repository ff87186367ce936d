from datetime import datetime, date
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from app.models.invoice import InvoiceStatus
from app.services.text_service import parse_amount, parse_date


class InvoiceBase(BaseModel):
    supplier: str = ""
    description: Optional[str] = None
    category: Optional[str] = None
    total_value: Decimal = Decimal("0")
    invoice_date: Optional[date] = None

    @field_validator("total_value", mode="before")
    @classmethod
    def coerce_total(cls, v) -> Decimal:
        return parse_amount(v)

    @field_validator("invoice_date", mode="before")
    @classmethod
    def coerce_date(cls, v) -> Optional[date]:
        return parse_date(v)


class InvoiceCreate(InvoiceBase):
    supplier: str = Field(min_length=1, max_length=255)
    total_value: Decimal = Field(ge=0)


class InvoiceReview(BaseModel):
    status: InvoiceStatus
    reviewer_id: Optional[int] = None
    rejection_reason: Optional[str] = None


class InvoiceSchema(InvoiceBase):
    id: int
    user_id: int
    status: InvoiceStatus = InvoiceStatus.pending
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("supplier", mode="before")
    @classmethod
    def coerce_supplier(cls, v) -> str:
        return v or ""
