"""Pydantic schemas for statements and their expense lines.

The ``*Schema`` models double as the plain records handed to the
reconciliation core; their ``before`` validators coerce malformed amounts to
zero and unreadable dates to ``None`` instead of failing.
"""
from datetime import datetime, date as date_type
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator
from app.models.statement import StatementStatus
from app.services.text_service import parse_amount, parse_date


class ExpenseSchema(BaseModel):
    id: int
    statement_id: int
    description: str = ""
    value: Decimal = Decimal("0")
    expense_date: Optional[date_type] = None

    model_config = {"from_attributes": True}

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, v) -> str:
        return v or ""

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v) -> Decimal:
        return parse_amount(v)

    @field_validator("expense_date", mode="before")
    @classmethod
    def coerce_date(cls, v) -> Optional[date_type]:
        return parse_date(v)


class StatementSchema(BaseModel):
    id: int
    user_id: int
    period_month: int = Field(ge=1, le=12)
    period_year: int
    declared_total: Decimal = Decimal("0")
    calculated_total: Decimal = Decimal("0")
    difference: Decimal = Decimal("0")
    status: StatementStatus = StatementStatus.in_review
    source_filename: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("declared_total", "calculated_total", "difference", mode="before")
    @classmethod
    def coerce_amounts(cls, v) -> Decimal:
        return parse_amount(v)


class StatementDetail(StatementSchema):
    expenses: List[ExpenseSchema] = []


class ExpenseCreate(BaseModel):
    description: str = Field(min_length=1, max_length=500)
    value: Decimal = Field(ge=0)
    expense_date: Optional[date_type] = None

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v) -> Decimal:
        return parse_amount(v)

    @field_validator("expense_date", mode="before")
    @classmethod
    def coerce_date(cls, v) -> Optional[date_type]:
        return parse_date(v)


class ExpenseUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    value: Optional[Decimal] = Field(default=None, ge=0)
    expense_date: Optional[date_type] = None

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v) -> Optional[Decimal]:
        return parse_amount(v, default=None)


class StatementCreate(BaseModel):
    period_month: int = Field(ge=1, le=12)
    period_year: int = Field(ge=2000, le=2100)
    declared_total: Decimal = Decimal("0")
    source_filename: Optional[str] = None
    expenses: List[ExpenseCreate] = []

    @field_validator("declared_total", mode="before")
    @classmethod
    def coerce_total(cls, v) -> Decimal:
        return parse_amount(v)
