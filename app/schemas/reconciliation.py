"""Pydantic schemas for reconciliation results, alerts and reports.

Alerts are a tagged union keyed by ``type``; each variant carries only the
references that make sense for it.
"""
import enum
from datetime import datetime, date as date_type
from decimal import Decimal
from typing import Annotated, Literal, Optional, List, Union
from pydantic import BaseModel, Field
from app.schemas.invoice import InvoiceSchema
from app.schemas.statement import ExpenseSchema, StatementSchema


class AlertSeverity(str, enum.Enum):
    info = "info"
    warning = "warning"
    error = "error"


class ReconciliationStatus(str, enum.Enum):
    matched = "matched"
    partial = "partial"
    divergent = "divergent"


class MatchKind(str, enum.Enum):
    description_and_value = "description_and_value"
    value_only = "value_only"


class _AlertBase(BaseModel):
    id: str
    title: str
    description: str
    statement_id: int

    model_config = {"frozen": True}


class ValueMismatchAlert(_AlertBase):
    """Declared and calculated statement totals disagree."""

    type: Literal["value_mismatch"] = "value_mismatch"
    severity: AlertSeverity = AlertSeverity.error
    value: Decimal


class ExtraExpenseAlert(_AlertBase):
    """A statement charge with no matching invoice."""

    type: Literal["extra_expense"] = "extra_expense"
    severity: AlertSeverity = AlertSeverity.warning
    expense_id: int
    value: Decimal


class MissingInvoiceAlert(_AlertBase):
    """An invoice dated in the statement period that no charge accounts for."""

    type: Literal["missing_invoice"] = "missing_invoice"
    severity: AlertSeverity = AlertSeverity.warning
    invoice_id: int
    value: Decimal


class IncompleteStatementAlert(_AlertBase):
    """A statement with a declared total but no extracted expense lines."""

    type: Literal["incomplete_statement"] = "incomplete_statement"
    severity: AlertSeverity = AlertSeverity.info
    value: Decimal


ReconciliationAlert = Annotated[
    Union[ValueMismatchAlert, ExtraExpenseAlert, MissingInvoiceAlert, IncompleteStatementAlert],
    Field(discriminator="type"),
]


class ReconciliationMatch(BaseModel):
    expense: ExpenseSchema
    invoice: InvoiceSchema
    kind: MatchKind


class StatementReconciliation(BaseModel):
    statement: StatementSchema
    period_start: date_type
    period_end: date_type
    expenses: List[ExpenseSchema] = []
    matches: List[ReconciliationMatch] = []
    matched_invoices: List[InvoiceSchema] = []
    unmatched_expenses: List[ExpenseSchema] = []
    invoices_not_in_statement: List[InvoiceSchema] = []
    total_expenses_value: Decimal = Decimal("0")
    total_matched_value: Decimal = Decimal("0")
    total_unmatched_value: Decimal = Decimal("0")
    status: ReconciliationStatus
    alerts: List[ReconciliationAlert] = []


class UserReconciliationSummary(BaseModel):
    user_id: int
    user_name: str
    user_department: Optional[str] = None
    statements: List[StatementReconciliation] = []
    invoices: List[InvoiceSchema] = []
    total_statements: int = 0
    total_invoices: int = 0
    statements_matched: int = 0
    statements_divergent: int = 0
    invoices_approved: int = 0
    invoices_pending: int = 0
    invoices_rejected: int = 0
    total_approved_value: Decimal = Decimal("0")
    total_pending_value: Decimal = Decimal("0")
    total_rejected_value: Decimal = Decimal("0")
    alerts: List[ReconciliationAlert] = []


class GlobalReconciliationReport(BaseModel):
    users: List[UserReconciliationSummary] = []
    total_alerts: int = 0
    critical_alerts: int = 0
    warning_alerts: int = 0
    info_alerts: int = 0
    total_statements: int = 0
    total_invoices: int = 0
    generated_at: datetime
