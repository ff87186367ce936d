"""Alert generation for a single statement reconciliation.

Rules are applied in a fixed order and are not mutually exclusive:

1. statement status ``divergent``          → ``value_mismatch`` (error)
2. each unmatched expense                  → ``extra_expense`` (warning)
3. each period invoice left unmatched      → ``missing_invoice`` (warning)
4. no expenses but a positive declared total → ``incomplete_statement`` (info)

Alert ids are derived from the triggering record ids, so regenerating a report
over unchanged data yields identical alerts.
"""
from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from app.models.statement import StatementStatus
from app.schemas.reconciliation import (
    ExtraExpenseAlert,
    IncompleteStatementAlert,
    MissingInvoiceAlert,
    ReconciliationAlert,
    ValueMismatchAlert,
)

if TYPE_CHECKING:
    from app.schemas.invoice import InvoiceSchema
    from app.schemas.statement import ExpenseSchema, StatementSchema

DEFAULT_CURRENCY_SYMBOL = "R$"


def _money(value: Decimal, currency_symbol: str) -> str:
    return f"{currency_symbol} {value:.2f}"


def _period(statement: "StatementSchema") -> str:
    return f"{statement.period_month:02d}/{statement.period_year}"


def build_alerts(
    statement: "StatementSchema",
    expenses: list["ExpenseSchema"],
    unmatched_expenses: list["ExpenseSchema"],
    invoices_not_in_statement: list["InvoiceSchema"],
    *,
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
) -> list[ReconciliationAlert]:
    """Return the alerts for one reconciled statement, in rule order."""
    alerts: list[ReconciliationAlert] = []

    if statement.status == StatementStatus.divergent:
        gap = abs(statement.difference)
        alerts.append(
            ValueMismatchAlert(
                id=f"divergent-{statement.id}",
                title="Statement totals diverge",
                description=(
                    f"Statement {_period(statement)} shows a difference of "
                    f"{_money(gap, currency_symbol)} between the declared and calculated totals."
                ),
                statement_id=statement.id,
                value=gap,
            )
        )

    for expense in unmatched_expenses:
        alerts.append(
            ExtraExpenseAlert(
                id=f"unmatched-expense-{expense.id}",
                title="Expense without invoice",
                description=(
                    f'"{expense.description}" ({_money(expense.value, currency_symbol)}) '
                    "is on the statement but has no matching invoice."
                ),
                statement_id=statement.id,
                expense_id=expense.id,
                value=expense.value,
            )
        )

    for invoice in invoices_not_in_statement:
        alerts.append(
            MissingInvoiceAlert(
                id=f"missing-invoice-{invoice.id}",
                title="Invoice missing from statement",
                description=(
                    f'"{invoice.supplier}" ({_money(invoice.total_value, currency_symbol)}) '
                    "was submitted but is absent from the statement."
                ),
                statement_id=statement.id,
                invoice_id=invoice.id,
                value=invoice.total_value,
            )
        )

    if not expenses and statement.declared_total > 0:
        alerts.append(
            IncompleteStatementAlert(
                id=f"incomplete-{statement.id}",
                title="Statement without expenses",
                description=(
                    f"Statement {_period(statement)} was registered but no expenses "
                    "were extracted from it."
                ),
                statement_id=statement.id,
                value=statement.declared_total,
            )
        )

    return alerts
