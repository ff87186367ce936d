"""Reconciliation service: pair statement expenses with submitted invoices.

Matching strategy (greedy first-fit, input order, no reassignment):
- Candidates: invoices whose ``invoice_date`` falls in the statement month.
  Undated invoices are never candidates.
- Pass 1: for each expense, the first unconsumed candidate whose supplier or
  description matches the expense description AND whose value matches.
- Pass 2: for each expense still unmatched, the first unconsumed candidate
  whose value matches.

The result depends on input order; this is not an optimal bipartite
assignment.  Everything here is pure: no I/O, no clock.
"""
from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal

from app.schemas.invoice import InvoiceSchema
from app.schemas.reconciliation import (
    MatchKind,
    ReconciliationMatch,
    ReconciliationStatus,
    StatementReconciliation,
)
from app.schemas.statement import ExpenseSchema, StatementSchema
from app.services.alert_service import DEFAULT_CURRENCY_SYMBOL, build_alerts
from app.services.matching_service import (
    DEFAULT_VALUE_TOLERANCE,
    descriptions_match,
    values_match,
)


def statement_period(period_month: int, period_year: int) -> tuple[date, date]:
    """Return the first and last calendar day of the statement month."""
    last_day = calendar.monthrange(period_year, period_month)[1]
    return date(period_year, period_month, 1), date(period_year, period_month, last_day)


def period_invoices(
    invoices: list[InvoiceSchema], start: date, end: date
) -> list[InvoiceSchema]:
    """Return the invoices dated inside ``[start, end]``, keeping input order."""
    return [
        inv for inv in invoices
        if inv.invoice_date is not None and start <= inv.invoice_date <= end
    ]


def _strong_match(expense: ExpenseSchema, invoice: InvoiceSchema, tolerance: Decimal) -> bool:
    described = descriptions_match(expense.description, invoice.supplier) or descriptions_match(
        expense.description, invoice.description
    )
    return described and values_match(expense.value, invoice.total_value, tolerance)


def _value_match(expense: ExpenseSchema, invoice: InvoiceSchema, tolerance: Decimal) -> bool:
    return values_match(expense.value, invoice.total_value, tolerance)


def _derive_status(
    unmatched_expenses: list, invoices_not_in_statement: list, matched_invoices: list
) -> ReconciliationStatus:
    if not unmatched_expenses and not invoices_not_in_statement:
        return ReconciliationStatus.matched
    if unmatched_expenses and not matched_invoices:
        return ReconciliationStatus.divergent
    return ReconciliationStatus.partial


def reconcile_statement(
    statement,
    expenses: list,
    invoices: list,
    *,
    tolerance: Decimal = DEFAULT_VALUE_TOLERANCE,
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
) -> StatementReconciliation:
    """Reconcile one statement's expenses against a user's invoices.

    *statement*, *expenses* and *invoices* may be ORM rows or schema records;
    they are validated into records first, which coerces malformed amounts to
    zero rather than failing.
    """
    stmt = StatementSchema.model_validate(statement)
    expense_list = [ExpenseSchema.model_validate(e) for e in expenses]
    invoice_list = [InvoiceSchema.model_validate(i) for i in invoices]

    period_start, period_end = statement_period(stmt.period_month, stmt.period_year)
    candidates = period_invoices(invoice_list, period_start, period_end)

    # Positions rather than ids so records sharing an id cannot collide
    matched_expenses: dict[int, ReconciliationMatch] = {}
    consumed_invoices: set[int] = set()

    for kind, predicate in (
        (MatchKind.description_and_value, _strong_match),
        (MatchKind.value_only, _value_match),
    ):
        for e_idx, expense in enumerate(expense_list):
            if e_idx in matched_expenses:
                continue
            for i_idx, invoice in enumerate(candidates):
                if i_idx in consumed_invoices:
                    continue
                if predicate(expense, invoice, tolerance):
                    matched_expenses[e_idx] = ReconciliationMatch(
                        expense=expense, invoice=invoice, kind=kind
                    )
                    consumed_invoices.add(i_idx)
                    break

    # Insertion order: pass 1 matches, then pass 2 matches
    matches = list(matched_expenses.values())
    matched_invoices = [m.invoice for m in matches]
    unmatched_expenses = [
        e for idx, e in enumerate(expense_list) if idx not in matched_expenses
    ]
    invoices_not_in_statement = [
        inv for idx, inv in enumerate(candidates) if idx not in consumed_invoices
    ]

    status = _derive_status(unmatched_expenses, invoices_not_in_statement, matched_invoices)
    alerts = build_alerts(
        stmt,
        expense_list,
        unmatched_expenses,
        invoices_not_in_statement,
        currency_symbol=currency_symbol,
    )

    return StatementReconciliation(
        statement=stmt,
        period_start=period_start,
        period_end=period_end,
        expenses=expense_list,
        matches=matches,
        matched_invoices=matched_invoices,
        unmatched_expenses=unmatched_expenses,
        invoices_not_in_statement=invoices_not_in_statement,
        total_expenses_value=sum((e.value for e in expense_list), Decimal("0")),
        total_matched_value=sum((i.total_value for i in matched_invoices), Decimal("0")),
        total_unmatched_value=sum((e.value for e in unmatched_expenses), Decimal("0")),
        status=status,
        alerts=alerts,
    )
