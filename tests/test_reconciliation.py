"""Tests for the statement reconciler and alert generator.

Covers:
- Period window and candidate filtering (undated / out-of-month invoices)
- Pass 1 (description + value) and pass 2 (value only) greedy matching
- Partition invariants for expenses and invoices
- Overall status derivation
- Alert rules, order and deterministic ids
"""
from datetime import date
from decimal import Decimal

import pytest

from app.models.invoice import InvoiceStatus
from app.models.statement import StatementStatus
from app.schemas.invoice import InvoiceSchema
from app.schemas.statement import ExpenseSchema, StatementSchema


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _statement(id=1, month=1, year=2024, declared="0", calculated="0",
               status=StatementStatus.matched, user_id=1):
    declared_d = Decimal(declared)
    calculated_d = Decimal(calculated)
    return StatementSchema(
        id=id,
        user_id=user_id,
        period_month=month,
        period_year=year,
        declared_total=declared_d,
        calculated_total=calculated_d,
        difference=declared_d - calculated_d,
        status=status,
    )


def _expense(id, description, value, statement_id=1, expense_date=date(2024, 1, 10)):
    return ExpenseSchema(
        id=id,
        statement_id=statement_id,
        description=description,
        value=Decimal(value),
        expense_date=expense_date,
    )


def _invoice(id, supplier, total_value, invoice_date=date(2024, 1, 15),
             description=None, status=InvoiceStatus.pending, user_id=1):
    return InvoiceSchema(
        id=id,
        user_id=user_id,
        supplier=supplier,
        description=description,
        total_value=Decimal(total_value),
        invoice_date=invoice_date,
        status=status,
    )


def _reconcile(statement, expenses, invoices, **kwargs):
    from app.services.reconciliation_service import reconcile_statement

    return reconcile_statement(statement, expenses, invoices, **kwargs)


# ---------------------------------------------------------------------------
# Period window
# ---------------------------------------------------------------------------

class TestStatementPeriod:
    def test_regular_month(self):
        from app.services.reconciliation_service import statement_period

        assert statement_period(1, 2024) == (date(2024, 1, 1), date(2024, 1, 31))

    def test_leap_february(self):
        from app.services.reconciliation_service import statement_period

        assert statement_period(2, 2024) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_december(self):
        from app.services.reconciliation_service import statement_period

        assert statement_period(12, 2023) == (date(2023, 12, 1), date(2023, 12, 31))

    def test_boundaries_are_inclusive(self):
        stmt = _statement(declared="30.00", calculated="30.00")
        expenses = [_expense(1, "A", "10.00"), _expense(2, "B", "20.00")]
        invoices = [
            _invoice(1, "A", "10.00", invoice_date=date(2024, 1, 1)),
            _invoice(2, "B", "20.00", invoice_date=date(2024, 1, 31)),
        ]
        result = _reconcile(stmt, expenses, invoices)
        assert result.period_start == date(2024, 1, 1)
        assert result.period_end == date(2024, 1, 31)
        assert len(result.matched_invoices) == 2


# ---------------------------------------------------------------------------
# Matching passes
# ---------------------------------------------------------------------------

class TestMatchingPasses:
    def test_uber_trip_matches_by_value_in_second_pass(self):
        from app.schemas.reconciliation import MatchKind, ReconciliationStatus

        stmt = _statement(declared="45.00", calculated="45.00")
        expense = _expense(1, "UBER TRIP", "45.00")
        invoice = _invoice(10, "Uber Brasil", "45.00")

        result = _reconcile(stmt, [expense], [invoice])

        assert [i.id for i in result.matched_invoices] == [10]
        assert result.matches[0].kind == MatchKind.value_only
        assert result.unmatched_expenses == []
        assert result.invoices_not_in_statement == []
        assert result.status == ReconciliationStatus.matched
        assert result.alerts == []

    def test_uber_with_matching_description_uses_first_pass(self):
        from app.schemas.reconciliation import MatchKind

        stmt = _statement(declared="45.00", calculated="45.00")
        expense = _expense(1, "UBER *TRIP SAO PAULO", "45.00")
        invoice = _invoice(10, "Uber", "45.00")

        result = _reconcile(stmt, [expense], [invoice])

        assert result.matches[0].kind == MatchKind.description_and_value

    def test_invoice_description_also_considered(self):
        from app.schemas.reconciliation import MatchKind

        stmt = _statement(declared="80.00", calculated="80.00")
        expense = _expense(1, "RESTAURANTE FASANO", "80.00")
        invoices = [
            _invoice(10, "Other Co", "80.00"),
            _invoice(11, "ABC Ltda", "80.00", description="Jantar restaurante Fasano"),
        ]

        result = _reconcile(stmt, [expense], invoices)

        assert result.matches[0].invoice.id == 11
        assert result.matches[0].kind == MatchKind.description_and_value

    def test_strong_pass_runs_for_all_expenses_before_fallback(self):
        # Expense 1 only value-matches; expense 2 strongly matches invoice 10.
        # Pass 1 must give invoice 10 to expense 2 before pass 2 runs for expense 1.
        stmt = _statement(declared="100.00", calculated="100.00")
        expenses = [
            _expense(1, "PAGSEGURO *LOJA", "50.00"),
            _expense(2, "POSTO SHELL", "50.00"),
        ]
        invoices = [
            _invoice(10, "Posto Shell", "50.00"),
            _invoice(11, "Loja do Bairro", "50.00"),
        ]

        result = _reconcile(stmt, expenses, invoices)

        pairs = {m.expense.id: m.invoice.id for m in result.matches}
        assert pairs == {2: 10, 1: 11}
        # pass 1 matches are listed first
        assert [m.expense.id for m in result.matches] == [2, 1]

    def test_first_fit_uses_input_order(self):
        stmt = _statement(declared="20.00", calculated="20.00")
        expenses = [_expense(1, "X", "20.00")]
        invoices = [_invoice(10, "Y", "20.00"), _invoice(11, "Z", "20.00")]

        result = _reconcile(stmt, expenses, invoices)

        assert [i.id for i in result.matched_invoices] == [10]
        assert [i.id for i in result.invoices_not_in_statement] == [11]

    def test_invoice_consumed_only_once(self):
        stmt = _statement(declared="60.00", calculated="60.00")
        expenses = [_expense(1, "Uber", "30.00"), _expense(2, "Uber", "30.00")]
        invoices = [_invoice(10, "Uber", "30.00")]

        result = _reconcile(stmt, expenses, invoices)

        assert len(result.matches) == 1
        assert result.matches[0].expense.id == 1
        assert [e.id for e in result.unmatched_expenses] == [2]

    def test_value_tolerance_of_one_cent(self):
        stmt = _statement(declared="45.01", calculated="45.01")
        result = _reconcile(stmt, [_expense(1, "Uber", "45.01")], [_invoice(10, "Uber", "45.00")])
        assert len(result.matches) == 1

        result = _reconcile(stmt, [_expense(1, "Uber", "45.02")], [_invoice(10, "Uber", "45.00")])
        assert result.matches == []

    def test_description_alone_is_not_enough(self):
        stmt = _statement(declared="99.00", calculated="99.00")
        result = _reconcile(
            stmt, [_expense(1, "Uber", "99.00")], [_invoice(10, "Uber", "12.00")]
        )
        assert result.matches == []


# ---------------------------------------------------------------------------
# Candidate filtering
# ---------------------------------------------------------------------------

class TestCandidates:
    def test_invoice_outside_month_is_ignored(self):
        stmt = _statement(declared="0", calculated="0", status=StatementStatus.in_review)
        invoice = _invoice(10, "Uber", "45.00", invoice_date=date(2024, 2, 1))

        result = _reconcile(stmt, [], [invoice])

        assert result.invoices_not_in_statement == []
        assert result.matched_invoices == []
        assert not any(a.type == "missing_invoice" for a in result.alerts)

    def test_out_of_month_invoice_never_matches_expense(self):
        stmt = _statement(declared="45.00", calculated="45.00")
        invoice = _invoice(10, "Uber", "45.00", invoice_date=date(2023, 12, 31))

        result = _reconcile(stmt, [_expense(1, "Uber", "45.00")], [invoice])

        assert result.matches == []
        assert result.invoices_not_in_statement == []

    def test_undated_invoice_is_never_a_candidate(self):
        stmt = _statement(declared="45.00", calculated="45.00")
        invoice = _invoice(10, "Uber", "45.00", invoice_date=None)

        result = _reconcile(stmt, [_expense(1, "Uber", "45.00")], [invoice])

        assert result.matches == []
        assert result.invoices_not_in_statement == []
        assert [e.id for e in result.unmatched_expenses] == [1]


# ---------------------------------------------------------------------------
# Totals, partitions and status
# ---------------------------------------------------------------------------

class TestTotalsAndStatus:
    def _mixed(self):
        stmt = _statement(declared="345.00", calculated="345.00")
        expenses = [
            _expense(1, "UBER TRIP", "45.00"),
            _expense(2, "Posto Shell", "200.00"),
            _expense(3, "iFood", "100.00"),
        ]
        invoices = [
            _invoice(10, "Uber Brasil", "45.00"),
            _invoice(11, "iFood", "100.00"),
            _invoice(12, "Hotel Ibis", "350.00"),
            _invoice(13, "Old trip", "200.00", invoice_date=date(2023, 11, 5)),
        ]
        return _reconcile(stmt, expenses, invoices), expenses, invoices

    def test_sums(self):
        result, _, _ = self._mixed()

        assert result.total_expenses_value == Decimal("345.00")
        assert result.total_matched_value == Decimal("145.00")
        assert result.total_unmatched_value == Decimal("200.00")

    def test_expense_partition(self):
        result, expenses, _ = self._mixed()

        matched_ids = {m.expense.id for m in result.matches}
        unmatched_ids = {e.id for e in result.unmatched_expenses}
        assert matched_ids.isdisjoint(unmatched_ids)
        assert matched_ids | unmatched_ids == {e.id for e in expenses}

    def test_invoice_partition_over_candidates(self):
        result, _, _ = self._mixed()

        matched_ids = {i.id for i in result.matched_invoices}
        missing_ids = {i.id for i in result.invoices_not_in_statement}
        assert matched_ids.isdisjoint(missing_ids)
        assert matched_ids | missing_ids == {10, 11, 12}
        assert 13 not in matched_ids | missing_ids

    def test_partial_status(self):
        from app.schemas.reconciliation import ReconciliationStatus

        result, _, _ = self._mixed()
        assert result.status == ReconciliationStatus.partial

    def test_divergent_when_nothing_matched(self):
        from app.schemas.reconciliation import ReconciliationStatus

        stmt = _statement(declared="200.00", calculated="200.00")
        result = _reconcile(stmt, [_expense(1, "Posto Shell", "200.00")], [])
        assert result.status == ReconciliationStatus.divergent

    def test_partial_when_only_invoices_are_left_over(self):
        from app.schemas.reconciliation import ReconciliationStatus

        stmt = _statement(declared="45.00", calculated="45.00")
        result = _reconcile(
            stmt,
            [_expense(1, "Uber", "45.00")],
            [_invoice(10, "Uber", "45.00"), _invoice(11, "Hotel", "300.00")],
        )
        assert result.status == ReconciliationStatus.partial

    def test_empty_inputs_are_matched(self):
        from app.schemas.reconciliation import ReconciliationStatus

        stmt = _statement(declared="0", calculated="0", status=StatementStatus.in_review)
        result = _reconcile(stmt, [], [])
        assert result.status == ReconciliationStatus.matched
        assert result.alerts == []
        assert result.total_expenses_value == Decimal("0")


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------

class TestAlerts:
    def test_divergent_statement_yields_value_mismatch(self):
        from app.schemas.reconciliation import AlertSeverity

        stmt = _statement(
            id=7, declared="1000.00", calculated="900.00", status=StatementStatus.divergent
        )
        result = _reconcile(stmt, [_expense(1, "Hotel", "900.00", statement_id=7)], [])

        mismatches = [a for a in result.alerts if a.type == "value_mismatch"]
        assert len(mismatches) == 1
        alert = mismatches[0]
        assert alert.severity == AlertSeverity.error
        assert alert.value == Decimal("100.00")
        assert alert.id == "divergent-7"
        assert "01/2024" in alert.description
        assert "100.00" in alert.description

    def test_value_mismatch_uses_absolute_difference(self):
        stmt = _statement(declared="800.00", calculated="900.00", status=StatementStatus.divergent)
        result = _reconcile(stmt, [_expense(1, "Hotel", "900.00")], [])

        alert = next(a for a in result.alerts if a.type == "value_mismatch")
        assert alert.value == Decimal("100.00")

    def test_unmatched_expense_yields_extra_expense(self):
        from app.schemas.reconciliation import AlertSeverity

        stmt = _statement(declared="200.00", calculated="200.00")
        result = _reconcile(stmt, [_expense(5, "Posto Shell", "200.00")], [])

        assert [e.id for e in result.unmatched_expenses] == [5]
        assert len(result.alerts) == 1
        alert = result.alerts[0]
        assert alert.type == "extra_expense"
        assert alert.severity == AlertSeverity.warning
        assert alert.expense_id == 5
        assert alert.value == Decimal("200.00")
        assert alert.id == "unmatched-expense-5"
        assert "Posto Shell" in alert.description

    def test_unmatched_invoice_yields_missing_invoice(self):
        stmt = _statement(declared="0", calculated="0", status=StatementStatus.in_review)
        result = _reconcile(stmt, [], [_invoice(12, "Hotel Ibis", "350.00")])

        assert len(result.alerts) == 1
        alert = result.alerts[0]
        assert alert.type == "missing_invoice"
        assert alert.invoice_id == 12
        assert alert.value == Decimal("350.00")
        assert alert.id == "missing-invoice-12"

    def test_empty_statement_with_declared_total_is_incomplete(self):
        from app.schemas.reconciliation import AlertSeverity

        stmt = _statement(id=3, declared="500.00", calculated="0", status=StatementStatus.in_review)
        result = _reconcile(stmt, [], [])

        assert len(result.alerts) == 1
        alert = result.alerts[0]
        assert alert.type == "incomplete_statement"
        assert alert.severity == AlertSeverity.info
        assert alert.id == "incomplete-3"
        assert alert.value == Decimal("500.00")

    def test_alert_rule_order(self):
        stmt = _statement(declared="1000.00", calculated="200.00", status=StatementStatus.divergent)
        result = _reconcile(
            stmt,
            [_expense(1, "Posto Shell", "200.00")],
            [_invoice(10, "Hotel", "350.00")],
        )
        assert [a.type for a in result.alerts] == [
            "value_mismatch",
            "extra_expense",
            "missing_invoice",
        ]

    def test_currency_symbol_in_description(self):
        stmt = _statement(declared="200.00", calculated="200.00")
        result = _reconcile(
            stmt, [_expense(1, "Posto Shell", "200.00")], [], currency_symbol="US$"
        )
        assert "US$ 200.00" in result.alerts[0].description


# ---------------------------------------------------------------------------
# Determinism and input handling
# ---------------------------------------------------------------------------

class TestDeterminism:
    def test_identical_inputs_give_identical_output(self):
        stmt = _statement(declared="1000.00", calculated="245.00", status=StatementStatus.divergent)
        expenses = [_expense(1, "UBER TRIP", "45.00"), _expense(2, "Posto Shell", "200.00")]
        invoices = [_invoice(10, "Uber Brasil", "45.00"), _invoice(11, "Hotel", "350.00")]

        first = _reconcile(stmt, expenses, invoices)
        second = _reconcile(stmt, expenses, invoices)

        assert first == second
        assert [a.id for a in first.alerts] == [a.id for a in second.alerts]

    def test_inputs_are_not_mutated(self):
        stmt = _statement(declared="45.00", calculated="45.00")
        expenses = [_expense(1, "Uber", "45.00")]
        invoices = [_invoice(10, "Uber", "45.00")]
        snapshot = (stmt.model_dump(), [e.model_dump() for e in expenses],
                    [i.model_dump() for i in invoices])

        _reconcile(stmt, expenses, invoices)

        assert snapshot == (stmt.model_dump(), [e.model_dump() for e in expenses],
                            [i.model_dump() for i in invoices])

    def test_accepts_orm_rows(self):
        from app.models.statement import Statement, Expense
        from app.models.invoice import Invoice

        stmt = Statement(
            id=1, user_id=1, period_month=1, period_year=2024,
            declared_total=Decimal("45.00"), calculated_total=Decimal("45.00"),
            difference=Decimal("0"), status=StatementStatus.matched,
        )
        expense = Expense(id=1, statement_id=1, description="Uber", value=Decimal("45.00"))
        invoice = Invoice(
            id=10, user_id=1, supplier="Uber", total_value=Decimal("45.00"),
            invoice_date=date(2024, 1, 3), status=InvoiceStatus.approved,
        )

        result = _reconcile(stmt, [expense], [invoice])

        assert [i.id for i in result.matched_invoices] == [10]

    def test_malformed_amounts_are_treated_as_zero(self):
        expense = ExpenseSchema.model_validate(
            {"id": 1, "statement_id": 1, "description": "Line", "value": "n/a"}
        )
        stmt = StatementSchema.model_validate(
            {"id": 1, "user_id": 1, "period_month": 1, "period_year": 2024,
             "declared_total": "???", "status": "in_review"}
        )
        assert expense.value == Decimal("0")
        assert stmt.declared_total == Decimal("0")

        result = _reconcile(stmt, [expense], [])
        assert result.total_expenses_value == Decimal("0")

    def test_oversized_amount_is_treated_as_zero(self):
        stmt = _statement(declared="45.00", calculated="45.00")
        expenses = [
            {"id": 1, "statement_id": 1, "description": "Boleto",
             "value": "2379338128600000000030000000040678900000001234 5"},
            {"id": 2, "statement_id": 1, "description": "Uber", "value": "45.00",
             "expense_date": "2024-01-10"},
        ]

        result = _reconcile(stmt, expenses, [_invoice(10, "Uber", "45.00")])

        assert result.total_expenses_value == Decimal("45.00")
        assert [e.id for e in result.unmatched_expenses] == [1]
        assert result.unmatched_expenses[0].value == Decimal("0")

    def test_stored_alerts_decode_by_type(self):
        from app.schemas.reconciliation import (
            ExtraExpenseAlert,
            MissingInvoiceAlert,
            StatementReconciliation,
            ValueMismatchAlert,
        )

        stmt = _statement(declared="1000.00", calculated="200.00", status=StatementStatus.divergent)
        result = _reconcile(
            stmt, [_expense(1, "Hotel", "200.00")], [_invoice(10, "Voo", "350.00")]
        )

        restored = StatementReconciliation.model_validate_json(result.model_dump_json())

        assert [type(a) for a in restored.alerts] == [
            ValueMismatchAlert, ExtraExpenseAlert, MissingInvoiceAlert
        ]
        assert restored.alerts == result.alerts

    @pytest.mark.parametrize("month", [0, 13])
    def test_invalid_month_rejected_by_schema(self, month):
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            _statement(month=month)
