"""Service functions for statements and their expense lines.

A statement is the aggregate root: expenses are only created, changed or
removed through it, and after every change ``refresh_statement_totals``
recomputes the derived ``calculated_total``, ``difference`` and ``status``.

Only one statement may exist per user and month.  ``create_statement`` checks
up front and also translates a unique-constraint violation (a concurrent
insert) into ``DuplicateStatementError``.
"""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.models.statement import Expense, Statement, StatementStatus
from app.schemas.statement import ExpenseCreate, ExpenseUpdate, StatementCreate
from app.services.text_service import parse_amount

logger = logging.getLogger(__name__)

STATEMENT_TOLERANCE = Decimal("0.01")


class DuplicateStatementError(ValueError):
    """A statement already exists for this user and period."""

    def __init__(self, user_id: int, period_month: int, period_year: int):
        self.user_id = user_id
        self.period_month = period_month
        self.period_year = period_year
        super().__init__(
            f"A statement already exists for {period_month:02d}/{period_year}"
        )


def derive_statement_status(
    declared_total: Decimal,
    calculated_total: Decimal,
    expense_count: int,
    tolerance: Decimal = STATEMENT_TOLERANCE,
) -> StatementStatus:
    """``matched`` iff the totals agree; a gap with no expenses yet is ``in_review``."""
    if abs(declared_total - calculated_total) <= tolerance:
        return StatementStatus.matched
    if expense_count == 0:
        return StatementStatus.in_review
    return StatementStatus.divergent


def refresh_statement_totals(
    statement: Statement, tolerance: Decimal = STATEMENT_TOLERANCE
) -> Statement:
    """Recompute the derived totals and status from the statement's expenses."""
    declared = parse_amount(statement.declared_total)
    calculated = sum((parse_amount(e.value) for e in statement.expenses), Decimal("0"))
    statement.calculated_total = calculated
    statement.difference = declared - calculated
    statement.status = derive_statement_status(
        declared, calculated, len(statement.expenses), tolerance
    )
    return statement


def _tolerance() -> Decimal:
    from app.config import get_settings

    return get_settings().STATEMENT_TOLERANCE


def find_statement_for_period(
    db: Session, user_id: int, period_month: int, period_year: int
) -> Optional[Statement]:
    return (
        db.query(Statement)
        .filter(
            Statement.user_id == user_id,
            Statement.period_month == period_month,
            Statement.period_year == period_year,
        )
        .first()
    )


def create_statement(db: Session, user_id: int, payload: StatementCreate) -> Statement:
    """Create a statement with its expense lines in a single transaction.

    Raises:
        DuplicateStatementError: A statement already exists for the period.
    """
    if find_statement_for_period(db, user_id, payload.period_month, payload.period_year):
        raise DuplicateStatementError(user_id, payload.period_month, payload.period_year)

    statement = Statement(
        user_id=user_id,
        period_month=payload.period_month,
        period_year=payload.period_year,
        declared_total=payload.declared_total,
        source_filename=payload.source_filename,
    )
    for item in payload.expenses:
        statement.expenses.append(
            Expense(
                description=item.description,
                value=item.value,
                expense_date=item.expense_date,
            )
        )
    refresh_statement_totals(statement, _tolerance())

    try:
        db.add(statement)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning(
            "Duplicate statement for user %s period %02d/%d: %s",
            user_id, payload.period_month, payload.period_year, exc,
        )
        raise DuplicateStatementError(user_id, payload.period_month, payload.period_year)

    db.refresh(statement)
    logger.info(
        "Created statement %s for user %s (%d expenses)",
        statement.id, user_id, len(statement.expenses),
    )
    return statement


def get_statement(db: Session, statement_id: int) -> Optional[Statement]:
    return (
        db.query(Statement)
        .options(selectinload(Statement.expenses))
        .filter(Statement.id == statement_id)
        .first()
    )


def list_statements(db: Session, user_id: int) -> list[Statement]:
    return (
        db.query(Statement)
        .filter(Statement.user_id == user_id)
        .order_by(Statement.created_at.desc(), Statement.id.desc())
        .all()
    )


def delete_statement(db: Session, statement: Statement) -> None:
    """Delete a statement; its expenses go with it."""
    db.delete(statement)
    db.commit()


def add_expense(db: Session, statement: Statement, payload: ExpenseCreate) -> Expense:
    expense = Expense(
        description=payload.description,
        value=payload.value,
        expense_date=payload.expense_date,
    )
    statement.expenses.append(expense)
    refresh_statement_totals(statement, _tolerance())
    db.commit()
    db.refresh(expense)
    return expense


def get_expense(db: Session, expense_id: int) -> Optional[Expense]:
    return db.query(Expense).filter(Expense.id == expense_id).first()


def update_expense(db: Session, expense: Expense, payload: ExpenseUpdate) -> Expense:
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field in ("description", "value") and value is None:
            continue
        setattr(expense, field, value)
    refresh_statement_totals(expense.statement, _tolerance())
    db.commit()
    db.refresh(expense)
    return expense


def delete_expense(db: Session, expense: Expense) -> Statement:
    statement = expense.statement
    statement.expenses.remove(expense)
    refresh_statement_totals(statement, _tolerance())
    db.commit()
    return statement
