"""Router for credit-card statements and their expense lines.

Endpoints:
  POST   /users/{user_id}/statements        – Register a statement with its extracted lines
  GET    /users/{user_id}/statements        – List a user's statements
  GET    /statements/{stmt_id}              – Statement with expenses
  GET    /statements/{stmt_id}/expenses     – Expense lines only
  DELETE /statements/{stmt_id}              – Delete a statement and its expenses
  POST   /statements/{stmt_id}/expenses     – Add an expense line
  PATCH  /statements/expenses/{expense_id}  – Edit an expense line
  DELETE /statements/expenses/{expense_id}  – Remove an expense line

Every expense change recomputes the statement's calculated total, difference
and status.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.routers.users import get_user_or_404
from app.schemas.statement import (
    ExpenseCreate,
    ExpenseSchema,
    ExpenseUpdate,
    StatementCreate,
    StatementDetail,
    StatementSchema,
)
from app.services import statement_service

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_statement_or_404(stmt_id: int, db: Session):
    statement = statement_service.get_statement(db, stmt_id)
    if not statement:
        raise HTTPException(status_code=404, detail="Statement not found")
    return statement


def _get_expense_or_404(expense_id: int, db: Session):
    expense = statement_service.get_expense(db, expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


@router.post(
    "/users/{user_id}/statements",
    response_model=StatementDetail,
    status_code=201,
)
def create_statement(
    user_id: int,
    payload: StatementCreate,
    db: Session = Depends(get_db),
):
    """Register a statement for a month.

    Only one statement may exist per user and month; a second one for the same
    period is rejected with 409 and the existing statement is left untouched.
    """
    get_user_or_404(user_id, db)
    try:
        return statement_service.create_statement(db, user_id, payload)
    except statement_service.DuplicateStatementError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.get("/users/{user_id}/statements", response_model=List[StatementSchema])
def list_statements(user_id: int, db: Session = Depends(get_db)):
    get_user_or_404(user_id, db)
    return statement_service.list_statements(db, user_id)


@router.get("/statements/{stmt_id}", response_model=StatementDetail)
def get_statement(stmt_id: int, db: Session = Depends(get_db)):
    return _get_statement_or_404(stmt_id, db)


@router.get("/statements/{stmt_id}/expenses", response_model=List[ExpenseSchema])
def list_expenses(stmt_id: int, db: Session = Depends(get_db)):
    return _get_statement_or_404(stmt_id, db).expenses


@router.delete("/statements/{stmt_id}", status_code=200)
def delete_statement(stmt_id: int, db: Session = Depends(get_db)):
    statement = _get_statement_or_404(stmt_id, db)
    statement_service.delete_statement(db, statement)
    logger.info("Deleted statement %s", stmt_id)
    return {"status": "deleted", "statement_id": stmt_id}


@router.post(
    "/statements/{stmt_id}/expenses",
    response_model=ExpenseSchema,
    status_code=201,
)
def add_expense(stmt_id: int, payload: ExpenseCreate, db: Session = Depends(get_db)):
    statement = _get_statement_or_404(stmt_id, db)
    return statement_service.add_expense(db, statement, payload)


@router.patch("/statements/expenses/{expense_id}", response_model=ExpenseSchema)
def update_expense(expense_id: int, payload: ExpenseUpdate, db: Session = Depends(get_db)):
    expense = _get_expense_or_404(expense_id, db)
    return statement_service.update_expense(db, expense, payload)


@router.delete("/statements/expenses/{expense_id}", status_code=200)
def delete_expense(expense_id: int, db: Session = Depends(get_db)):
    expense = _get_expense_or_404(expense_id, db)
    statement = statement_service.delete_expense(db, expense)
    return {
        "status": "deleted",
        "expense_id": expense_id,
        "statement_id": statement.id,
        "statement_status": statement.status,
    }
