"""Read-only data access used by the reconciliation reports.

``ReconciliationStore`` is the contract the aggregator depends on; any
persistence layer able to answer these five lookups can drive a report.
``SqlReconciliationStore`` implements it on top of the SQLAlchemy models and
opens one short-lived session per call, so lookups for different users can run
on separate threads.

Every storage failure surfaces as ``DataUnavailableError`` so callers can tell
"the store could not be read" apart from "there is nothing to report".
"""
import logging
from typing import Callable, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.schemas.invoice import InvoiceSchema
from app.schemas.statement import ExpenseSchema, StatementSchema
from app.schemas.user import ProfileSchema

logger = logging.getLogger(__name__)


class DataUnavailableError(Exception):
    """The collaborator store could not be reached or returned an error."""


class ReconciliationStore(Protocol):
    def list_user_ids(self) -> list[int]: ...

    def get_profile(self, user_id: int) -> Optional[ProfileSchema]: ...

    def list_statements(self, user_id: int) -> list[StatementSchema]: ...

    def list_expenses(self, statement_id: int) -> list[ExpenseSchema]: ...

    def list_invoices(self, user_id: int) -> list[InvoiceSchema]: ...


class SqlReconciliationStore:
    """``ReconciliationStore`` backed by the application database."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        if session_factory is None:
            from app.database import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory

    def _run(self, what: str, query: Callable[[Session], object]):
        try:
            with self._session_factory() as db:
                return query(db)
        except SQLAlchemyError as exc:
            logger.error("Store lookup failed (%s): %s", what, exc)
            raise DataUnavailableError(f"Could not load {what}") from exc

    def list_user_ids(self) -> list[int]:
        from app.models.user import User

        return self._run(
            "users",
            lambda db: [
                row.id
                for row in db.query(User.id)
                .order_by(User.id)
                .all()
            ],
        )

    def get_profile(self, user_id: int) -> Optional[ProfileSchema]:
        from app.models.user import User

        def _query(db: Session):
            user = db.query(User).filter(User.id == user_id).first()
            return ProfileSchema.model_validate(user) if user else None

        return self._run(f"profile {user_id}", _query)

    def list_statements(self, user_id: int) -> list[StatementSchema]:
        from app.models.statement import Statement

        return self._run(
            f"statements for user {user_id}",
            lambda db: [
                StatementSchema.model_validate(s)
                for s in db.query(Statement)
                .filter(Statement.user_id == user_id)
                .order_by(Statement.created_at.desc(), Statement.id.desc())
                .all()
            ],
        )

    def list_expenses(self, statement_id: int) -> list[ExpenseSchema]:
        from app.models.statement import Expense

        return self._run(
            f"expenses for statement {statement_id}",
            lambda db: [
                ExpenseSchema.model_validate(e)
                for e in db.query(Expense)
                .filter(Expense.statement_id == statement_id)
                .order_by(Expense.expense_date.asc().nulls_last(), Expense.id)
                .all()
            ],
        )

    def list_invoices(self, user_id: int) -> list[InvoiceSchema]:
        from app.models.invoice import Invoice

        return self._run(
            f"invoices for user {user_id}",
            lambda db: [
                InvoiceSchema.model_validate(i)
                for i in db.query(Invoice)
                .filter(Invoice.user_id == user_id)
                .order_by(Invoice.created_at.desc(), Invoice.id.desc())
                .all()
            ],
        )
