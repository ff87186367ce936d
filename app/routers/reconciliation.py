"""Router for statement reconciliation and reports.

Endpoints:
  GET  /reconciliation/statements/{stmt_id}  – Reconcile one statement
  GET  /reconciliation/users/{user_id}       – Per-user reconciliation summary
  GET  /reconciliation/report                – Global report across all users
  POST /reconciliation/report/jobs           – Queue the global report as a background job
  POST /reconciliation/users/{user_id}/jobs  – Queue one user's summary as a background job

A store failure answers 503 so clients never mistake it for an empty report.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.schemas.reconciliation import (
    GlobalReconciliationReport,
    StatementReconciliation,
    UserReconciliationSummary,
)
from app.services.store_service import (
    DataUnavailableError,
    ReconciliationStore,
    SqlReconciliationStore,
)

router = APIRouter()
logger = logging.getLogger(__name__)

_UNAVAILABLE = "Reconciliation data is temporarily unavailable"


def get_store() -> ReconciliationStore:
    return SqlReconciliationStore()


@router.get("/statements/{stmt_id}", response_model=StatementReconciliation)
def reconcile_statement(
    stmt_id: int,
    db: Session = Depends(get_db),
    store: ReconciliationStore = Depends(get_store),
):
    """Reconcile a single statement against its owner's invoices."""
    from app.services.reconciliation_service import reconcile_statement as _reconcile
    from app.services.statement_service import get_statement

    statement = get_statement(db, stmt_id)
    if not statement:
        raise HTTPException(status_code=404, detail="Statement not found")

    settings = get_settings()
    try:
        expenses = store.list_expenses(statement.id)
        invoices = store.list_invoices(statement.user_id)
    except DataUnavailableError:
        raise HTTPException(status_code=503, detail=_UNAVAILABLE)

    return _reconcile(
        statement,
        expenses,
        invoices,
        tolerance=settings.VALUE_TOLERANCE,
        currency_symbol=settings.CURRENCY_SYMBOL,
    )


@router.get("/users/{user_id}", response_model=UserReconciliationSummary)
def user_reconciliation(
    user_id: int,
    db: Session = Depends(get_db),
    store: ReconciliationStore = Depends(get_store),
):
    from app.routers.users import get_user_or_404
    from app.services.report_service import generate_user_reconciliation

    get_user_or_404(user_id, db)
    summary = generate_user_reconciliation(user_id, store=store)
    if summary is None:
        raise HTTPException(status_code=503, detail=_UNAVAILABLE)
    return summary


@router.get("/report", response_model=GlobalReconciliationReport)
def global_report(store: ReconciliationStore = Depends(get_store)):
    """Build the cross-user report synchronously."""
    from app.services.report_service import generate_global_report

    report = generate_global_report(store=store)
    if report is None:
        raise HTTPException(status_code=503, detail=_UNAVAILABLE)
    return report


def _queue_report_job(db: Session, job_type, task, user_id=None) -> dict:
    """Create a pending JobRun and hand the report to the worker."""
    from app.models.job import JobRun, JobStatus

    job_run = JobRun(job_type=job_type, user_id=user_id, status=JobStatus.pending)
    db.add(job_run)
    db.commit()
    db.refresh(job_run)

    try:
        if user_id is None:
            queued = task.delay(job_run_id=job_run.id)
        else:
            queued = task.delay(user_id, job_run_id=job_run.id)
    except Exception as exc:
        logger.error("Could not queue %s job %s: %s", job_type.value, job_run.id, exc)
        job_run.status = JobStatus.failed
        job_run.error_message = f"Could not queue task: {exc}"
        db.commit()
        raise HTTPException(status_code=503, detail="Background worker unavailable")

    job_run.task_id = queued.id
    db.commit()
    return {"status": "queued", "job_run_id": job_run.id, "task_id": queued.id}


@router.post("/report/jobs", status_code=202)
def queue_global_report(db: Session = Depends(get_db)):
    """Queue the global report on the worker; poll ``/jobs/{id}`` for the result."""
    from app.models.job import JobType
    from app.tasks.reconciliation_tasks import generate_global_report_task

    return _queue_report_job(db, JobType.global_report, generate_global_report_task)


@router.post("/users/{user_id}/jobs", status_code=202)
def queue_user_report(user_id: int, db: Session = Depends(get_db)):
    """Queue one user's reconciliation summary on the worker."""
    from app.models.job import JobType
    from app.routers.users import get_user_or_404
    from app.tasks.reconciliation_tasks import generate_user_report_task

    get_user_or_404(user_id, db)
    return _queue_report_job(db, JobType.user_report, generate_user_report_task, user_id=user_id)
