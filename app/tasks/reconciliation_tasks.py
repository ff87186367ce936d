import logging
from datetime import datetime, timezone
from typing import Optional

from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc).replace(tzinfo=None)


def _update_job(job_run_id: Optional[int], **fields) -> None:
    """Apply *fields* to the JobRun row, if one is being tracked."""
    if not job_run_id:
        return
    from app.database import SessionLocal
    from app.models.job import JobRun

    with SessionLocal() as db:
        job_run = db.query(JobRun).filter(JobRun.id == job_run_id).first()
        if job_run:
            for key, value in fields.items():
                setattr(job_run, key, value)
            db.commit()


def _run_report_job(task_id, job_run_id, label, generate):
    """Run *generate* and record the outcome on the JobRun.

    Returns the report, or ``None`` when the data store was unavailable.
    Unexpected errors mark the job failed and propagate.
    """
    from app.models.job import JobStatus

    _update_job(job_run_id, status=JobStatus.running, task_id=task_id)

    try:
        report = generate()
    except Exception as exc:
        logger.error("%s job %s crashed: %s", label, job_run_id, exc)
        _update_job(
            job_run_id,
            status=JobStatus.failed,
            error_message=str(exc),
            completed_at=_utcnow(),
        )
        raise

    if report is None:
        logger.warning("%s job %s failed: data store unavailable", label, job_run_id)
        _update_job(
            job_run_id,
            status=JobStatus.failed,
            error_message="Reconciliation data store unavailable",
            completed_at=_utcnow(),
        )
        return None

    _update_job(
        job_run_id,
        status=JobStatus.completed,
        details=report.model_dump_json(),
        completed_at=_utcnow(),
    )
    return report


@celery_app.task(name="app.tasks.reconciliation_tasks.generate_global_report_task", bind=True)
def generate_global_report_task(self, job_run_id: int = None):
    """Build the global reconciliation report and store it on the JobRun."""
    from app.services.report_service import generate_global_report

    report = _run_report_job(self.request.id, job_run_id, "Global report", generate_global_report)
    if report is None:
        return {"status": "failed", "reason": "data_unavailable"}

    logger.info(
        "Global report job %s complete: %d users, %d alerts",
        job_run_id, len(report.users), report.total_alerts,
    )
    return {
        "status": "ok",
        "users": len(report.users),
        "total_alerts": report.total_alerts,
    }


@celery_app.task(name="app.tasks.reconciliation_tasks.generate_user_report_task", bind=True)
def generate_user_report_task(self, user_id: int, job_run_id: int = None):
    """Build one user's reconciliation summary and store it on the JobRun."""
    from app.services.report_service import generate_user_reconciliation

    summary = _run_report_job(
        self.request.id,
        job_run_id,
        f"User {user_id} report",
        lambda: generate_user_reconciliation(user_id),
    )
    if summary is None:
        return {"status": "failed", "reason": "data_unavailable"}

    logger.info(
        "User report job %s complete: %d statements, %d alerts",
        job_run_id, summary.total_statements, len(summary.alerts),
    )
    return {
        "status": "ok",
        "user_id": user_id,
        "total_alerts": len(summary.alerts),
    }
