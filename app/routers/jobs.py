from typing import List, Optional
from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from app.database import get_db

router = APIRouter()


class JobRunResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    job_type: str
    status: str
    task_id: Optional[str] = None
    started_at: datetime
    completed_at: Optional[datetime] = None
    details: Optional[str] = None
    error_message: Optional[str] = None

    model_config = {"from_attributes": True}


@router.get("/recent", response_model=List[JobRunResponse])
def list_recent_jobs(
    limit: int = 20,
    job_type: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Return the most recent report jobs (newest first)."""
    from app.models.job import JobRun

    q = db.query(JobRun)
    if job_type:
        q = q.filter(JobRun.job_type == job_type)
    return q.order_by(JobRun.started_at.desc(), JobRun.id.desc()).limit(limit).all()


@router.get("/{job_id}", response_model=JobRunResponse)
def get_job(job_id: int, db: Session = Depends(get_db)):
    """Return one job run; ``details`` holds the report JSON once completed."""
    from app.models.job import JobRun

    job_run = db.query(JobRun).filter(JobRun.id == job_id).first()
    if not job_run:
        raise HTTPException(status_code=404, detail="Job not found")
    return job_run
