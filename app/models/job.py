import enum
from datetime import datetime
from typing import Optional
from sqlalchemy import ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column
from app.database import Base


class JobType(str, enum.Enum):
    global_report = "global_report"
    user_report = "user_report"


class JobStatus(str, enum.Enum):
    pending = "pending"
    running = "running"
    completed = "completed"
    failed = "failed"


class JobRun(Base):
    """One background reconciliation report run.

    ``user_id`` is set for per-user reports and left empty for the global one.
    Completed runs keep the report itself in ``details`` as JSON.
    """

    __tablename__ = "job_runs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), index=True, nullable=True)
    job_type: Mapped[JobType] = mapped_column(String(50), index=True)
    status: Mapped[JobStatus] = mapped_column(String(20), default=JobStatus.pending, index=True)
    task_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    started_at: Mapped[datetime] = mapped_column(default=func.now())
    completed_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
