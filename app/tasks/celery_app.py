from celery import Celery
from app.config import get_settings

settings = get_settings()

celery_app = Celery(
    "reconciliation_worker",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["app.tasks.reconciliation_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    beat_schedule={
        "global-reconciliation-report": {
            "task": "app.tasks.reconciliation_tasks.generate_global_report_task",
            "schedule": settings.REPORT_SCHEDULE_SECONDS,
        },
    },
)
