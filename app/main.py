from fastapi import FastAPI

from app.routers import health, users, statements, invoices, reconciliation, jobs
from app.models import user as user_models  # noqa: F401 - ensures models are registered
from app.models import statement as statement_models  # noqa: F401
from app.models import invoice as invoice_models  # noqa: F401
from app.models import job as job_models  # noqa: F401

app = FastAPI(title="Expense Reconciliation", version="1.0.0")

# Include API routers
app.include_router(health.router, tags=["health"])
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(statements.router, tags=["statements"])
app.include_router(invoices.router, tags=["invoices"])
app.include_router(reconciliation.router, prefix="/reconciliation", tags=["reconciliation"])
app.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
