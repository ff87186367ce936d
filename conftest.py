import os

# Set a dummy DATABASE_URL before any imports so the lazy engine doesn't need psycopg2
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
# The shared in-memory SQLite connection must not be used from several report threads
os.environ.setdefault("REPORT_MAX_WORKERS", "1")

from sqlalchemy.orm import configure_mappers  # noqa: E402

# Import all models to register them with the mapper
from app.models.user import User  # noqa: E402, F401
from app.models.statement import Statement, Expense  # noqa: E402, F401
from app.models.invoice import Invoice  # noqa: E402, F401
from app.models.job import JobRun  # noqa: E402, F401

# Configure all mappers so relationships resolve before the first test
configure_mappers()
