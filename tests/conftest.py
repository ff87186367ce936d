"""
tests/conftest.py – pytest configuration for the test suite.

Most tests run against an in-memory SQLite database (``db_session`` /
``session_factory``) or against plain records with no database at all.

Integration tests (marked with @pytest.mark.integration) need a live
PostgreSQL database.  They are automatically skipped when TEST_DATABASE_URL is
absent, allowing the full test suite to run in CI without any services.

To opt in locally:

    TEST_DATABASE_URL=postgresql://... pytest -m integration
"""
import os
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base


# ---------------------------------------------------------------------------
# Automatic skip for integration tests without a database
# ---------------------------------------------------------------------------

def _has_test_database() -> bool:
    return bool(os.environ.get("TEST_DATABASE_URL"))


def pytest_collection_modifyitems(config, items):
    """Skip @pytest.mark.integration tests when TEST_DATABASE_URL is absent."""
    if _has_test_database():
        return

    skip_marker = pytest.mark.skip(
        reason=(
            "Integration test skipped: TEST_DATABASE_URL is not set. "
            "Export it and run 'pytest -m integration' to opt in."
        )
    )
    for item in items:
        if item.get_closest_marker("integration"):
            item.add_marker(skip_marker)


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def session_factory():
    """Session factory bound to a fresh in-memory SQLite database.

    ``StaticPool`` keeps a single connection so every session (and the
    TestClient worker thread) sees the same database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db_session):
    """Insert a user and return it."""
    from app.models.user import User

    def _make(email="ana@example.com", full_name="Ana Souza", department="Finance"):
        user = User(email=email, full_name=full_name, department=department)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_invoice(db_session):
    """Insert an invoice for a user and return it."""
    from app.models.invoice import Invoice, InvoiceStatus

    def _make(user_id, supplier="Uber Brasil", total_value="45.00",
              invoice_date=date(2024, 1, 15), status=InvoiceStatus.pending,
              description=None):
        invoice = Invoice(
            user_id=user_id,
            supplier=supplier,
            description=description,
            total_value=Decimal(total_value),
            invoice_date=invoice_date,
            status=status,
        )
        db_session.add(invoice)
        db_session.commit()
        db_session.refresh(invoice)
        return invoice

    return _make
