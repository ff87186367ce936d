"""Per-user and global reconciliation reports.

Each statement is reconciled independently against the user's full invoice
list; an invoice matched on one statement is not excluded from another.
Month windows never overlap, so in practice an invoice is a candidate for at
most one statement.

The ``build_*`` functions raise ``DataUnavailableError`` when the store fails.
The ``generate_*`` wrappers return ``None`` instead, which callers must treat
as "report unavailable", never as "nothing to report".
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from app.config import get_settings
from app.models.invoice import InvoiceStatus
from app.models.statement import StatementStatus
from app.schemas.reconciliation import (
    AlertSeverity,
    GlobalReconciliationReport,
    UserReconciliationSummary,
)
from app.services.alert_service import DEFAULT_CURRENCY_SYMBOL
from app.services.matching_service import DEFAULT_VALUE_TOLERANCE
from app.services.reconciliation_service import reconcile_statement
from app.services.store_service import (
    DataUnavailableError,
    ReconciliationStore,
    SqlReconciliationStore,
)

logger = logging.getLogger(__name__)

DEFAULT_USER_NAME = "User"


class ReportCancelledError(Exception):
    """The caller cancelled a global report before it finished."""


def build_user_summary(
    store: ReconciliationStore,
    user_id: int,
    *,
    tolerance: Decimal = DEFAULT_VALUE_TOLERANCE,
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
    default_user_name: str = DEFAULT_USER_NAME,
) -> UserReconciliationSummary:
    """Reconcile every statement of *user_id* and summarise their invoices."""
    profile = store.get_profile(user_id)
    statements = store.list_statements(user_id)
    invoices = store.list_invoices(user_id)

    reconciliations = [
        reconcile_statement(
            stmt,
            store.list_expenses(stmt.id),
            invoices,
            tolerance=tolerance,
            currency_symbol=currency_symbol,
        )
        for stmt in statements
    ]

    by_status = {status: [] for status in InvoiceStatus}
    for inv in invoices:
        by_status[InvoiceStatus(inv.status)].append(inv)

    def _total(status: InvoiceStatus) -> Decimal:
        return sum((i.total_value for i in by_status[status]), Decimal("0"))

    return UserReconciliationSummary(
        user_id=user_id,
        user_name=(profile.full_name if profile and profile.full_name else default_user_name),
        user_department=profile.department if profile else None,
        statements=reconciliations,
        invoices=invoices,
        total_statements=len(statements),
        total_invoices=len(invoices),
        statements_matched=sum(1 for s in statements if s.status == StatementStatus.matched),
        statements_divergent=sum(1 for s in statements if s.status == StatementStatus.divergent),
        invoices_approved=len(by_status[InvoiceStatus.approved]),
        invoices_pending=len(by_status[InvoiceStatus.pending]),
        invoices_rejected=len(by_status[InvoiceStatus.rejected]),
        total_approved_value=_total(InvoiceStatus.approved),
        total_pending_value=_total(InvoiceStatus.pending),
        total_rejected_value=_total(InvoiceStatus.rejected),
        alerts=[alert for recon in reconciliations for alert in recon.alerts],
    )


def build_global_report(
    store: ReconciliationStore,
    *,
    max_workers: int = 1,
    cancel_event: Optional[threading.Event] = None,
    **summary_options,
) -> GlobalReconciliationReport:
    """Build a report across every known user.

    User summaries are computed on a thread pool of *max_workers* threads and
    kept in user order.  Users with neither statements nor invoices are left
    out.  Setting *cancel_event* stops scheduling further users and raises
    ``ReportCancelledError``; a store failure for any user fails the report.
    """
    user_ids = store.list_user_ids()
    summaries: list[UserReconciliationSummary] = []

    pool = ThreadPoolExecutor(max_workers=max(1, max_workers))
    try:
        futures = []
        for user_id in user_ids:
            if cancel_event is not None and cancel_event.is_set():
                break
            futures.append(pool.submit(build_user_summary, store, user_id, **summary_options))

        for future in futures:
            if cancel_event is not None and cancel_event.is_set():
                raise ReportCancelledError("Global report cancelled")
            summary = future.result()
            if summary.total_statements > 0 or summary.total_invoices > 0:
                summaries.append(summary)

        if cancel_event is not None and cancel_event.is_set():
            raise ReportCancelledError("Global report cancelled")
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    alerts = [alert for s in summaries for alert in s.alerts]
    return GlobalReconciliationReport(
        users=summaries,
        total_alerts=len(alerts),
        critical_alerts=sum(1 for a in alerts if a.severity == AlertSeverity.error),
        warning_alerts=sum(1 for a in alerts if a.severity == AlertSeverity.warning),
        info_alerts=sum(1 for a in alerts if a.severity == AlertSeverity.info),
        total_statements=sum(s.total_statements for s in summaries),
        total_invoices=sum(s.total_invoices for s in summaries),
        generated_at=datetime.now(tz=timezone.utc),
    )


def _summary_options() -> dict:
    settings = get_settings()
    return {
        "tolerance": settings.VALUE_TOLERANCE,
        "currency_symbol": settings.CURRENCY_SYMBOL,
        "default_user_name": settings.DEFAULT_USER_NAME,
    }


def generate_user_reconciliation(
    user_id: int, store: Optional[ReconciliationStore] = None
) -> Optional[UserReconciliationSummary]:
    """Return the user's summary, or ``None`` if the store could not be read."""
    store = store or SqlReconciliationStore()
    try:
        return build_user_summary(store, user_id, **_summary_options())
    except DataUnavailableError as exc:
        logger.error("User reconciliation for %s unavailable: %s", user_id, exc)
        return None


def generate_global_report(
    store: Optional[ReconciliationStore] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Optional[GlobalReconciliationReport]:
    """Return the global report, or ``None`` if the store could not be read.

    ``ReportCancelledError`` propagates to the caller.
    """
    store = store or SqlReconciliationStore()
    try:
        return build_global_report(
            store,
            max_workers=get_settings().REPORT_MAX_WORKERS,
            cancel_event=cancel_event,
            **_summary_options(),
        )
    except DataUnavailableError as exc:
        logger.error("Global reconciliation report unavailable: %s", exc)
        return None
