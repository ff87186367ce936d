"""Invoice submission and approval workflow."""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.models.invoice import Invoice, InvoiceStatus
from app.schemas.invoice import InvoiceCreate

logger = logging.getLogger(__name__)


def create_invoice(db: Session, user_id: int, payload: InvoiceCreate) -> Invoice:
    invoice = Invoice(
        user_id=user_id,
        supplier=payload.supplier,
        description=payload.description,
        category=payload.category,
        total_value=payload.total_value,
        invoice_date=payload.invoice_date,
        status=InvoiceStatus.pending,
    )
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    return invoice


def get_invoice(db: Session, invoice_id: int) -> Optional[Invoice]:
    return db.query(Invoice).filter(Invoice.id == invoice_id).first()


def list_invoices(
    db: Session, user_id: int, status: Optional[InvoiceStatus] = None
) -> list[Invoice]:
    """Return the user's invoices, newest first, optionally filtered by status."""
    q = db.query(Invoice).filter(Invoice.user_id == user_id)
    if status is not None:
        q = q.filter(Invoice.status == status.value)
    return q.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def review_invoice(
    db: Session,
    invoice: Invoice,
    status: InvoiceStatus,
    reviewer_id: Optional[int] = None,
    rejection_reason: Optional[str] = None,
) -> Invoice:
    """Approve or reject *invoice*.

    A rejection reason is only stored for rejections.  Raises ``ValueError``
    for any target status other than approved/rejected.
    """
    if status not in (InvoiceStatus.approved, InvoiceStatus.rejected):
        raise ValueError(f"Cannot review an invoice into status {status.value!r}")

    invoice.status = status
    invoice.reviewed_by = reviewer_id
    invoice.reviewed_at = datetime.now(tz=timezone.utc).replace(tzinfo=None)
    invoice.rejection_reason = rejection_reason if status == InvoiceStatus.rejected else None
    db.commit()
    db.refresh(invoice)
    logger.info("Invoice %s %s by %s", invoice.id, status.value, reviewer_id)
    return invoice
