from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.invoice import InvoiceStatus
from app.routers.users import get_user_or_404
from app.schemas.invoice import InvoiceCreate, InvoiceReview, InvoiceSchema
from app.services import invoice_service

router = APIRouter()


@router.post("/users/{user_id}/invoices", response_model=InvoiceSchema, status_code=201)
def create_invoice(user_id: int, payload: InvoiceCreate, db: Session = Depends(get_db)):
    """Submit an invoice whose fields were extracted by the OCR service."""
    get_user_or_404(user_id, db)
    return invoice_service.create_invoice(db, user_id, payload)


@router.get("/users/{user_id}/invoices", response_model=List[InvoiceSchema])
def list_invoices(
    user_id: int,
    status: Optional[InvoiceStatus] = None,
    db: Session = Depends(get_db),
):
    get_user_or_404(user_id, db)
    return invoice_service.list_invoices(db, user_id, status)


@router.patch("/invoices/{invoice_id}/review", response_model=InvoiceSchema)
def review_invoice(invoice_id: int, payload: InvoiceReview, db: Session = Depends(get_db)):
    """Approve or reject an invoice."""
    invoice = invoice_service.get_invoice(db, invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    try:
        return invoice_service.review_invoice(
            db,
            invoice,
            payload.status,
            reviewer_id=payload.reviewer_id,
            rejection_reason=payload.rejection_reason,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
