from fastapi import APIRouter, Query, Response, status

from paynudge.api.dependencies import CurrentUserDep, DbDep
from paynudge.models import schemas
from paynudge.models.schemas.invoice import InvoiceStatusLiteral
from paynudge.services.invoice_service import InvoiceService

router = APIRouter()


@router.get("/", response_model=list[schemas.InvoiceOut])
def list_invoices(
    current_user_id: CurrentUserDep,
    db: DbDep,
    status_filter: InvoiceStatusLiteral | None = Query(default=None, alias="status"),
):
    return InvoiceService(db).list_invoices(current_user_id, status=status_filter)


@router.post("/", response_model=schemas.InvoiceOut, status_code=status.HTTP_201_CREATED)
def create_invoice(data: schemas.InvoiceCreate, current_user_id: CurrentUserDep, db: DbDep):
    return InvoiceService(db).create_invoice(current_user_id, data)


@router.get("/{invoice_id}", response_model=schemas.InvoiceOut)
def get_invoice(invoice_id: int, current_user_id: CurrentUserDep, db: DbDep):
    return InvoiceService(db).get_invoice(current_user_id, invoice_id)


@router.patch("/{invoice_id}", response_model=schemas.InvoiceOut)
def update_invoice(invoice_id: int, data: schemas.InvoiceUpdate, current_user_id: CurrentUserDep, db: DbDep):
    return InvoiceService(db).update_invoice(current_user_id, invoice_id, data)


@router.post("/{invoice_id}/mark-paid", response_model=schemas.InvoiceOut)
def mark_invoice_paid(invoice_id: int, current_user_id: CurrentUserDep, db: DbDep):
    """Mark paid and drop any reminders that have not gone out yet."""
    return InvoiceService(db).mark_paid(current_user_id, invoice_id)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(invoice_id: int, current_user_id: CurrentUserDep, db: DbDep):
    InvoiceService(db).delete_invoice(current_user_id, invoice_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
