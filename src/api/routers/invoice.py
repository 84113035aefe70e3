from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from ..deps import get_invoice_repository, get_recognizer
from ...models.invoice import (
    CanonicalInvoice,
    InvoiceFilter,
    InvoiceType,
    PagedResult,
    Pagination,
    RecognizeOutcome,
)
from ...services.recognizer import InvoiceRecognizer
from ...services.storage import InvoiceRepositoryBase

router = APIRouter(prefix="/invoices", tags=["invoices"])


class RecognizeRequest(BaseModel):
    """Request body for /invoices/recognize and /invoices/recognize-and-save"""
    file_path: str
    invoice_type: str | None = None  # unknown values map to "other"


class RecognizeBatchRequest(BaseModel):
    """Request body for /invoices/recognize-batch"""
    file_paths: list[str]
    invoice_type: str | None = None


class DeleteBatchRequest(BaseModel):
    ids: list[str] = Field(default_factory=list)


def _invoice_type(value: str | None) -> InvoiceType | None:
    return InvoiceType.parse(value) if value else None


@router.post("/recognize", response_model=CanonicalInvoice)
async def recognize(req: RecognizeRequest, recognizer: InvoiceRecognizer = Depends(get_recognizer)):
    """
    Recognize a local invoice file without saving it.

    Errors are returned as {"type": ..., "message": ...} with a status
    matching the error kind (see main.ERROR_STATUS).
    """
    return await recognizer.recognize(req.file_path, _invoice_type(req.invoice_type))


@router.post("/recognize-and-save", response_model=CanonicalInvoice)
async def recognize_and_save(req: RecognizeRequest, recognizer: InvoiceRecognizer = Depends(get_recognizer)):
    """Recognize a local invoice file and persist the canonical record"""
    return await recognizer.recognize_and_save(req.file_path, _invoice_type(req.invoice_type))


@router.post("/recognize-batch", response_model=list[RecognizeOutcome])
async def recognize_batch(req: RecognizeBatchRequest, recognizer: InvoiceRecognizer = Depends(get_recognizer)):
    """
    Recognize and save several files.

    Always 200: every path gets one outcome, in request order, whether it
    succeeded or not.
    """
    return await recognizer.recognize_batch(req.file_paths, _invoice_type(req.invoice_type))


@router.get("/types")
async def list_invoice_types():
    """Invoice types with their Chinese labels, for filter and edit forms"""
    return [{"value": t.value, "display_name": t.display_name, "is_vat": t.is_vat} for t in InvoiceType]


@router.get("", response_model=PagedResult)
async def list_invoices(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=500),
    invoice_type: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    amount_min: float | None = None,
    amount_max: float | None = None,
    keyword: str | None = None,
    category: str | None = None,
    repository: InvoiceRepositoryBase = Depends(get_invoice_repository),
):
    """List saved invoices, newest first"""
    invoice_filter = InvoiceFilter(
        invoice_type=_invoice_type(invoice_type),
        date_from=date_from,
        date_to=date_to,
        amount_min=amount_min,
        amount_max=amount_max,
        keyword=keyword,
        category=category,
    )
    return repository.find_all(invoice_filter, Pagination(page=page, page_size=page_size))


@router.post("/delete-batch")
async def delete_invoices(req: DeleteBatchRequest, repository: InvoiceRepositoryBase = Depends(get_invoice_repository)):
    return {"deleted": repository.delete_batch(req.ids)}


@router.get("/{invoice_id}", response_model=CanonicalInvoice)
async def get_invoice(invoice_id: str, repository: InvoiceRepositoryBase = Depends(get_invoice_repository)):
    invoice = repository.find_by_id(invoice_id)
    if invoice is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


@router.put("/{invoice_id}", response_model=CanonicalInvoice)
async def update_invoice(
    invoice_id: str,
    invoice: CanonicalInvoice,
    repository: InvoiceRepositoryBase = Depends(get_invoice_repository),
):
    """Overwrite the editable fields of a saved invoice (e.g. after manual verification)"""
    if not repository.update(invoice.model_copy(update={"id": invoice_id})):
        raise HTTPException(status_code=404, detail="Invoice not found")
    return repository.find_by_id(invoice_id)


@router.delete("/{invoice_id}")
async def delete_invoice(invoice_id: str, repository: InvoiceRepositoryBase = Depends(get_invoice_repository)):
    if not repository.delete(invoice_id):
        raise HTTPException(status_code=404, detail="Invoice not found")
    return {"deleted": True}
