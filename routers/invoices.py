# routers/invoices.py
"""
Invoice utility routes.

Operator endpoints working only from the invoice store:
- resend: email the stored PDF again
- repair: regenerate the PDF from the stored record
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

import structlog

from dependencies import get_invoice_service
from exceptions import InvoiceNotFoundError
from schemas.invoice import RepairResponse, ResendResponse
from services import InvoiceService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("/resend", response_model=ResendResponse, summary="Email an invoice again")
def resend_invoice(
     invoice_no: Optional[str] = Query(None, alias="invoiceNo", description="Invoice number, e.g. INV-202503-456789"),
     invoices: InvoiceService = Depends(get_invoice_service),
):
     """Re-deliver the stored document by email. 404 for unknown invoices."""
     try:
          result = invoices.resend(invoice_no)
     except InvoiceNotFoundError:
          raise
     except Exception:
          logger.exception("invoice_resend_error", invoice_no=invoice_no)
          raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Resend failed")

     if not result.ok:
          raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Resend failed")
     return ResendResponse()


@router.get("/repair", response_model=RepairResponse, summary="Regenerate an invoice document")
def repair_invoice(
     invoice_no: Optional[str] = Query(None, alias="invoiceNo", description="Invoice number, e.g. INV-202503-456789"),
     invoices: InvoiceService = Depends(get_invoice_service),
):
     """Re-render the PDF from the stored record and return its public path."""
     try:
          stored = invoices.repair(invoice_no)
     except InvoiceNotFoundError:
          raise
     except Exception:
          logger.exception("invoice_repair_error", invoice_no=invoice_no)
          raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Repair failed")
     return RepairResponse(fileUrl=stored.file_url)
