# schemas/invoice.py
"""
Pydantic schemas for the invoice record and the invoice utility endpoints.

The record keeps the key spelling of the JSON files already on disk
(invoiceNo, pf_payment_id, sku, ...), so serialize with by_alias=True.
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

# Matches the en-ZA locale string the first invoices were written with.
RECORD_DATE_FORMAT = "%Y/%m/%d, %H:%M:%S"


class InvoiceRecord(BaseModel):
     """Durable billing record for one validated payment notification."""

     invoice_no: str = Field(..., alias="invoiceNo", description="INV-<YYYYMM>-<last 6 of pf_payment_id>")
     date: str = Field(..., description="Processing time, YYYY/MM/DD, HH:MM:SS")
     pf_payment_id: Optional[str] = None
     m_payment_id: Optional[str] = None
     sku: str = Field(..., description="Product code from the price table")
     item_name: Optional[str] = None
     item_description: Optional[str] = None
     amount: Decimal = Field(..., description="Price table amount, never the notified amount")
     customer_name: str = ""
     customer_email: str = ""
     customer_phone: str = ""

     model_config = ConfigDict(
          populate_by_name=True,
          frozen=True,
          json_schema_extra={
               "example": {
                    "invoiceNo": "INV-202503-456789",
                    "date": "2025/03/15, 10:30:00",
                    "pf_payment_id": "PF123456789",
                    "m_payment_id": "ORDER-42",
                    "sku": "WA-01",
                    "item_name": "WA-01",
                    "item_description": "WA-01 purchase",
                    "amount": "1499.00",
                    "customer_name": "Jane Doe",
                    "customer_email": "jane@example.com",
                    "customer_phone": "0821234567",
               }
          },
     )

     @field_validator("amount")
     @classmethod
     def two_places(cls, v: Decimal) -> Decimal:
          return v.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

     @property
     def description(self) -> str:
          return self.item_description or self.item_name or self.sku


class StoredInvoice(BaseModel):
     """Locations of a saved record and its document."""
     invoice_no: str
     pdf_path: str
     json_path: str
     file_url: str


class ResendResponse(BaseModel):
     """Response for GET /invoices/resend."""
     ok: bool = True


class RepairResponse(BaseModel):
     """Response for GET /invoices/repair."""
     ok: bool = True
     fileUrl: str = Field(..., description="Public path of the regenerated document")
