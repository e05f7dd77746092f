# services/__init__.py
from .price_service import PriceAuthority
from .signature_service import sign, verify
from .pdf_service import InvoiceRenderer, format_money
from .storage_service import InvoiceStore
from .gateway_service import GatewayService
from .invoice_service import InvoiceService, invoice_number_for
from .notification_service import NotificationService
from .task_tracker import PipelineTracker

__all__ = [
     "PriceAuthority",
     "sign",
     "verify",
     "InvoiceRenderer",
     "format_money",
     "InvoiceStore",
     "GatewayService",
     "InvoiceService",
     "invoice_number_for",
     "NotificationService",
     "PipelineTracker",
]
