# schemas/__init__.py
from .delivery import DeliveryResult
from .invoice import (
     InvoiceRecord,
     StoredInvoice,
     ResendResponse,
     RepairResponse,
)
from .payment import (
     SignRequest,
     SignResponse,
     ValidationResult,
)

__all__ = [
     "DeliveryResult",
     "InvoiceRecord",
     "StoredInvoice",
     "ResendResponse",
     "RepairResponse",
     "SignRequest",
     "SignResponse",
     "ValidationResult",
]
