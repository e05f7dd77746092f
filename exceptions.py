# exceptions.py
"""
Error types surfaced by the invoicing endpoints.

Each error carries the HTTP status and the public message rendered as
{"ok": false, "error": message} by the handler registered in main.py.
"""


class InvoicingError(Exception):
     """Base class for errors with a defined client response."""

     status_code = 500
     message = "Internal error"

     def __init__(self, message: str = None, status_code: int = None):
          self.message = message or self.message
          if status_code is not None:
               self.status_code = status_code
          super().__init__(self.message)


class UnknownProductError(InvoicingError):
     """Product code absent from the price table."""

     status_code = 400
     message = "Unknown SKU"

     def __init__(self, sku: str = None):
          self.sku = sku
          super().__init__()


class InvoiceNotFoundError(InvoicingError):
     """No stored record (or document) for the requested invoice number."""

     status_code = 404
     message = "Not found"

     def __init__(self, invoice_no: str = None, message: str = None):
          self.invoice_no = invoice_no
          super().__init__(message)


class DocumentGenerationError(InvoicingError):
     """The PDF renderer failed; nothing was written."""

     message = "Document generation failed"


class InvoiceStorageError(InvoicingError):
     """Reading or writing invoice artifacts failed."""

     message = "Invoice storage failed"
